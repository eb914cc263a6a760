"""Gunicorn settings for running the mock as a long-lived server.

    gunicorn -c gunicorn.conf.py mockstripe.main:app
"""
from __future__ import annotations

import os

port = os.getenv("PORT", "8000")
bind = os.getenv("GUNICORN_BIND", f"0.0.0.0:{port}")

# Each worker would hold its own private store
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"

timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "10"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

# The app already writes one request_completed line per request
accesslog = os.getenv("GUNICORN_ACCESSLOG") or None
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

proc_name = "mockstripe"
