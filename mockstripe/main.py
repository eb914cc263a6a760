from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from mockstripe.api.accounts import router as accounts_router
from mockstripe.api.billing import router as billing_router
from mockstripe.api.charges import router as charges_router
from mockstripe.api.customers import router as customers_router
from mockstripe.api.payment_intents import router as payment_intents_router
from mockstripe.config import Settings, settings, validate_settings
from mockstripe.db import Store
from mockstripe.errors import register_error_handlers
from mockstripe.logging import configure_logging
from mockstripe.middleware.auth import AuthMiddleware
from mockstripe.middleware.idempotency import IdempotencyMiddleware
from mockstripe.observability import ObservabilityMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[arg-type]
    # ── Startup ──────────────────────────────────────────
    warnings = validate_settings(app.state.settings)
    for w in warnings:
        logger.warning("Config warning: %s", w)
    logger.info("Application started (pid=%s)", os.getpid())
    yield

    # ── Shutdown ─────────────────────────────────────────
    pending = app.state.store.deferred.run_pending()
    logger.info("Application shutting down (%d deferred tasks flushed)", pending)


def create_app(store: Store | None = None, config: Settings | None = None) -> FastAPI:
    config = config or settings
    app = FastAPI(title="mockstripe", lifespan=lifespan)
    app.state.store = store or Store()
    app.state.store.platform_account_id = config.default_account_id
    app.state.settings = config

    # ── Middleware (order matters: last added = first executed) ──
    register_error_handlers(app)

    app.add_middleware(
        IdempotencyMiddleware,
        maxsize=config.idempotency_cache_size,
        ttl=config.idempotency_ttl_seconds,
    )
    app.add_middleware(AuthMiddleware, require_auth=config.require_auth)
    app.add_middleware(ObservabilityMiddleware)

    # Preflight requests carry no API key
    cors_origins = [o.strip() for o in config.cors_origins.split(",") if o.strip()]
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Request-Id", "Original-Request", "Idempotent-Replayed"],
        )

    app.include_router(charges_router)
    app.include_router(customers_router)
    app.include_router(billing_router)
    app.include_router(payment_intents_router)
    app.include_router(accounts_router)

    # ── Health Checks ────────────────────────────────────

    @app.get("/health")
    def health_check() -> dict[str, str]:
        """Liveness probe, always ok while the process is running."""
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics() -> Response:
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


configure_logging(settings.log_level, settings.log_format)
app = create_app()
