"""Tests for gunicorn configuration."""
from __future__ import annotations

import importlib.util
import os
from pathlib import Path
from unittest.mock import patch

CONFIG_PATH = Path(__file__).resolve().parent.parent / "gunicorn.conf.py"


def _load(name: str = "gunicorn_conf"):
    module_spec = importlib.util.spec_from_file_location(name, CONFIG_PATH)
    assert module_spec is not None
    mod = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(mod)  # type: ignore[union-attr]
    return mod


class TestGunicornConfig:
    def test_config_loads(self) -> None:
        mod = _load()
        assert hasattr(mod, "bind")
        assert hasattr(mod, "workers")
        assert hasattr(mod, "timeout")
        assert mod.proc_name == "mockstripe"

    def test_default_bind(self) -> None:
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("GUNICORN_BIND", None)
            os.environ.pop("PORT", None)
            mod = _load()
        assert mod.bind == "0.0.0.0:8000"

    def test_port_override(self) -> None:
        with patch.dict(os.environ, {"PORT": "12111"}):
            os.environ.pop("GUNICORN_BIND", None)
            mod = _load("gunicorn_conf_port")
        assert mod.bind.endswith(":12111")

    def test_single_worker_by_default(self) -> None:
        with patch.dict(os.environ, {}):
            os.environ.pop("GUNICORN_WORKERS", None)
            mod = _load("gunicorn_conf_workers")
        assert mod.workers == 1

    def test_worker_class_is_uvicorn(self) -> None:
        assert "uvicorn" in _load().worker_class

    def test_access_log_off_unless_requested(self) -> None:
        with patch.dict(os.environ, {}):
            os.environ.pop("GUNICORN_ACCESSLOG", None)
            mod = _load("gunicorn_conf_access")
        assert mod.accesslog is None
