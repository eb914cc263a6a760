"""API key check for every endpoint except health and metrics."""
from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from mockstripe.errors import StripeError, stripe_error_response
from mockstripe.services.auth import censor_api_key, check_api_key, extract_api_key

logger = logging.getLogger(__name__)

_EXEMPT_PATHS = {"/health", "/metrics"}


class AuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: object, require_auth: bool = True) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self.require_auth = require_auth

    async def dispatch(self, request: Request, call_next: object) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)  # type: ignore[call-arg]

        key = extract_api_key(request)
        if self.require_auth:
            try:
                check_api_key(key)
            except StripeError as exc:
                logger.info(
                    "Rejected request to %s: %s",
                    request.url.path,
                    exc.message,
                    extra={"request_id": getattr(request.state, "request_id", None)},
                )
                return stripe_error_response(exc)
        request.state.censored_key = censor_api_key(key) if key else ""
        return await call_next(request)  # type: ignore[call-arg]
