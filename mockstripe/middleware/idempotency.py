"""Replays POST responses for requests that carry an Idempotency-Key."""
from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from mockstripe.config import settings
from mockstripe.errors import StripeError, stripe_error_response
from mockstripe.metrics import IDEMPOTENT_REPLAYS
from mockstripe.services.common import decode_body
from mockstripe.services.idempotency import CacheKey, IdempotencyCache, new_request_id

logger = logging.getLogger(__name__)


class IdempotencyMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: object,
        maxsize: int = settings.idempotency_cache_size,
        ttl: int = settings.idempotency_ttl_seconds,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self.cache = IdempotencyCache(maxsize=maxsize, ttl=ttl)

    async def dispatch(self, request: Request, call_next: object) -> Response:
        idempotency_key = request.headers.get("idempotency-key")
        if request.method != "POST" or not idempotency_key:
            return await call_next(request)  # type: ignore[call-arg]

        request_id = getattr(request.state, "request_id", None) or new_request_id()
        account_id = (
            request.headers.get("stripe-account")
            or request.app.state.settings.default_account_id
        )
        key: CacheKey = (account_id, request.method, request.url.path, idempotency_key)
        try:
            params = decode_body(await request.body(), request.headers.get("content-type"))
            entry, is_new = self.cache.begin(key, params, request_id)
        except StripeError as exc:
            return stripe_error_response(exc)

        if not is_new:
            IDEMPOTENT_REPLAYS.inc()
            logger.info(
                "Replaying idempotent request %s",
                entry.request_id,
                extra={"request_id": request_id, "account_id": account_id},
            )
            return Response(
                content=entry.body,
                status_code=entry.status_code or 200,
                media_type="application/json",
                headers={
                    "Original-Request": entry.request_id,
                    "Request-Id": request_id,
                    "Idempotent-Replayed": "true",
                },
            )

        try:
            response: Response = await call_next(request)  # type: ignore[call-arg]
        except Exception:
            self.cache.discard(key)
            raise
        body = b""
        async for chunk in response.body_iterator:  # type: ignore[attr-defined]
            body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
        self.cache.complete(key, response.status_code, body)
        headers = dict(response.headers)
        headers["Request-Id"] = request_id
        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers,
            media_type=response.media_type,
        )
