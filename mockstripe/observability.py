"""Request ids, access logging and request metrics."""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from mockstripe.metrics import REQUEST_COUNT, REQUEST_ERRORS, REQUEST_LATENCY
from mockstripe.services.idempotency import new_request_id

logger = logging.getLogger(__name__)


def _route_template(request: Request) -> str:
    # Label metrics by route so ids in the path do not explode cardinality
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _observe(request: Request, status_code: int, elapsed: float) -> str:
    path = _route_template(request)
    labels = (request.method, path, str(status_code))
    REQUEST_COUNT.labels(*labels).inc()
    REQUEST_LATENCY.labels(*labels).observe(elapsed)
    if status_code >= 500:
        REQUEST_ERRORS.labels(*labels).inc()
    return path


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or new_request_id()
        request.state.request_id = request_id
        context = {
            "request_id": request_id,
            "account_id": (
                request.headers.get("stripe-account")
                or request.app.state.settings.default_account_id
            ),
            "idempotency_key": request.headers.get("idempotency-key"),
            "method": request.method,
        }
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.monotonic() - start
            path = _observe(request, 500, elapsed)
            logger.exception(
                "request_failed",
                extra={**context, "path": path, "status": 500,
                       "duration_ms": round(elapsed * 1000.0, 2)},
            )
            raise

        elapsed = time.monotonic() - start
        path = _observe(request, response.status_code, elapsed)
        logger.info(
            "request_completed",
            extra={**context, "path": path, "status": response.status_code,
                   "duration_ms": round(elapsed * 1000.0, 2)},
        )
        response.headers["x-request-id"] = request_id
        # Replays already carry the id of this request
        if "request-id" not in response.headers:
            response.headers["Request-Id"] = request_id
        return response
