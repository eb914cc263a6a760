"""Stripe-shaped errors and the handlers that render them.

Every error response uses the real service's envelope:
    {
        "error": {
            "type": "invalid_request_error",
            "message": "Human-readable message",
            "code": "resource_missing",
            "param": "id",
            "doc_url": "https://stripe.com/docs/error-codes/resource-missing"
        }
    }
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mockstripe.metrics import STRIPE_ERRORS

logger = logging.getLogger(__name__)

ERROR_TYPES = frozenset(
    {
        "invalid_request_error",
        "card_error",
        "api_error",
        "idempotency_error",
        "rate_limit_error",
    }
)

_DOC_URL_BASE = "https://stripe.com/docs/error-codes/"


def doc_url_for(code: str) -> str:
    return _DOC_URL_BASE + code.replace("_", "-")


class StripeError(Exception):
    """An error carrying the full Stripe error contract and its HTTP status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        type: str = "invalid_request_error",
        *,
        code: str | None = None,
        param: str | None = None,
        doc_url: str | None = None,
        decline_code: str | None = None,
        charge: str | None = None,
        payment_intent: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if type not in ERROR_TYPES:
            raise ValueError(f"Unknown error type: {type}")
        self.status_code = status_code
        self.message = message
        self.type = type
        self.code = code
        self.param = param
        self.doc_url = doc_url if doc_url is not None else (doc_url_for(code) if code else None)
        self.decline_code = decline_code
        self.charge = charge
        self.payment_intent = payment_intent

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"message": self.message, "type": self.type}
        for key in ("code", "param", "doc_url", "decline_code", "charge", "payment_intent"):
            value = getattr(self, key)
            if value is not None:
                error[key] = value
        return {"error": error}

    def __repr__(self) -> str:
        return f"StripeError({self.status_code}, {self.type!r}, code={self.code!r}, message={self.message!r})"


def resource_missing(kind: str, object_id: str, param: str | None) -> StripeError:
    return StripeError(
        404,
        f"No such {kind}: {object_id}",
        code="resource_missing",
        param=param,
    )


def resource_already_exists(kind: str) -> StripeError:
    return StripeError(
        400,
        f"{kind} already exists.",
        code="resource_already_exists",
    )


def parameter_missing(param: str) -> StripeError:
    return StripeError(
        400,
        f"Missing required param: {param}.",
        code="parameter_missing",
        param=param,
    )


def _get_request_id(request: Request) -> str:
    """Extract request_id set by ObservabilityMiddleware."""
    return getattr(request.state, "request_id", "unknown")


def stripe_error_response(exc: StripeError, headers: dict[str, str] | None = None) -> JSONResponse:
    STRIPE_ERRORS.labels(exc.type, exc.code or "").inc()
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_error_handlers(app: object) -> None:
    @app.exception_handler(StripeError)  # type: ignore[attr-defined]
    async def stripe_exception_handler(request: Request, exc: StripeError) -> JSONResponse:
        logger.info(
            "Stripe error on %s %s: %s %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
            extra={"request_id": _get_request_id(request)},
        )
        return stripe_error_response(exc)

    @app.exception_handler(StarletteHTTPException)  # type: ignore[attr-defined]
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            message = f"Unrecognized request URL ({request.method}: {request.url.path})."
        elif exc.status_code == 405:
            message = f"Unrecognized request method ({request.method}: {request.url.path})."
        else:
            message = str(exc.detail)
        return stripe_error_response(StripeError(exc.status_code, message))

    @app.exception_handler(RequestValidationError)  # type: ignore[attr-defined]
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            extra={"request_id": _get_request_id(request)},
        )
        return stripe_error_response(StripeError(400, "Invalid request parameters."))

    @app.exception_handler(Exception)  # type: ignore[attr-defined]
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            extra={"request_id": _get_request_id(request)},
        )
        return stripe_error_response(
            StripeError(500, "Unexpected error.", "api_error")
        )
