"""Tests for Stripe-shaped error envelopes and request ids."""
from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from mockstripe.errors import StripeError, register_error_handlers
from mockstripe.observability import ObservabilityMiddleware


@pytest.fixture
def app_with_errors() -> FastAPI:
    app = FastAPI()
    app.add_middleware(ObservabilityMiddleware)
    register_error_handlers(app)

    @app.get("/ok")
    def ok():
        return {"ok": True}

    @app.get("/decline")
    def decline():
        raise StripeError(
            402,
            "Your card was declined.",
            "card_error",
            code="card_declined",
            decline_code="generic_decline",
            charge="ch_123",
        )

    return app


@pytest.fixture
def bare_client(app_with_errors: FastAPI) -> TestClient:
    return TestClient(app_with_errors, raise_server_exceptions=False)


class TestErrorEnvelope:
    def test_card_error(self, bare_client: TestClient) -> None:
        resp = bare_client.get("/decline")
        assert resp.status_code == 402
        assert resp.json() == {
            "error": {
                "message": "Your card was declined.",
                "type": "card_error",
                "code": "card_declined",
                "doc_url": "https://stripe.com/docs/error-codes/card-declined",
                "decline_code": "generic_decline",
                "charge": "ch_123",
            }
        }

    def test_request_id_propagated_from_header(self, bare_client: TestClient) -> None:
        resp = bare_client.get("/ok", headers={"X-Request-Id": "req_custom"})
        assert resp.headers["x-request-id"] == "req_custom"
        assert resp.headers["request-id"] == "req_custom"

    def test_success_response_has_request_id(self, bare_client: TestClient) -> None:
        resp = bare_client.get("/ok")
        assert resp.headers["request-id"].startswith("req_")
        assert len(resp.headers["request-id"]) == len("req_") + 14

    def test_unknown_error_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            StripeError(400, "nope", "made_up_error")


class TestRoutingErrors:
    def test_unknown_route(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.get("/v1/widgets", headers=auth_headers)
        assert resp.status_code == 404
        error = resp.json()["error"]
        assert error["type"] == "invalid_request_error"
        assert error["message"] == "Unrecognized request URL (GET: /v1/widgets)."

    def test_unknown_method(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.put("/v1/charges", headers=auth_headers)
        assert resp.status_code == 405
        assert resp.json()["error"]["message"] == (
            "Unrecognized request method (PUT: /v1/charges)."
        )

    def test_invalid_json_body(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.post(
            "/v1/charges",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid JSON body."

    def test_invalid_integer_param(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.post(
            "/v1/charges",
            data={"amount": "lots", "currency": "usd", "source": "tok_visa"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "parameter_invalid_integer"
        assert error["param"] == "amount"

    def test_metrics_endpoint(self, client: TestClient, auth_headers: dict) -> None:
        client.get("/v1/charges/ch_missing", headers=auth_headers)
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "mockstripe_requests_total" in resp.text
        assert "mockstripe_stripe_errors_total" in resp.text
