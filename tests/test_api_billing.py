"""HTTP tests for customers, the catalog, subscriptions, payment intents and accounts."""
from __future__ import annotations

from fastapi.testclient import TestClient


class TestCustomersApi:
    def test_customer_lifecycle(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.post(
            "/v1/customers",
            data={"email": "ada@example.com", "source": "tok_visa"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        customer = resp.json()
        assert customer["sources"]["total_count"] == 1

        resp = client.post(
            f"/v1/customers/{customer['id']}", data={"name": "Ada"}, headers=auth_headers
        )
        assert resp.json()["name"] == "Ada"

        resp = client.get("/v1/customers", params={"email": "ada@example.com"}, headers=auth_headers)
        assert [c["id"] for c in resp.json()["data"]] == [customer["id"]]

        resp = client.delete(f"/v1/customers/{customer['id']}", headers=auth_headers)
        assert resp.json() == {"id": customer["id"], "object": "customer", "deleted": True}
        resp = client.get(f"/v1/customers/{customer['id']}", headers=auth_headers)
        assert resp.status_code == 404

    def test_sources_and_legacy_cards_paths(
        self, client: TestClient, auth_headers: dict
    ) -> None:
        customer = client.post("/v1/customers", data={}, headers=auth_headers).json()
        resp = client.post(
            f"/v1/customers/{customer['id']}/cards",
            data={"source": "tok_amex"},
            headers=auth_headers,
        )
        card = resp.json()
        assert card["brand"] == "American Express"

        resp = client.get(
            f"/v1/customers/{customer['id']}/sources/{card['id']}", headers=auth_headers
        )
        assert resp.json()["id"] == card["id"]

        resp = client.get(f"/v1/customers/{customer['id']}/sources", headers=auth_headers)
        body = resp.json()
        assert body["url"] == f"/v1/customers/{customer['id']}/sources"
        assert len(body["data"]) == 1

        resp = client.delete(
            f"/v1/customers/{customer['id']}/sources/{card['id']}", headers=auth_headers
        )
        assert resp.json()["deleted"] is True

    def test_unknown_update_param(self, client: TestClient, auth_headers: dict) -> None:
        customer = client.post("/v1/customers", data={}, headers=auth_headers).json()
        resp = client.post(
            f"/v1/customers/{customer['id']}", data={"colour": "red"}, headers=auth_headers
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "parameter_unknown"


class TestCatalogApi:
    def test_product_price_and_plan(self, client: TestClient, auth_headers: dict) -> None:
        product = client.post(
            "/v1/products", data={"name": "Gold"}, headers=auth_headers
        ).json()
        assert product["type"] == "service"

        resp = client.post(
            "/v1/prices",
            data={
                "currency": "usd",
                "product": product["id"],
                "unit_amount": "900",
                "recurring[interval]": "month",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["recurring"]["interval"] == "month"

        resp = client.post(
            "/v1/plans",
            data={"currency": "usd", "interval": "month", "product": product["id"], "amount": "900"},
            headers=auth_headers,
        )
        assert resp.status_code == 200

        resp = client.delete(f"/v1/products/{product['id']}", headers=auth_headers)
        assert resp.status_code == 400

    def test_tax_rate_and_sku(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.post(
            "/v1/tax_rates",
            data={"display_name": "VAT", "inclusive": "false", "percentage": "20.5"},
            headers=auth_headers,
        )
        assert resp.json()["percentage"] == 20.5

        good = client.post(
            "/v1/products", data={"name": "Mug", "type": "good"}, headers=auth_headers
        ).json()
        resp = client.post(
            "/v1/skus",
            data={
                "currency": "usd",
                "price": "1200",
                "product": good["id"],
                "inventory[type]": "infinite",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["inventory"]["type"] == "infinite"

    def test_checkout_session(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.post(
            "/v1/checkout/sessions",
            data={
                "cancel_url": "https://example.com/cancel",
                "success_url": "https://example.com/success",
                "payment_method_types[0]": "card",
                "line_items[0][name]": "Tea",
                "line_items[0][amount]": "500",
                "line_items[0][currency]": "usd",
                "line_items[0][quantity]": "2",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        session = resp.json()
        assert session["amount_total"] == 1000

        resp = client.get(f"/v1/checkout/sessions/{session['id']}", headers=auth_headers)
        assert resp.json()["id"] == session["id"]


class TestSubscriptionsApi:
    def test_subscribe_and_cancel(self, client: TestClient, auth_headers: dict) -> None:
        customer = client.post(
            "/v1/customers", data={"source": "tok_visa"}, headers=auth_headers
        ).json()
        resp = client.post(
            "/v1/subscriptions",
            data={"customer": customer["id"], "items[0][plan]": "plan_gold", "items[0][quantity]": "2"},
            headers=auth_headers,
        )
        assert resp.status_code == 200, resp.text
        subscription = resp.json()
        assert subscription["items"]["data"][0]["quantity"] == 2

        resp = client.get("/v1/plans/plan_gold", headers=auth_headers)
        assert resp.json()["product"] == "prod_gold"

        resp = client.delete(f"/v1/subscriptions/{subscription['id']}", headers=auth_headers)
        assert resp.json()["status"] == "canceled"

        resp = client.get("/v1/subscriptions", headers=auth_headers)
        assert resp.json()["data"] == []
        resp = client.get("/v1/subscriptions", params={"status": "all"}, headers=auth_headers)
        assert len(resp.json()["data"]) == 1


class TestPaymentIntentsApi:
    def test_confirm_and_capture(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.post(
            "/v1/payment_intents",
            data={"amount": "2000", "currency": "usd", "capture_method": "manual"},
            headers=auth_headers,
        )
        intent = resp.json()
        assert intent["status"] == "requires_payment_method"

        resp = client.post(
            f"/v1/payment_intents/{intent['id']}/confirm",
            data={"payment_method": "pm_card_visa"},
            headers=auth_headers,
        )
        assert resp.json()["status"] == "requires_capture"

        resp = client.post(f"/v1/payment_intents/{intent['id']}/capture", headers=auth_headers)
        assert resp.json()["status"] == "succeeded"
        assert resp.json()["amount_received"] == 2000

    def test_declined_confirm_returns_intent(
        self, client: TestClient, auth_headers: dict
    ) -> None:
        resp = client.post(
            "/v1/payment_intents",
            data={
                "amount": "2000",
                "currency": "usd",
                "payment_method": "tok_chargeDeclined",
                "confirm": "true",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 402
        error = resp.json()["error"]
        assert error["payment_intent"]["status"] == "requires_payment_method"
        assert error["payment_intent"]["last_payment_error"]["code"] == "card_declined"


class TestAccountsApi:
    def test_current_account(self, client: TestClient, auth_headers: dict) -> None:
        resp = client.get("/v1/account", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["object"] == "account"

    def test_connected_account(self, client: TestClient, auth_headers: dict) -> None:
        account = client.post(
            "/v1/accounts", data={"type": "custom"}, headers=auth_headers
        ).json()
        connected = {**auth_headers, "Stripe-Account": account["id"]}

        resp = client.get("/v1/account", headers=connected)
        assert resp.json()["id"] == account["id"]

        resp = client.post("/v1/accounts", data={"type": "custom"}, headers=connected)
        assert resp.status_code == 400

        resp = client.get("/v1/accounts", headers=auth_headers)
        assert [a["id"] for a in resp.json()["data"]] == [account["id"]]

        resp = client.delete(f"/v1/accounts/{account['id']}", headers=auth_headers)
        assert resp.json()["deleted"] is True
