"""Tests for customers and their card sources."""

import pytest

from mockstripe.config import settings
from mockstripe.errors import StripeError
from mockstripe.services import billing as billing_service

ACCOUNT = settings.default_account_id


def test_create_customer_with_card(store, customer):
    assert customer["id"].startswith("cus_")
    assert customer["email"] == "ada@example.com"
    assert customer["sources"]["total_count"] == 1
    card = customer["sources"]["data"][0]
    assert card["object"] == "card"
    assert card["customer"] == customer["id"]
    assert card["last4"] == "4242"
    assert customer["default_source"] == card["id"]
    assert billing_service.customers.retrieve(store, ACCOUNT, customer["id"]) is customer


def test_create_customer_without_source(store):
    customer = billing_service.customers.create(store, ACCOUNT, {"name": "Grace"})
    assert customer["default_source"] is None
    assert customer["sources"]["data"] == []
    assert customer["metadata"] == {}


def test_create_customer_with_forget_token_is_not_stored(store):
    customer = billing_service.customers.create(store, ACCOUNT, {"source": "tok_forget"})
    assert customer["default_source"] is not None
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.retrieve(store, ACCOUNT, customer["id"])
    assert exc_info.value.status_code == 404


def test_declined_attach_stores_nothing(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.create(
            store, ACCOUNT, {"id": "cus_expired", "source": "tok_chargeDeclinedExpiredCard"}
        )
    assert exc_info.value.status_code == 402
    assert exc_info.value.code == "expired_card"
    assert not store.customers.contains(ACCOUNT, "cus_expired")


def test_customer_fail_token_attaches(store):
    customer = billing_service.customers.create(
        store, ACCOUNT, {"source": "tok_chargeCustomerFail"}
    )
    assert customer["sources"]["total_count"] == 1


def test_create_customer_duplicate_id(store):
    billing_service.customers.create(store, ACCOUNT, {"id": "cus_ada"})
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.create(store, ACCOUNT, {"id": "cus_ada"})
    assert exc_info.value.code == "resource_already_exists"


def test_retrieve_unknown_customer(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.retrieve(store, ACCOUNT, "cus_missing")
    assert exc_info.value.status_code == 404
    assert exc_info.value.code == "resource_missing"
    assert exc_info.value.message == "No such customer: cus_missing"


def test_update_customer_fields(store, customer):
    updated = billing_service.customers.update(
        store,
        ACCOUNT,
        customer["id"],
        {"email": "grace@example.com", "metadata": {"tier": "gold"}},
    )
    assert updated["email"] == "grace@example.com"
    assert updated["metadata"] == {"tier": "gold"}


def test_update_customer_new_source_becomes_default(store, customer):
    first = customer["default_source"]
    updated = billing_service.customers.update(
        store, ACCOUNT, customer["id"], {"source": "tok_mastercard"}
    )
    assert updated["sources"]["total_count"] == 2
    assert updated["default_source"] != first
    assert updated["sources"]["data"][-1]["brand"] == "MasterCard"


def test_update_customer_unknown_default_source(store, customer):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.update(
            store, ACCOUNT, customer["id"], {"default_source": "card_missing"}
        )
    assert exc_info.value.status_code == 404
    assert exc_info.value.param == "default_source"


def test_update_customer_unknown_param(store, customer):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.update(store, ACCOUNT, customer["id"], {"colour": "red"})
    assert exc_info.value.code == "parameter_unknown"
    assert exc_info.value.param == "colour"


def test_delete_customer(store, customer):
    result = billing_service.customers.delete(store, ACCOUNT, customer["id"])
    assert result == {"id": customer["id"], "object": "customer", "deleted": True}
    with pytest.raises(StripeError):
        billing_service.customers.retrieve(store, ACCOUNT, customer["id"])


def test_list_customers_by_email(store, customer):
    billing_service.customers.create(store, ACCOUNT, {"email": "grace@example.com"})
    page = billing_service.customers.list(store, ACCOUNT, {"email": "ada@example.com"})
    assert [c["id"] for c in page.data] == [customer["id"]]


# ── Sources ──────────────────────────────────────────────


def test_add_and_remove_cards(store, customer):
    card = billing_service.customers.create_card(
        store, ACCOUNT, customer["id"], {"source": "tok_amex"}
    )
    assert card["brand"] == "American Express"
    assert customer["sources"]["total_count"] == 2
    fetched = billing_service.customers.retrieve_card(store, ACCOUNT, customer["id"], card["id"])
    assert fetched is card

    page = billing_service.customers.list_cards(store, ACCOUNT, customer["id"], {})
    assert [c["id"] for c in page.data][0] == card["id"]

    default = customer["default_source"]
    result = billing_service.customers.delete_card(store, ACCOUNT, customer["id"], default)
    assert result["deleted"] is True
    assert customer["default_source"] == card["id"]
    assert customer["sources"]["total_count"] == 1


def test_create_card_requires_source(store, customer):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.create_card(store, ACCOUNT, customer["id"], {})
    assert exc_info.value.code == "parameter_missing"


def test_create_card_unknown_customer(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.create_card(store, ACCOUNT, "cus_nope", {"source": "tok_visa"})
    assert exc_info.value.status_code == 404
    assert exc_info.value.param == "customer"


def test_retrieve_missing_card(store, customer):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.retrieve_card(store, ACCOUNT, customer["id"], "card_nope")
    assert exc_info.value.message == (
        f"Customer {customer['id']} does not have card with ID card_nope"
    )


def test_card_details_are_rejected(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.customers.create(
            store, ACCOUNT, {"source": {"object": "card", "number": "4242424242424242"}}
        )
    assert exc_info.value.param == "source"
