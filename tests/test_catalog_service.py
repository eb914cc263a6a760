"""Tests for products, plans, prices, SKUs, tax rates and checkout sessions."""

import pytest

from mockstripe.config import settings
from mockstripe.errors import StripeError
from mockstripe.services import billing as billing_service

ACCOUNT = settings.default_account_id


# ── Products ─────────────────────────────────────────────


def test_product_defaults_to_service(product):
    assert product["id"].startswith("prod_")
    assert product["type"] == "service"
    assert product["shippable"] is None
    assert product["active"] is True


def test_good_product_is_shippable(store):
    product = billing_service.products.create(store, ACCOUNT, {"name": "Mug", "type": "good"})
    assert product["shippable"] is True


def test_product_requires_name(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.products.create(store, ACCOUNT, {})
    assert exc_info.value.code == "parameter_missing"
    assert exc_info.value.param == "name"


def test_product_invalid_type(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.products.create(store, ACCOUNT, {"name": "Mug", "type": "gadget"})
    assert exc_info.value.message == "Invalid type: must be one of service or good"


def test_update_product_rejects_empty_name(store, product):
    with pytest.raises(StripeError) as exc_info:
        billing_service.products.update(store, ACCOUNT, product["id"], {"name": ""})
    assert exc_info.value.param == "name"


def test_delete_product_with_prices_is_blocked(store, product):
    billing_service.prices.create(
        store, ACCOUNT, {"currency": "usd", "product": product["id"], "unit_amount": 500}
    )
    with pytest.raises(StripeError) as exc_info:
        billing_service.products.delete(store, ACCOUNT, product["id"])
    assert "prices" in exc_info.value.message


def test_delete_product(store, product):
    result = billing_service.products.delete(store, ACCOUNT, product["id"])
    assert result["deleted"] is True
    assert not store.products.contains(ACCOUNT, product["id"])


def test_list_products_by_type(store, product):
    billing_service.products.create(store, ACCOUNT, {"name": "Mug", "type": "good"})
    page = billing_service.products.list(store, ACCOUNT, {"type": "service"})
    assert [p["id"] for p in page.data] == [product["id"]]


# ── Plans ────────────────────────────────────────────────


def test_create_plan(store, product):
    plan = billing_service.plans.create(
        store,
        ACCOUNT,
        {"currency": "USD", "interval": "month", "product": product["id"], "amount": 1500},
    )
    assert plan["id"].startswith("plan_")
    assert plan["currency"] == "usd"
    assert plan["amount"] == 1500
    assert plan["interval_count"] == 1
    assert plan["usage_type"] == "licensed"
    assert plan["aggregate_usage"] is None


def test_plan_required_params(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.plans.create(store, ACCOUNT, {"currency": "usd", "interval": "month"})
    assert exc_info.value.param == "product"


def test_plan_invalid_interval(store, product):
    with pytest.raises(StripeError) as exc_info:
        billing_service.plans.create(
            store, ACCOUNT, {"currency": "usd", "interval": "hour", "product": product["id"]}
        )
    assert exc_info.value.param == "interval"


def test_plan_rejects_good_product(store):
    good = billing_service.products.create(store, ACCOUNT, {"name": "Mug", "type": "good"})
    with pytest.raises(StripeError) as exc_info:
        billing_service.plans.create(
            store, ACCOUNT, {"currency": "usd", "interval": "month", "product": good["id"]}
        )
    assert exc_info.value.param == "product"


def test_plan_with_inline_product(store):
    plan = billing_service.plans.create(
        store,
        ACCOUNT,
        {"currency": "usd", "interval": "year", "product": {"name": "Annual"}},
    )
    product = billing_service.products.retrieve(store, ACCOUNT, plan["product"])
    assert product["name"] == "Annual"
    assert product["type"] == "service"


def test_metered_plan_defaults_aggregate_usage(store, product):
    plan = billing_service.plans.create(
        store,
        ACCOUNT,
        {
            "currency": "usd",
            "interval": "month",
            "product": product["id"],
            "usage_type": "metered",
        },
    )
    assert plan["aggregate_usage"] == "sum"


def test_delete_plan(store, product):
    plan = billing_service.plans.create(
        store, ACCOUNT, {"currency": "usd", "interval": "month", "product": product["id"]}
    )
    billing_service.plans.delete(store, ACCOUNT, plan["id"])
    with pytest.raises(StripeError):
        billing_service.plans.retrieve(store, ACCOUNT, plan["id"])


# ── Prices ───────────────────────────────────────────────


def test_create_recurring_price(store, product):
    price = billing_service.prices.create(
        store,
        ACCOUNT,
        {
            "currency": "usd",
            "product": product["id"],
            "unit_amount": 900,
            "recurring": {"interval": "month"},
        },
    )
    assert price["id"].startswith("price_")
    assert price["type"] == "recurring"
    assert price["unit_amount_decimal"] == "900"
    assert price["recurring"]["interval_count"] == 1


def test_price_with_product_data(store):
    price = billing_service.prices.create(
        store, ACCOUNT, {"currency": "usd", "product_data": {"name": "Tea"}, "unit_amount": 300}
    )
    assert price["type"] == "one_time"
    assert billing_service.products.retrieve(store, ACCOUNT, price["product"])["name"] == "Tea"


def test_price_needs_exactly_one_product_source(store, product):
    with pytest.raises(StripeError):
        billing_service.prices.create(store, ACCOUNT, {"currency": "usd", "unit_amount": 300})
    with pytest.raises(StripeError):
        billing_service.prices.create(
            store,
            ACCOUNT,
            {
                "currency": "usd",
                "unit_amount": 300,
                "product": product["id"],
                "product_data": {"name": "Tea"},
            },
        )


def test_price_requires_unit_amount(store, product):
    with pytest.raises(StripeError) as exc_info:
        billing_service.prices.create(store, ACCOUNT, {"currency": "usd", "product": product["id"]})
    assert exc_info.value.param == "unit_amount"


def test_price_unknown_product(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.prices.create(
            store, ACCOUNT, {"currency": "usd", "product": "prod_nope", "unit_amount": 1}
        )
    assert exc_info.value.status_code == 404
    assert exc_info.value.param == "product"


def test_price_invalid_interval(store, product):
    with pytest.raises(StripeError) as exc_info:
        billing_service.prices.create(
            store,
            ACCOUNT,
            {
                "currency": "usd",
                "product": product["id"],
                "unit_amount": 100,
                "recurring": {"interval": "fortnight"},
            },
        )
    assert exc_info.value.param == "recurring[interval]"


def test_price_unit_amount_decimal(store, product):
    price = billing_service.prices.create(
        store,
        ACCOUNT,
        {"currency": "usd", "product": product["id"], "unit_amount_decimal": "12.5"},
    )
    assert price["unit_amount"] == 12
    assert price["unit_amount_decimal"] == "12.5"


def test_list_prices_by_type(store, product):
    billing_service.prices.create(
        store, ACCOUNT, {"currency": "usd", "product": product["id"], "unit_amount": 100}
    )
    recurring = billing_service.prices.create(
        store,
        ACCOUNT,
        {
            "currency": "usd",
            "product": product["id"],
            "unit_amount": 100,
            "recurring": {"interval": "week"},
        },
    )
    page = billing_service.prices.list(store, ACCOUNT, {"type": "recurring"})
    assert [p["id"] for p in page.data] == [recurring["id"]]


# ── SKUs ─────────────────────────────────────────────────


def test_create_sku(store):
    good = billing_service.products.create(store, ACCOUNT, {"name": "Mug", "type": "good"})
    sku = billing_service.skus.create(
        store,
        ACCOUNT,
        {
            "currency": "usd",
            "price": 1200,
            "product": good["id"],
            "inventory": {"type": "finite", "quantity": "5"},
        },
    )
    assert sku["id"].startswith("sku_")
    assert sku["inventory"]["quantity"] == 5
    page = billing_service.skus.list(store, ACCOUNT, {"product": good["id"]})
    assert [s["id"] for s in page.data] == [sku["id"]]
    with pytest.raises(StripeError):
        billing_service.products.delete(store, ACCOUNT, good["id"])


def test_sku_requires_inventory_type(store, product):
    with pytest.raises(StripeError) as exc_info:
        billing_service.skus.create(
            store,
            ACCOUNT,
            {"currency": "usd", "price": 1, "product": product["id"], "inventory": {}},
        )
    assert exc_info.value.param == "inventory[type]"


def test_sku_invalid_inventory_type(store, product):
    with pytest.raises(StripeError) as exc_info:
        billing_service.skus.create(
            store,
            ACCOUNT,
            {
                "currency": "usd",
                "price": 1,
                "product": product["id"],
                "inventory": {"type": "endless"},
            },
        )
    assert exc_info.value.param == "inventory[type]"


def test_sku_unknown_product(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.skus.create(
            store,
            ACCOUNT,
            {"currency": "usd", "price": 1, "product": "prod_nope", "inventory": {"type": "infinite"}},
        )
    assert exc_info.value.status_code == 404


# ── Tax rates ────────────────────────────────────────────


def test_create_tax_rate(store):
    tax_rate = billing_service.tax_rates.create(
        store, ACCOUNT, {"display_name": "VAT", "inclusive": False, "percentage": 20}
    )
    assert tax_rate["id"].startswith("txr_")
    assert tax_rate["percentage"] == 20
    assert tax_rate["active"] is True


@pytest.mark.parametrize("percentage", [-1, 100.5])
def test_tax_rate_percentage_bounds(store, percentage):
    with pytest.raises(StripeError) as exc_info:
        billing_service.tax_rates.create(
            store, ACCOUNT, {"display_name": "VAT", "inclusive": True, "percentage": percentage}
        )
    assert exc_info.value.param == "percentage"


def test_tax_rate_requires_inclusive(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.tax_rates.create(
            store, ACCOUNT, {"display_name": "VAT", "percentage": 5}
        )
    assert exc_info.value.param == "inclusive"


def test_list_tax_rates_by_inclusive(store):
    billing_service.tax_rates.create(
        store, ACCOUNT, {"display_name": "VAT", "inclusive": False, "percentage": 20}
    )
    inclusive = billing_service.tax_rates.create(
        store, ACCOUNT, {"display_name": "GST", "inclusive": True, "percentage": 10}
    )
    page = billing_service.tax_rates.list(store, ACCOUNT, {"inclusive": "true"})
    assert [t["id"] for t in page.data] == [inclusive["id"]]


# ── Checkout sessions ────────────────────────────────────


def test_create_checkout_session(store):
    session = billing_service.checkout_sessions.create(
        store,
        ACCOUNT,
        {
            "cancel_url": "https://example.com/cancel",
            "success_url": "https://example.com/success",
            "payment_method_types": ["card"],
            "line_items": [{"name": "Tea", "amount": 500, "currency": "usd", "quantity": 2}],
        },
    )
    assert session["id"].startswith("cs_test_")
    assert session["amount_subtotal"] == 1000
    assert session["amount_total"] == 1000
    assert session["mode"] == "payment"
    assert session["payment_status"] == "unpaid"
    assert billing_service.checkout_sessions.retrieve(store, ACCOUNT, session["id"]) is session


def test_checkout_session_priced_line_item(store, product):
    price = billing_service.prices.create(
        store, ACCOUNT, {"currency": "eur", "product": product["id"], "unit_amount": 250}
    )
    session = billing_service.checkout_sessions.create(
        store,
        ACCOUNT,
        {
            "cancel_url": "https://example.com/cancel",
            "success_url": "https://example.com/success",
            "payment_method_types": ["card"],
            "line_items": [{"price": price["id"], "quantity": 3}],
        },
    )
    assert session["amount_subtotal"] == 750
    assert session["currency"] == "eur"


def test_checkout_session_required_params(store):
    with pytest.raises(StripeError) as exc_info:
        billing_service.checkout_sessions.create(
            store, ACCOUNT, {"success_url": "https://example.com/success"}
        )
    assert exc_info.value.code == "parameter_missing"
    assert exc_info.value.param == "cancel_url"
