from typing import Any

from fastapi import APIRouter, Depends

from mockstripe.api.deps import get_account_id, get_body_params, get_query_params
from mockstripe.db import Store, get_store
from mockstripe.services import billing as billing_service
from mockstripe.services.response import list_response

router = APIRouter(prefix="/v1", tags=["billing"])


# ── Subscriptions ────────────────────────────────────────


@router.post("/subscriptions")
async def create_subscription(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.subscriptions.create(store, account_id, params)


@router.get("/subscriptions")
async def list_subscriptions(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.subscriptions.list(store, account_id, params)
    return list_response(page, "/v1/subscriptions")


@router.get("/subscriptions/{subscription_id}")
async def get_subscription(
    subscription_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.subscriptions.retrieve(store, account_id, subscription_id)


@router.post("/subscriptions/{subscription_id}")
async def update_subscription(
    subscription_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.subscriptions.update(store, account_id, subscription_id, params)


@router.delete("/subscriptions/{subscription_id}")
async def cancel_subscription(
    subscription_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.subscriptions.cancel(store, account_id, subscription_id)


# ── Subscription items ───────────────────────────────────


@router.get("/subscription_items")
async def list_subscription_items(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.subscriptions.list_items(store, account_id, params)
    return list_response(page, "/v1/subscription_items")


@router.get("/subscription_items/{item_id}")
async def get_subscription_item(
    item_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.subscriptions.retrieve_item(store, account_id, item_id)


@router.post("/subscription_items/{item_id}")
async def update_subscription_item(
    item_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.subscriptions.update_item(store, account_id, item_id, params)


# ── Plans ────────────────────────────────────────────────


@router.post("/plans")
async def create_plan(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.plans.create(store, account_id, params)


@router.get("/plans")
async def list_plans(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.plans.list(store, account_id, params)
    return list_response(page, "/v1/plans")


@router.get("/plans/{plan_id}")
async def get_plan(
    plan_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.plans.retrieve(store, account_id, plan_id)


@router.post("/plans/{plan_id}")
async def update_plan(
    plan_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.plans.update(store, account_id, plan_id, params)


@router.delete("/plans/{plan_id}")
async def delete_plan(
    plan_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.plans.delete(store, account_id, plan_id)


# ── Prices ───────────────────────────────────────────────


@router.post("/prices")
async def create_price(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.prices.create(store, account_id, params)


@router.get("/prices")
async def list_prices(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.prices.list(store, account_id, params)
    return list_response(page, "/v1/prices")


@router.get("/prices/{price_id}")
async def get_price(
    price_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.prices.retrieve(store, account_id, price_id)


@router.post("/prices/{price_id}")
async def update_price(
    price_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.prices.update(store, account_id, price_id, params)


# ── Products ─────────────────────────────────────────────


@router.post("/products")
async def create_product(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.products.create(store, account_id, params)


@router.get("/products")
async def list_products(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.products.list(store, account_id, params)
    return list_response(page, "/v1/products")


@router.get("/products/{product_id}")
async def get_product(
    product_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.products.retrieve(store, account_id, product_id)


@router.post("/products/{product_id}")
async def update_product(
    product_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.products.update(store, account_id, product_id, params)


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.products.delete(store, account_id, product_id)


# ── SKUs ─────────────────────────────────────────────────


@router.post("/skus")
async def create_sku(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.skus.create(store, account_id, params)


@router.get("/skus")
async def list_skus(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.skus.list(store, account_id, params)
    return list_response(page, "/v1/skus")


@router.get("/skus/{sku_id}")
async def get_sku(
    sku_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.skus.retrieve(store, account_id, sku_id)


@router.post("/skus/{sku_id}")
async def update_sku(
    sku_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.skus.update(store, account_id, sku_id, params)


# ── Tax rates ────────────────────────────────────────────


@router.post("/tax_rates")
async def create_tax_rate(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.tax_rates.create(store, account_id, params)


@router.get("/tax_rates")
async def list_tax_rates(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.tax_rates.list(store, account_id, params)
    return list_response(page, "/v1/tax_rates")


@router.get("/tax_rates/{tax_rate_id}")
async def get_tax_rate(
    tax_rate_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.tax_rates.retrieve(store, account_id, tax_rate_id)


@router.post("/tax_rates/{tax_rate_id}")
async def update_tax_rate(
    tax_rate_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.tax_rates.update(store, account_id, tax_rate_id, params)


# ── Checkout sessions ────────────────────────────────────


@router.post("/checkout/sessions")
async def create_checkout_session(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.checkout_sessions.create(store, account_id, params)


@router.get("/checkout/sessions")
async def list_checkout_sessions(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.checkout_sessions.list(store, account_id, params)
    return list_response(page, "/v1/checkout/sessions")


@router.get("/checkout/sessions/{session_id}")
async def get_checkout_session(
    session_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.checkout_sessions.retrieve(store, account_id, session_id)
