from typing import Any

from fastapi import APIRouter, Depends

from mockstripe.api.deps import get_account_id, get_body_params, get_query_params
from mockstripe.db import Store, get_store
from mockstripe.services import billing as billing_service
from mockstripe.services.response import list_response

router = APIRouter(prefix="/v1", tags=["customers"])


# ── Customers ────────────────────────────────────────────


@router.post("/customers")
async def create_customer(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.create(store, account_id, params)


@router.get("/customers")
async def list_customers(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.customers.list(store, account_id, params)
    return list_response(page, "/v1/customers")


@router.get("/customers/{customer_id}")
async def get_customer(
    customer_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.retrieve(store, account_id, customer_id)


@router.post("/customers/{customer_id}")
async def update_customer(
    customer_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.update(store, account_id, customer_id, params)


@router.delete("/customers/{customer_id}")
async def delete_customer(
    customer_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.delete(store, account_id, customer_id)


# ── Sources ──────────────────────────────────────────────
# /cards/ is the legacy spelling of /sources/


@router.post("/customers/{customer_id}/sources")
@router.post("/customers/{customer_id}/cards")
async def create_customer_card(
    customer_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.create_card(store, account_id, customer_id, params)


@router.get("/customers/{customer_id}/sources")
@router.get("/customers/{customer_id}/cards")
async def list_customer_cards(
    customer_id: str,
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.customers.list_cards(store, account_id, customer_id, params)
    return list_response(page, f"/v1/customers/{customer_id}/sources")


@router.get("/customers/{customer_id}/sources/{card_id}")
@router.get("/customers/{customer_id}/cards/{card_id}")
async def get_customer_card(
    customer_id: str,
    card_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.retrieve_card(store, account_id, customer_id, card_id)


@router.delete("/customers/{customer_id}/sources/{card_id}")
@router.delete("/customers/{customer_id}/cards/{card_id}")
async def delete_customer_card(
    customer_id: str,
    card_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.customers.delete_card(store, account_id, customer_id, card_id)
