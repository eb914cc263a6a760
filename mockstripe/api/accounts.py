from typing import Any

from fastapi import APIRouter, Depends

from mockstripe.api.deps import (
    get_account_id,
    get_body_params,
    get_censored_key,
    get_query_params,
)
from mockstripe.db import Store, get_store
from mockstripe.services import billing as billing_service
from mockstripe.services.response import list_response

router = APIRouter(prefix="/v1", tags=["accounts"])


@router.get("/account")
async def get_current_account(
    account_id: str = Depends(get_account_id),
    censored_key: str = Depends(get_censored_key),
    store: Store = Depends(get_store),
):
    return billing_service.accounts.retrieve_current(store, account_id, censored_key)


@router.post("/accounts")
async def create_account(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.accounts.create(store, account_id, params)


@router.get("/accounts")
async def list_accounts(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.accounts.list(store, account_id, params)
    return list_response(page, "/v1/accounts")


@router.get("/accounts/{connected_id}")
async def get_account(
    connected_id: str,
    account_id: str = Depends(get_account_id),
    censored_key: str = Depends(get_censored_key),
    store: Store = Depends(get_store),
):
    return billing_service.accounts.retrieve(store, account_id, connected_id, censored_key)


@router.post("/accounts/{connected_id}")
async def update_account(
    connected_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    censored_key: str = Depends(get_censored_key),
    store: Store = Depends(get_store),
):
    return billing_service.accounts.update(
        store, account_id, connected_id, params, censored_key
    )


@router.delete("/accounts/{connected_id}")
async def delete_account(
    connected_id: str,
    account_id: str = Depends(get_account_id),
    censored_key: str = Depends(get_censored_key),
    store: Store = Depends(get_store),
):
    return billing_service.accounts.delete(store, account_id, connected_id, censored_key)
