from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends

from mockstripe.api.deps import get_account_id, get_body_params, get_query_params, run_deferred
from mockstripe.db import Store, get_store
from mockstripe.services import billing as billing_service
from mockstripe.services.response import list_response

router = APIRouter(prefix="/v1", tags=["payment_intents"])


@router.post("/payment_intents")
async def create_payment_intent(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
    _tasks: BackgroundTasks = Depends(run_deferred),
):
    return billing_service.payment_intents.create(store, account_id, params)


@router.get("/payment_intents")
async def list_payment_intents(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.payment_intents.list(store, account_id, params)
    return list_response(page, "/v1/payment_intents")


@router.get("/payment_intents/{payment_intent_id}")
async def get_payment_intent(
    payment_intent_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.payment_intents.retrieve(store, account_id, payment_intent_id)


@router.post("/payment_intents/{payment_intent_id}")
async def update_payment_intent(
    payment_intent_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.payment_intents.update(store, account_id, payment_intent_id, params)


@router.post("/payment_intents/{payment_intent_id}/confirm")
async def confirm_payment_intent(
    payment_intent_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
    _tasks: BackgroundTasks = Depends(run_deferred),
):
    return billing_service.payment_intents.confirm(store, account_id, payment_intent_id, params)


@router.post("/payment_intents/{payment_intent_id}/capture")
async def capture_payment_intent(
    payment_intent_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.payment_intents.capture(store, account_id, payment_intent_id, params)


@router.post("/payment_intents/{payment_intent_id}/cancel")
async def cancel_payment_intent(
    payment_intent_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.payment_intents.cancel(store, account_id, payment_intent_id, params)
