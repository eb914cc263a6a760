from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends

from mockstripe.api.deps import get_account_id, get_body_params, get_query_params, run_deferred
from mockstripe.db import Store, get_store
from mockstripe.services import billing as billing_service
from mockstripe.services.response import list_response

router = APIRouter(prefix="/v1", tags=["charges"])


# ── Charges ──────────────────────────────────────────────


@router.post("/charges")
async def create_charge(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
    _tasks: BackgroundTasks = Depends(run_deferred),
):
    return billing_service.charges.create(store, account_id, params)


@router.get("/charges")
async def list_charges(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.charges.list(store, account_id, params)
    return list_response(page, "/v1/charges")


@router.get("/charges/{charge_id}")
async def get_charge(
    charge_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.charges.retrieve(store, account_id, charge_id)


@router.post("/charges/{charge_id}")
async def update_charge(
    charge_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.charges.update(store, account_id, charge_id, params)


@router.post("/charges/{charge_id}/capture")
async def capture_charge(
    charge_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.charges.capture(store, account_id, charge_id, params)


@router.get("/charges/{charge_id}/refunds")
async def list_charge_refunds(
    charge_id: str,
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.charges.list_refunds(store, account_id, charge_id, params)
    return list_response(page, f"/v1/charges/{charge_id}/refunds")


# ── Refunds ──────────────────────────────────────────────


@router.post("/refunds")
async def create_refund(
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.refunds.create(store, account_id, params)


@router.get("/refunds")
async def list_refunds(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.refunds.list(store, account_id, params)
    return list_response(page, "/v1/refunds")


@router.get("/refunds/{refund_id}")
async def get_refund(
    refund_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.refunds.retrieve(store, account_id, refund_id)


@router.post("/refunds/{refund_id}")
async def update_refund(
    refund_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.refunds.update(store, account_id, refund_id, params)


# ── Disputes ─────────────────────────────────────────────


@router.get("/disputes")
async def list_disputes(
    params: dict[str, Any] = Depends(get_query_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    page = billing_service.disputes.list(store, account_id, params)
    return list_response(page, "/v1/disputes")


@router.get("/disputes/{dispute_id}")
async def get_dispute(
    dispute_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.disputes.retrieve(store, account_id, dispute_id)


@router.post("/disputes/{dispute_id}")
async def update_dispute(
    dispute_id: str,
    params: dict[str, Any] = Depends(get_body_params),
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.disputes.update(store, account_id, dispute_id, params)


@router.post("/disputes/{dispute_id}/close")
async def close_dispute(
    dispute_id: str,
    account_id: str = Depends(get_account_id),
    store: Store = Depends(get_store),
):
    return billing_service.disputes.close(store, account_id, dispute_id)
