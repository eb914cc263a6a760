import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError, parameter_missing
from mockstripe.schemas.billing import RefundCreate, RefundListParams, RefundUpdate
from mockstripe.services import verify
from mockstripe.services.billing.disputes import Disputes
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    generate_id,
    get_or_404,
    merge_metadata,
    new_id,
    now_ts,
    parse_params,
    stringify_metadata,
)

logger = logging.getLogger(__name__)

REFUND_REASONS = ["duplicate", "fraudulent", "requested_by_customer"]


def _dollars(cents: int) -> str:
    value = cents / 100
    return str(int(value)) if value.is_integer() else str(value)


def record_refund(
    store: Store,
    account_id: str,
    charge: Record,
    amount: int,
    *,
    reason: str | None = None,
    metadata: Any = None,
    refund_id: str | None = None,
) -> Record:
    """Store a refund and apply it to the charge. No validation happens here."""
    refund: Record = {
        "id": refund_id or "re_" + generate_id(24),
        "object": "refund",
        "amount": amount,
        "balance_transaction": "txn_" + generate_id(24),
        "charge": charge["id"],
        "created": now_ts(),
        "currency": charge["currency"].lower(),
        "metadata": stringify_metadata(metadata),
        "payment_intent": charge.get("payment_intent"),
        "reason": reason,
        "receipt_number": None,
        "source_transfer_reversal": None,
        "status": "succeeded",
        "transfer_reversal": None,
    }
    store.refunds.put(account_id, refund)
    refunds = charge["refunds"]
    refunds["data"].insert(0, refund)
    refunds["total_count"] += 1
    charge["amount_refunded"] += amount
    charge["refunded"] = charge["amount_refunded"] == charge["amount"]
    logger.info("Created refund %s of %d on %s", refund["id"], amount, charge["id"])
    return refund


class Refunds:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(RefundCreate, params)
        values = payload.present()
        if "amount" in values:
            if payload.amount is None:
                raise parameter_missing("amount")
            verify.positive_amount(payload.amount, "amount")
        verify.required_value(values, "reason", [*REFUND_REASONS, None])
        if not payload.charge and not payload.payment_intent:
            raise parameter_missing("charge")

        with store.lock:
            charge_id = payload.charge
            if not charge_id:
                payment_intent = get_or_404(
                    store.payment_intents,
                    account_id,
                    payload.payment_intent,
                    "payment_intent",
                    "payment_intent",
                )
                charge_id = payment_intent.get("latest_charge")
                if not charge_id:
                    raise StripeError(
                        400,
                        f"PaymentIntent {payment_intent['id']} does not have a successful "
                        "charge to refund.",
                        param="payment_intent",
                    )
            charge = get_or_404(store.charges, account_id, charge_id, "charge", "charge")
            if charge["amount_refunded"] >= charge["amount"]:
                raise StripeError(
                    400,
                    f"Charge {charge['id']} has already been refunded.",
                    code="charge_already_refunded",
                )
            if charge["dispute"]:
                dispute = Disputes.retrieve(store, account_id, charge["dispute"], "dispute")
                if not dispute["is_charge_refundable"]:
                    raise StripeError(
                        400,
                        f"Charge {charge['id']} has been charged back; cannot issue a refund.",
                        code="charge_disputed",
                    )

            remaining = charge["amount"] - charge["amount_refunded"]
            amount = payload.amount if payload.amount is not None else remaining
            if amount > remaining:
                raise StripeError(
                    400,
                    f"Refund amount (${_dollars(amount)}) is greater than unrefunded "
                    f"amount on charge (${_dollars(remaining)})",
                    param="amount",
                )
            if not charge["captured"] and amount != charge["amount"]:
                raise StripeError(
                    400,
                    "You cannot partially refund an uncaptured charge. Instead, capture "
                    "the charge for an amount less than the original amount",
                    param="amount",
                )
            refund_id = new_id(store.refunds, account_id, payload.id, "re_", "Refund")
            return record_refund(
                store,
                account_id,
                charge,
                amount,
                reason=payload.reason,
                metadata=payload.metadata,
                refund_id=refund_id,
            )

    @staticmethod
    def retrieve(store: Store, account_id: str, refund_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve refund %s in %s", refund_id, account_id)
        return get_or_404(store.refunds, account_id, refund_id, "refund", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(RefundListParams, params)
        data = store.refunds.get_all(account_id)
        if query.charge:
            data = [d for d in data if d["charge"] == query.charge]
        return apply_list_options(
            data, query, lambda object_id, param: Refunds.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, refund_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(RefundUpdate, params)
        values = payload.present()
        with store.lock:
            refund = Refunds.retrieve(store, account_id, refund_id)
            if "metadata" in values:
                refund["metadata"] = merge_metadata(refund["metadata"], values["metadata"])
        logger.info("Updated refund %s in %s", refund_id, account_id)
        return refund


refunds = Refunds()
