import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import DisputeListParams, DisputeUpdate
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    generate_id,
    get_or_404,
    insert,
    merge_metadata,
    now_ts,
    parse_params,
)

logger = logging.getLogger(__name__)

DISPUTE_FEE = 1500

EVIDENCE_FIELDS = (
    "access_activity_log",
    "billing_address",
    "cancellation_policy",
    "cancellation_policy_disclosure",
    "cancellation_rebuttal",
    "customer_communication",
    "customer_email_address",
    "customer_name",
    "customer_purchase_ip",
    "customer_signature",
    "duplicate_charge_documentation",
    "duplicate_charge_explanation",
    "duplicate_charge_id",
    "product_description",
    "receipt",
    "refund_policy",
    "refund_policy_disclosure",
    "refund_refusal_explanation",
    "service_date",
    "service_documentation",
    "shipping_address",
    "shipping_carrier",
    "shipping_date",
    "shipping_documentation",
    "shipping_tracking_number",
    "uncategorized_file",
    "uncategorized_text",
)

_CLOSED_STATUSES = frozenset({"won", "lost", "charge_refunded"})


def add_business_days(start: datetime, days: int) -> datetime:
    """Step forward ``days`` weekdays. Holidays are not considered."""
    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if current.weekday() < 5:
            remaining -= 1
    return current


def _at(day: datetime, clock: time) -> int:
    return int(datetime.combine(day.date(), clock, tzinfo=timezone.utc).timestamp())


class Disputes:
    @staticmethod
    def create_from_source(store: Store, account_id: str, token: str, charge_id: str) -> Record:
        """Open a dispute against a charge paid with one of the dispute tokens."""
        logger.debug("Create dispute for %s from %s in %s", charge_id, token, account_id)
        charge = get_or_404(store.charges, account_id, charge_id, "charge", "charge")

        reason = "fraudulent"
        status = "needs_response"
        refundable = False
        if token == "tok_createDisputeProductNotReceived":
            reason = "product_not_received"
        elif token == "tok_createDisputeInquiry":
            status = "warning_needs_response"
            refundable = True
        elif token != "tok_createDispute":
            raise ValueError(f"Unhandled dispute source token {token}")

        now = datetime.now(timezone.utc)
        created = int(now.timestamp())
        dispute_id = "dp_" + generate_id(24)
        amount = charge["amount"]
        dispute: Record = {
            "id": dispute_id,
            "object": "dispute",
            "amount": amount,
            "balance_transactions": [
                {
                    "id": "txn_" + generate_id(24),
                    "object": "balance_transaction",
                    "amount": -amount,
                    "available_on": _at(add_business_days(now, 4), time(17, 0, 0)),
                    "created": created,
                    "currency": charge["currency"],
                    "description": f"Chargeback withdrawal for {charge['id']}",
                    "exchange_rate": None,
                    "fee": DISPUTE_FEE,
                    "fee_details": [
                        {
                            "amount": DISPUTE_FEE,
                            "application": None,
                            "currency": charge["currency"],
                            "description": "Dispute fee",
                            "type": "stripe_fee",
                        }
                    ],
                    "net": -amount - DISPUTE_FEE,
                    "source": dispute_id,
                    "status": "pending",
                    "type": "adjustment",
                }
            ],
            "charge": charge["id"],
            "created": created,
            "currency": charge["currency"],
            "evidence": {key: None for key in EVIDENCE_FIELDS},
            "evidence_details": {
                "due_by": _at(add_business_days(now, 7), time(23, 59, 59)),
                "has_evidence": False,
                "past_due": False,
                "submission_count": 0,
            },
            "is_charge_refundable": refundable,
            "livemode": False,
            "metadata": {},
            "reason": reason,
            "status": status,
        }
        with store.lock:
            insert(store.disputes, account_id, dispute, "Dispute")
            charge["dispute"] = dispute_id
        logger.info("Created dispute %s for charge %s", dispute_id, charge["id"])
        return dispute

    @staticmethod
    def retrieve(store: Store, account_id: str, dispute_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve dispute %s in %s", dispute_id, account_id)
        return get_or_404(store.disputes, account_id, dispute_id, "dispute", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(DisputeListParams, params)
        data = store.disputes.get_all(account_id)
        if query.charge:
            data = [d for d in data if d["charge"] == query.charge]
        return apply_list_options(
            data, query, lambda object_id, param: Disputes.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, dispute_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(DisputeUpdate, params)
        values = payload.present()
        evidence = values.get("evidence") or {}
        for key in evidence:
            if key not in EVIDENCE_FIELDS:
                raise StripeError(
                    400,
                    f"Received unknown parameter: evidence[{key}]",
                    code="parameter_unknown",
                    param=f"evidence[{key}]",
                )
        with store.lock:
            dispute = Disputes.retrieve(store, account_id, dispute_id)
            if dispute["status"] in _CLOSED_STATUSES:
                raise StripeError(
                    400,
                    f"This dispute is already closed. Dispute {dispute_id} has a status of {dispute['status']}.",
                )
            if evidence:
                dispute["evidence"].update({key: str(value) for key, value in evidence.items()})
                dispute["evidence_details"]["has_evidence"] = True
            if "metadata" in values:
                dispute["metadata"] = merge_metadata(dispute["metadata"], values["metadata"])
            if values.get("submit", True) and evidence:
                dispute["evidence_details"]["submission_count"] += 1
                dispute["status"] = "under_review"
        logger.info("Updated dispute %s in %s", dispute_id, account_id)
        return dispute

    @staticmethod
    def close(store: Store, account_id: str, dispute_id: str) -> Record:
        """Accept the dispute: it is lost and the charge can no longer be refunded."""
        with store.lock:
            dispute = Disputes.retrieve(store, account_id, dispute_id)
            if dispute["status"] in _CLOSED_STATUSES:
                raise StripeError(
                    400,
                    f"This dispute is already closed. Dispute {dispute_id} has a status of {dispute['status']}.",
                )
            dispute["status"] = "lost"
            dispute["is_charge_refundable"] = False
        logger.info("Closed dispute %s in %s", dispute_id, account_id)
        return dispute


disputes = Disputes()
