"""Charges: the payment state machine most of the special tokens act on."""
import copy
import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import (
    ChargeCapture,
    ChargeCreate,
    ChargeListParams,
    ChargeUpdate,
)
from mockstripe.services import tokens, verify
from mockstripe.services.billing.cards import Cards
from mockstripe.services.billing.customers import Customers
from mockstripe.services.billing.disputes import Disputes
from mockstripe.services.billing.refunds import Refunds, record_refund
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    generate_id,
    get_or_404,
    insert,
    list_object,
    merge_metadata,
    new_id,
    now_ts,
    parse_params,
    stringify_metadata,
)

logger = logging.getLogger(__name__)

_UPDATABLE = ("description", "receipt_email", "shipping", "transfer_group")


def _customer_card(
    store: Store, account_id: str, customer: Record, source: str | None
) -> tuple[Record, str | None]:
    """The card to charge for a customer and the token it was made from."""
    if source and not source.startswith("card_"):
        return {}, source
    card_id = source or customer["default_source"]
    if not card_id:
        raise StripeError(
            402,
            "Cannot charge a customer that has no active card",
            "card_error",
            code="missing",
            param="card",
        )
    card = Customers.retrieve_card(store, account_id, customer["id"], card_id, "source")
    return card, Cards.source_token(store, account_id, card_id)


def _build_charge(
    payload: ChargeCreate, charge_id: str, currency: str, card: Record, customer_id: str | None
) -> Record:
    return {
        "id": charge_id,
        "object": "charge",
        "amount": payload.amount,
        "amount_captured": 0 if payload.capture is False else payload.amount,
        "amount_refunded": 0,
        "application": None,
        "application_fee": None,
        "application_fee_amount": None,
        "balance_transaction": "txn_" + generate_id(24),
        "billing_details": {
            "address": {
                "city": None,
                "country": None,
                "line1": None,
                "line2": None,
                "postal_code": None,
                "state": None,
            },
            "email": None,
            "name": None,
            "phone": None,
        },
        "captured": payload.capture is not False,
        "created": now_ts(),
        "currency": currency,
        "customer": customer_id,
        "description": payload.description,
        "destination": None,
        "dispute": None,
        "failure_code": None,
        "failure_message": None,
        "fraud_details": {},
        "invoice": None,
        "livemode": False,
        "metadata": stringify_metadata(payload.metadata),
        "on_behalf_of": None,
        "order": None,
        "outcome": {
            "network_status": "approved_by_network",
            "reason": None,
            "risk_level": "normal",
            "seller_message": "Payment complete.",
            "type": "authorized",
        },
        "paid": True,
        "payment_intent": None,
        "payment_method": card["id"],
        "payment_method_details": {
            "card": {
                "brand": tokens.BRAND_CODES.get(card["brand"], "unknown"),
                "checks": {
                    "address_line1_check": None,
                    "address_postal_code_check": None,
                    "cvc_check": None,
                },
                "country": card["country"],
                "exp_month": card["exp_month"],
                "exp_year": card["exp_year"],
                "fingerprint": card["fingerprint"],
                "funding": card["funding"],
                "last4": card["last4"],
                "three_d_secure": None,
                "wallet": None,
            },
            "type": "card",
        },
        "receipt_email": payload.receipt_email,
        "receipt_number": None,
        "receipt_url": (
            f"https://pay.stripe.com/receipts/acct_{generate_id(16)}/{charge_id}"
            f"/rcpt_{generate_id(32)}"
        ),
        "refunded": False,
        "refunds": list_object([], f"/v1/charges/{charge_id}/refunds"),
        "review": None,
        "shipping": payload.shipping,
        "source": card,
        "source_transfer": None,
        "statement_descriptor": payload.statement_descriptor,
        "status": "succeeded",
        "transfer_group": payload.transfer_group,
    }


class Charges:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(ChargeCreate, params)
        values = payload.present()
        verify.required_params(values, ["amount", "currency"])

        source = tokens.resolve(store, payload.source) if payload.source else None
        tokens.check_pre_charge(source)

        currency = payload.currency.lower()
        verify.currency(currency, "currency")
        verify.positive_amount(payload.amount, "amount")
        verify.min_charge_amount(payload.amount, currency, "amount")

        charge_id = new_id(store.charges, account_id, payload.id, "ch_", "Charge")
        customer_id = None
        if payload.customer:
            customer = Customers.retrieve(store, account_id, payload.customer, "customer")
            customer_id = customer["id"]
            card, token = _customer_card(store, account_id, customer, source)
            if not card:
                token = source
                card = Cards.create_from_source(store, account_id, token)
            else:
                card = copy.deepcopy(card)
        elif source:
            token = source
            card = Cards.create_from_source(store, account_id, token)
        else:
            raise StripeError(
                400,
                "Must provide source or customer.",
                code="parameter_missing",
                param="source",
            )

        charge = _build_charge(payload, charge_id, currency, card, customer_id)
        if token == "tok_forget":
            logger.info("Created unsaved charge %s", charge_id)
            return charge

        insert(store.charges, account_id, charge, "Charge")
        logger.info("Created charge %s for %d %s in %s", charge_id, payload.amount, currency, account_id)
        tokens.apply_charge_effects(token, charge)
        if token in tokens.DISPUTE_TOKENS:
            store.deferred.defer(Disputes.create_from_source, store, account_id, token, charge_id)
        return charge

    @staticmethod
    def retrieve(store: Store, account_id: str, charge_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve charge %s in %s", charge_id, account_id)
        return get_or_404(store.charges, account_id, charge_id, "charge", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(ChargeListParams, params)
        data = store.charges.get_all(account_id)
        if query.customer:
            data = [d for d in data if d["customer"] == query.customer]
        return apply_list_options(
            data, query, lambda object_id, param: Charges.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, charge_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(ChargeUpdate, params)
        values = payload.present()
        fraud_details = values.get("fraud_details") or {}
        for key, value in fraud_details.items():
            if key != "user_report" or value not in ("", "fraudulent", "safe"):
                raise StripeError(
                    400,
                    f"Invalid fraud_details[{key}]: must be one of fraudulent or safe",
                    param=f"fraud_details[{key}]",
                )
        with store.lock:
            charge = Charges.retrieve(store, account_id, charge_id)
            for key in _UPDATABLE:
                if key in values:
                    charge[key] = values[key]
            if "metadata" in values:
                charge["metadata"] = merge_metadata(charge["metadata"], values["metadata"])
            if fraud_details:
                merged = dict(charge["fraud_details"])
                for key, value in fraud_details.items():
                    if value:
                        merged[key] = value
                    else:
                        merged.pop(key, None)
                charge["fraud_details"] = merged
        logger.info("Updated charge %s in %s", charge_id, account_id)
        return charge

    @staticmethod
    def capture(store: Store, account_id: str, charge_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(ChargeCapture, params)
        values = payload.present()
        with store.lock:
            charge = Charges.retrieve(store, account_id, charge_id)
            if charge["captured"]:
                raise StripeError(
                    400,
                    f"Charge {charge_id} has already been captured.",
                    code="charge_already_captured",
                )
            if charge["status"] == "failed":
                raise StripeError(
                    400,
                    f"Charge {charge_id} has failed and cannot be captured.",
                )
            if charge["refunded"]:
                raise StripeError(
                    400,
                    f"Charge {charge_id} has been refunded and cannot be captured.",
                    code="charge_already_refunded",
                )

            amount = values.get("amount", charge["amount"])
            if amount is None or amount < 1:
                raise StripeError(
                    400,
                    "Invalid positive integer",
                    code="parameter_invalid_integer",
                    param="amount",
                )
            verify.min_charge_amount(amount, charge["currency"], "amount")
            if amount > charge["amount"]:
                raise StripeError(
                    400,
                    f"Amount to capture ({amount}) cannot be greater than the "
                    f"authorized amount ({charge['amount']}).",
                    param="amount",
                )

            if amount < charge["amount"]:
                record_refund(store, account_id, charge, charge["amount"] - amount)
            charge["captured"] = True
            charge["amount_captured"] = amount
            if "receipt_email" in values:
                charge["receipt_email"] = values["receipt_email"]
            if "statement_descriptor" in values:
                charge["statement_descriptor"] = values["statement_descriptor"]
        logger.info("Captured %d of charge %s", amount, charge_id)
        return charge

    @staticmethod
    def list_refunds(
        store: Store, account_id: str, charge_id: str, params: dict[str, Any]
    ) -> ListPage:
        Charges.retrieve(store, account_id, charge_id)
        return Refunds.list(store, account_id, {**params, "charge": charge_id})


charges = Charges()
