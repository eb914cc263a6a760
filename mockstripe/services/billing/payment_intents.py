"""Payment intents, built on top of charges.

Confirming an intent creates a charge from its payment method, so every
source token behaves here exactly as it does on a direct charge.
"""
import copy
import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError, parameter_missing
from mockstripe.schemas.billing import (
    PaymentIntentCancel,
    PaymentIntentCapture,
    PaymentIntentConfirm,
    PaymentIntentCreate,
    PaymentIntentListParams,
    PaymentIntentUpdate,
)
from mockstripe.services import verify
from mockstripe.services.billing.charges import Charges
from mockstripe.services.billing.customers import Customers
from mockstripe.services.billing.refunds import Refunds
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

CANCELLATION_REASONS = ["duplicate", "fraudulent", "requested_by_customer", "abandoned"]
_CONFIRMABLE = ("requires_payment_method", "requires_confirmation")
_CANCELABLE = (
    "requires_payment_method",
    "requires_capture",
    "requires_confirmation",
    "requires_action",
    "processing",
)


def _unexpected_state(message: str) -> StripeError:
    return StripeError(400, message, code="payment_intent_unexpected_state")


def _validate_amount(amount: int, currency: str) -> None:
    verify.currency(currency, "currency")
    verify.positive_amount(amount, "amount")
    verify.min_charge_amount(amount, currency, "amount")


class PaymentIntents:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(PaymentIntentCreate, params)
        values = payload.present()
        verify.required_params(values, ["amount", "currency"])
        currency = payload.currency.lower()
        _validate_amount(payload.amount, currency)
        verify.required_value(values, "capture_method", ["automatic", "manual", None])
        if payload.customer:
            Customers.retrieve(store, account_id, payload.customer, "customer")

        payment_intent_id = new_id(
            store.payment_intents, account_id, payload.id, "pi_", "Payment intent"
        )
        payment_intent: Record = {
            "id": payment_intent_id,
            "object": "payment_intent",
            "amount": payload.amount,
            "amount_capturable": 0,
            "amount_received": 0,
            "application": None,
            "application_fee_amount": None,
            "canceled_at": None,
            "cancellation_reason": None,
            "capture_method": payload.capture_method or "automatic",
            "charges": list_object([], f"/v1/charges?payment_intent={payment_intent_id}"),
            "client_secret": f"{payment_intent_id}_secret_{generate_id(25)}",
            "confirmation_method": "automatic",
            "created": now_ts(),
            "currency": currency,
            "customer": payload.customer,
            "description": payload.description,
            "last_payment_error": None,
            "latest_charge": None,
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "next_action": None,
            "on_behalf_of": None,
            "payment_method": payload.payment_method,
            "payment_method_types": payload.payment_method_types or ["card"],
            "receipt_email": payload.receipt_email,
            "shipping": None,
            "statement_descriptor": payload.statement_descriptor,
            "status": "requires_confirmation" if payload.payment_method else "requires_payment_method",
            "transfer_group": None,
        }
        insert(store.payment_intents, account_id, payment_intent, "Payment intent")
        logger.info("Created payment intent %s in %s", payment_intent_id, account_id)
        if payload.confirm:
            return PaymentIntents.confirm(store, account_id, payment_intent_id, {})
        return payment_intent

    @staticmethod
    def retrieve(
        store: Store, account_id: str, payment_intent_id: str, param: str = "id"
    ) -> Record:
        logger.debug("Retrieve payment intent %s in %s", payment_intent_id, account_id)
        return get_or_404(
            store.payment_intents, account_id, payment_intent_id, "payment_intent", param
        )

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(PaymentIntentListParams, params)
        data = store.payment_intents.get_all(account_id)
        if query.customer:
            data = [d for d in data if d["customer"] == query.customer]
        return apply_list_options(
            data,
            query,
            lambda object_id, param: PaymentIntents.retrieve(store, account_id, object_id, param),
        )

    @staticmethod
    def update(
        store: Store, account_id: str, payment_intent_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(PaymentIntentUpdate, params)
        values = payload.present()
        with store.lock:
            payment_intent = PaymentIntents.retrieve(store, account_id, payment_intent_id)
            if payment_intent["status"] not in _CONFIRMABLE:
                raise _unexpected_state(
                    "You cannot update this PaymentIntent because it has a status of "
                    f"{payment_intent['status']}."
                )
            amount = values.get("amount", payment_intent["amount"])
            currency = (values.get("currency") or payment_intent["currency"]).lower()
            if amount is None:
                raise parameter_missing("amount")
            _validate_amount(amount, currency)
            if values.get("customer"):
                Customers.retrieve(store, account_id, values["customer"], "customer")

            payment_intent["amount"] = amount
            payment_intent["currency"] = currency
            for key in ("customer", "description", "receipt_email", "statement_descriptor", "shipping"):
                if key in values:
                    payment_intent[key] = values[key]
            if "metadata" in values:
                payment_intent["metadata"] = merge_metadata(
                    payment_intent["metadata"], values["metadata"]
                )
            if "payment_method" in values:
                payment_intent["payment_method"] = values["payment_method"]
                payment_intent["status"] = (
                    "requires_confirmation" if values["payment_method"] else "requires_payment_method"
                )
        logger.info("Updated payment intent %s in %s", payment_intent_id, account_id)
        return payment_intent

    @staticmethod
    def confirm(
        store: Store, account_id: str, payment_intent_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(PaymentIntentConfirm, params)
        payment_intent = PaymentIntents.retrieve(store, account_id, payment_intent_id)
        if payment_intent["status"] not in _CONFIRMABLE:
            raise _unexpected_state(
                "You cannot confirm this PaymentIntent because it has a status of "
                f"{payment_intent['status']}."
            )
        payment_method = payload.payment_method or payment_intent["payment_method"]
        if not payment_method:
            raise StripeError(
                400,
                "You cannot confirm this PaymentIntent because it's missing a payment "
                "method. Update the PaymentIntent with a payment method and then confirm "
                "it again.",
                code="payment_intent_unexpected_state",
                param="payment_method",
            )
        receipt_email = payload.receipt_email or payment_intent["receipt_email"]

        manual = payment_intent["capture_method"] == "manual"
        charge_params: dict[str, Any] = {
            "amount": payment_intent["amount"],
            "currency": payment_intent["currency"],
            "source": payment_method,
            "capture": not manual,
            "description": payment_intent["description"],
            "receipt_email": receipt_email,
        }
        if payment_intent["customer"]:
            charge_params["customer"] = payment_intent["customer"]
        try:
            charge = Charges.create(store, account_id, charge_params)
        except StripeError as exc:
            if exc.type != "card_error":
                raise
            with store.lock:
                payment_intent["receipt_email"] = receipt_email
                if exc.charge:
                    failed = Charges.retrieve(store, account_id, exc.charge)
                    failed["payment_intent"] = payment_intent_id
                    payment_intent["charges"]["data"].insert(0, failed)
                    payment_intent["charges"]["total_count"] += 1
                    payment_intent["latest_charge"] = failed["id"]
                payment_intent["status"] = "requires_payment_method"
                payment_intent["payment_method"] = None
                payment_intent["last_payment_error"] = exc.to_dict()["error"]
            logger.info("Payment intent %s failed: %s", payment_intent_id, exc.message)
            exc.payment_intent = copy.deepcopy(payment_intent)
            raise

        with store.lock:
            charge["payment_intent"] = payment_intent_id
            payment_intent["payment_method"] = payment_method
            payment_intent["receipt_email"] = receipt_email
            payment_intent["charges"]["data"].insert(0, charge)
            payment_intent["charges"]["total_count"] += 1
            payment_intent["latest_charge"] = charge["id"]
            payment_intent["last_payment_error"] = None
            if manual:
                payment_intent["status"] = "requires_capture"
                payment_intent["amount_capturable"] = payment_intent["amount"]
            else:
                payment_intent["status"] = "succeeded"
                payment_intent["amount_received"] = payment_intent["amount"]
        logger.info("Confirmed payment intent %s with charge %s", payment_intent_id, charge["id"])
        return payment_intent

    @staticmethod
    def capture(
        store: Store, account_id: str, payment_intent_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(PaymentIntentCapture, params)
        with store.lock:
            payment_intent = PaymentIntents.retrieve(store, account_id, payment_intent_id)
            if payment_intent["status"] != "requires_capture":
                raise _unexpected_state(
                    "This PaymentIntent could not be captured because it has a status of "
                    f"{payment_intent['status']}. Only a PaymentIntent with one of the "
                    "following statuses may be captured: requires_capture."
                )
            amount = payload.amount_to_capture
            if amount is None:
                amount = payment_intent["amount_capturable"]
            if amount > payment_intent["amount_capturable"]:
                raise StripeError(
                    400,
                    f"The amount_to_capture ({amount}) must be less than or equal to the "
                    f"PaymentIntent's amount_capturable ({payment_intent['amount_capturable']}).",
                    param="amount_to_capture",
                )
            Charges.capture(store, account_id, payment_intent["latest_charge"], {"amount": amount})
            payment_intent["status"] = "succeeded"
            payment_intent["amount_received"] = amount
            payment_intent["amount_capturable"] = 0
        logger.info("Captured %d on payment intent %s", amount, payment_intent_id)
        return payment_intent

    @staticmethod
    def cancel(
        store: Store, account_id: str, payment_intent_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(PaymentIntentCancel, params)
        values = payload.present()
        verify.required_value(values, "cancellation_reason", [*CANCELLATION_REASONS, None])
        with store.lock:
            payment_intent = PaymentIntents.retrieve(store, account_id, payment_intent_id)
            if payment_intent["status"] not in _CANCELABLE:
                raise _unexpected_state(
                    "You cannot cancel this PaymentIntent because it has a status of "
                    f"{payment_intent['status']}. Only a PaymentIntent with one of the "
                    "following statuses may be canceled: " + ", ".join(_CANCELABLE) + "."
                )
            if payment_intent["status"] == "requires_capture":
                Refunds.create(store, account_id, {"charge": payment_intent["latest_charge"]})
                payment_intent["amount_capturable"] = 0
            payment_intent["status"] = "canceled"
            payment_intent["canceled_at"] = now_ts()
            payment_intent["cancellation_reason"] = payload.cancellation_reason
        logger.info("Canceled payment intent %s in %s", payment_intent_id, account_id)
        return payment_intent


payment_intents = PaymentIntents()
