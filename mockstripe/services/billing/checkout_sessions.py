import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.schemas.billing import CheckoutSessionCreate
from mockstripe.schemas.common import ListParams
from mockstripe.services import verify
from mockstripe.services.billing.customers import Customers
from mockstripe.services.billing.prices import Prices
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    get_or_404,
    insert,
    new_id,
    now_ts,
    parse_params,
    stringify_metadata,
)

logger = logging.getLogger(__name__)


class CheckoutSessions:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(CheckoutSessionCreate, params)
        values = payload.present()
        verify.required_params(values, ["cancel_url", "payment_method_types", "success_url"])
        verify.required_value(values, "mode", ["payment", "setup", "subscription", None])
        customer_id = None
        if payload.customer:
            customer_id = Customers.retrieve(store, account_id, payload.customer, "customer")["id"]

        line_items = payload.line_items or []
        subtotal = 0
        currency = None
        for ix, item in enumerate(line_items):
            quantity = item.quantity if item.quantity is not None else 1
            if item.amount is not None:
                unit_amount = item.amount
                currency = currency or item.currency
            elif item.price_data is not None:
                unit_amount = int(item.price_data.get("unit_amount") or 0)
                currency = currency or item.price_data.get("currency")
            elif item.price:
                price = Prices.retrieve(store, account_id, item.price, f"line_items[{ix}][price]")
                unit_amount = price["unit_amount"] or 0
                currency = currency or price["currency"]
            else:
                unit_amount = 0
            subtotal += unit_amount * quantity

        session_id = new_id(
            store.checkout_sessions, account_id, payload.id, "cs_test_", "Checkout session", 58
        )
        session: Record = {
            "id": session_id,
            "object": "checkout.session",
            "allow_promotion_codes": payload.allow_promotion_codes,
            "amount_subtotal": subtotal,
            "amount_total": subtotal,
            "billing_address_collection": payload.billing_address_collection,
            "cancel_url": payload.cancel_url,
            "client_reference_id": payload.client_reference_id,
            "created": now_ts(),
            "currency": (currency or "usd").lower(),
            "customer": customer_id,
            "customer_email": payload.customer_email,
            "line_items": [item.model_dump(exclude_none=True) for item in line_items],
            "livemode": False,
            "locale": payload.locale or "auto",
            "metadata": stringify_metadata(payload.metadata),
            "mode": payload.mode or "payment",
            "payment_intent": None,
            "payment_method_types": payload.payment_method_types,
            "payment_status": "unpaid",
            "setup_intent": None,
            "shipping": None,
            "shipping_address_collection": None,
            "status": "open",
            "submit_type": payload.submit_type,
            "subscription": None,
            "success_url": payload.success_url,
            "total_details": {"amount_discount": 0, "amount_shipping": 0, "amount_tax": 0},
            "url": f"https://checkout.stripe.com/pay/{session_id}",
        }
        insert(store.checkout_sessions, account_id, session, "Checkout session")
        logger.info("Created checkout session %s in %s", session_id, account_id)
        return session

    @staticmethod
    def retrieve(store: Store, account_id: str, session_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve checkout session %s in %s", session_id, account_id)
        return get_or_404(store.checkout_sessions, account_id, session_id, "checkout session", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(ListParams, params)
        data = store.checkout_sessions.get_all(account_id)
        return apply_list_options(
            data,
            query,
            lambda object_id, param: CheckoutSessions.retrieve(store, account_id, object_id, param),
        )


checkout_sessions = CheckoutSessions()
