import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import (
    CardCreate,
    CustomerCreate,
    CustomerListParams,
    CustomerUpdate,
)
from mockstripe.schemas.common import ListParams
from mockstripe.services import tokens
from mockstripe.services.billing.cards import Cards
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    deleted,
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

_PROFILE_FIELDS = ("description", "email", "name", "phone", "address", "shipping")


def _resolve_card_token(store: Store, source: Any, param: str = "source") -> str:
    """Validate a source for attaching. Raises before anything is stored."""
    if not isinstance(source, str):
        raise StripeError(
            400,
            "Card details on customers are not supported. Pass a source token instead.",
            param=param,
        )
    token = tokens.resolve(store, source, param)
    tokens.card_token(token, param)
    tokens.check_attach(token)
    return token


def _attach(store: Store, account_id: str, customer: Record, token: str) -> Record:
    card = Cards.create_from_source(store, account_id, token)
    card["customer"] = customer["id"]
    customer["sources"]["data"].append(card)
    customer["sources"]["total_count"] += 1
    return card


class Customers:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(CustomerCreate, params)
        customer_id = new_id(store.customers, account_id, payload.id, "cus_", "Customer", 14)
        token = None
        if payload.source is not None:
            token = _resolve_card_token(store, payload.source)

        customer: Record = {
            "id": customer_id,
            "object": "customer",
            "account_balance": payload.account_balance or 0,
            "address": payload.address,
            "balance": payload.balance or payload.account_balance or 0,
            "created": now_ts(),
            "currency": "usd",
            "default_source": None,
            "delinquent": False,
            "description": payload.description,
            "discount": None,
            "email": payload.email,
            "invoice_settings": {
                "custom_fields": None,
                "default_payment_method": None,
                "footer": None,
            },
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "name": payload.name,
            "phone": payload.phone,
            "shipping": payload.shipping,
            "sources": list_object([], f"/v1/customers/{customer_id}/sources"),
            "subscriptions": list_object([], f"/v1/customers/{customer_id}/subscriptions"),
        }
        if token is not None:
            card = _attach(store, account_id, customer, token)
            customer["default_source"] = card["id"]
            if not tokens.card_token(token).save:
                logger.info("Created unsaved customer %s", customer_id)
                return customer

        insert(store.customers, account_id, customer, "Customer")
        logger.info("Created customer %s in %s", customer_id, account_id)
        return customer

    @staticmethod
    def retrieve(store: Store, account_id: str, customer_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve customer %s in %s", customer_id, account_id)
        return get_or_404(store.customers, account_id, customer_id, "customer", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(CustomerListParams, params)
        data = store.customers.get_all(account_id)
        if query.email:
            data = [d for d in data if d["email"] == query.email]
        return apply_list_options(
            data, query, lambda object_id, param: Customers.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, customer_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(CustomerUpdate, params)
        values = payload.present()
        with store.lock:
            customer = Customers.retrieve(store, account_id, customer_id)
            token = None
            if values.get("source") is not None:
                token = _resolve_card_token(store, values["source"])
            default_source = values.get("default_source")
            if default_source and not any(
                card["id"] == default_source for card in customer["sources"]["data"]
            ):
                raise StripeError(
                    404,
                    f"No such source: {default_source}",
                    code="resource_missing",
                    param="default_source",
                )

            for key in _PROFILE_FIELDS:
                if key in values:
                    customer[key] = values[key]
            if "metadata" in values:
                customer["metadata"] = merge_metadata(customer["metadata"], values["metadata"])
            if "default_source" in values:
                customer["default_source"] = default_source
            if token is not None:
                card = _attach(store, account_id, customer, token)
                customer["default_source"] = card["id"]
        logger.info("Updated customer %s in %s", customer_id, account_id)
        return customer

    @staticmethod
    def delete(store: Store, account_id: str, customer_id: str) -> dict[str, Any]:
        with store.lock:
            customer = Customers.retrieve(store, account_id, customer_id)
            for card in customer["sources"]["data"]:
                Cards.forget(store, account_id, card["id"])
            store.customers.remove(account_id, customer_id)
        logger.info("Deleted customer %s in %s", customer_id, account_id)
        return deleted(customer_id, "customer")

    # ── Sources ──────────────────────────────────────────

    @staticmethod
    def create_card(
        store: Store, account_id: str, customer_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(CardCreate, params)
        customer = Customers.retrieve(store, account_id, customer_id, "customer")
        if payload.source is None:
            raise StripeError(
                400,
                "Missing required param: source.",
                code="parameter_missing",
                param="source",
            )
        token = _resolve_card_token(store, payload.source)
        with store.lock:
            card = _attach(store, account_id, customer, token)
            card["metadata"] = stringify_metadata(payload.metadata)
            if not customer["default_source"]:
                customer["default_source"] = card["id"]
        logger.info("Attached card %s to customer %s", card["id"], customer_id)
        return card

    @staticmethod
    def retrieve_card(
        store: Store, account_id: str, customer_id: str, card_id: str, param: str = "card"
    ) -> Record:
        customer = Customers.retrieve(store, account_id, customer_id, "customer")
        for source in customer["sources"]["data"]:
            if source["id"] == card_id and source["object"] == "card":
                return source
        raise StripeError(
            404,
            f"Customer {customer_id} does not have card with ID {card_id}",
            code="resource_missing",
            param=param,
        )

    @staticmethod
    def list_cards(
        store: Store, account_id: str, customer_id: str, params: dict[str, Any]
    ) -> ListPage:
        query = parse_params(ListParams, params)
        customer = Customers.retrieve(store, account_id, customer_id, "customer")
        data = list(reversed(customer["sources"]["data"]))
        return apply_list_options(
            data,
            query,
            lambda object_id, param: Customers.retrieve_card(
                store, account_id, customer_id, object_id, param
            ),
        )

    @staticmethod
    def delete_card(
        store: Store, account_id: str, customer_id: str, card_id: str
    ) -> dict[str, Any]:
        with store.lock:
            customer = Customers.retrieve(store, account_id, customer_id, "customer")
            card = Customers.retrieve_card(store, account_id, customer_id, card_id, "id")
            sources = customer["sources"]
            sources["data"] = [s for s in sources["data"] if s["id"] != card_id]
            sources["total_count"] = len(sources["data"])
            if customer["default_source"] == card_id:
                customer["default_source"] = sources["data"][0]["id"] if sources["data"] else None
            Cards.forget(store, account_id, card_id)
        logger.info("Detached card %s from customer %s", card["id"], customer_id)
        return deleted(card_id, "card")

    # ── Subscriptions ────────────────────────────────────

    @staticmethod
    def add_subscription(
        store: Store, account_id: str, customer_id: str, subscription: Record
    ) -> None:
        customer = Customers.retrieve(store, account_id, customer_id, "customer")
        subscriptions = customer["subscriptions"]
        subscriptions["data"].append(subscription)
        subscriptions["total_count"] += 1

    @staticmethod
    def remove_subscription(
        store: Store, account_id: str, customer_id: str, subscription_id: str
    ) -> None:
        customer = store.customers.get(account_id, customer_id)
        if customer is None:
            return
        subscriptions = customer["subscriptions"]
        subscriptions["data"] = [s for s in subscriptions["data"] if s["id"] != subscription_id]
        subscriptions["total_count"] = len(subscriptions["data"])


customers = Customers()
