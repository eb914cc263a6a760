import logging
from datetime import datetime, timezone
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError, parameter_missing, resource_already_exists
from mockstripe.schemas.billing import (
    SubscriptionCreate,
    SubscriptionItemListParams,
    SubscriptionItemParams,
    SubscriptionItemUpdate,
    SubscriptionListParams,
    SubscriptionUpdate,
)
from mockstripe.services import verify
from mockstripe.services.billing.customers import Customers
from mockstripe.services.billing.plans import Plans
from mockstripe.services.billing.prices import Prices
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


def _add_month(ts: int) -> int:
    start = datetime.fromtimestamp(ts, tz=timezone.utc)
    year, month = divmod(start.month, 12)
    day = min(start.day, 28)
    return int(start.replace(year=start.year + year, month=month + 1, day=day).timestamp())


def _default_source_token(value: dict[str, Any]) -> str:
    token = value.get("source") or value.get("token")
    if not isinstance(token, str):
        raise StripeError(
            400,
            "Invalid default_source: pass a card id or a source token.",
            param="default_source",
        )
    return token


def _validate_items(
    store: Store, account_id: str, items: list[SubscriptionItemParams]
) -> None:
    seen: set[str] = set()
    for ix, item in enumerate(items):
        if not item.plan and not item.price:
            raise parameter_missing(f"items[{ix}][price]")
        if item.quantity is not None and item.quantity < 0:
            raise StripeError(
                400,
                "Invalid non-negative integer",
                code="parameter_invalid_integer",
                param=f"items[{ix}][quantity]",
            )
        if item.id:
            if item.id in seen or store.subscription_items.contains(account_id, item.id):
                raise resource_already_exists("Subscription item")
            seen.add(item.id)


class Subscriptions:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(SubscriptionCreate, params)
        values = payload.present()
        verify.required_params(values, ["customer"])
        verify.required_value(
            values, "collection_method", ["charge_automatically", "send_invoice", None]
        )
        customer = Customers.retrieve(store, account_id, payload.customer, "customer")
        items = list(payload.items or [])
        if payload.plan and not items:
            items = [SubscriptionItemParams(plan=payload.plan, quantity=payload.quantity)]
        if not items:
            raise parameter_missing("items")
        _validate_items(store, account_id, items)
        if payload.quantity is not None and payload.quantity < 0:
            raise StripeError(
                400,
                "Invalid non-negative integer",
                code="parameter_invalid_integer",
                param="quantity",
            )
        subscription_id = new_id(
            store.subscriptions, account_id, payload.id, "sub_", "Subscription", 14
        )

        default_source = payload.default_source
        if isinstance(default_source, dict):
            card = Customers.create_card(
                store, account_id, customer["id"], {"source": _default_source_token(default_source)}
            )
            default_source = card["id"]

        quantity = payload.quantity
        if quantity is None and len(items) == 1:
            quantity = items[0].quantity
        now = now_ts()
        collection_method = payload.collection_method or payload.billing or "charge_automatically"
        subscription: Record = {
            "id": subscription_id,
            "object": "subscription",
            "application_fee_percent": payload.application_fee_percent,
            "billing": collection_method,
            "billing_cycle_anchor": payload.billing_cycle_anchor or now,
            "billing_thresholds": None,
            "cancel_at": None,
            "cancel_at_period_end": bool(payload.cancel_at_period_end),
            "canceled_at": None,
            "collection_method": collection_method,
            "created": now,
            "current_period_end": _add_month(now),
            "current_period_start": now,
            "customer": customer["id"],
            "days_until_due": payload.days_until_due,
            "default_payment_method": None,
            "default_source": default_source,
            "discount": None,
            "ended_at": None,
            "items": list_object([], f"/v1/subscription_items?subscription={subscription_id}"),
            "latest_invoice": "in_" + generate_id(14),
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "plan": None,
            "quantity": quantity if quantity is not None else 1,
            "start": now,
            "start_date": now,
            "status": "active",
            "tax_percent": payload.tax_percent,
            "trial_end": None,
            "trial_start": None,
        }
        with store.lock:
            for item in items:
                record = Subscriptions._create_item(store, account_id, item, subscription_id)
                subscription["items"]["data"].append(record)
                subscription["items"]["total_count"] += 1
            if payload.plan:
                subscription["plan"] = Plans.get_or_create(store, account_id, payload.plan)
            else:
                subscription["plan"] = subscription["items"]["data"][0]["plan"]
            insert(store.subscriptions, account_id, subscription, "Subscription")
            Customers.add_subscription(store, account_id, customer["id"], subscription)
        logger.info("Created subscription %s for %s in %s", subscription_id, customer["id"], account_id)
        return subscription

    @staticmethod
    def _create_item(
        store: Store, account_id: str, item: SubscriptionItemParams, subscription_id: str
    ) -> Record:
        plan = Plans.get_or_create(store, account_id, item.plan) if item.plan else None
        price = Prices.get_or_create(store, account_id, item.price) if item.price else None
        record: Record = {
            "id": item.id or "si_" + generate_id(14),
            "object": "subscription_item",
            "billing_thresholds": None,
            "created": now_ts(),
            "metadata": stringify_metadata(item.metadata),
            "plan": plan,
            "price": price,
            "quantity": item.quantity if item.quantity is not None else 1,
            "subscription": subscription_id,
        }
        insert(store.subscription_items, account_id, record, "Subscription item")
        return record

    @staticmethod
    def retrieve(store: Store, account_id: str, subscription_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve subscription %s in %s", subscription_id, account_id)
        return get_or_404(store.subscriptions, account_id, subscription_id, "subscription", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(SubscriptionListParams, params)
        data = store.subscriptions.get_all(account_id)
        if query.customer:
            data = [d for d in data if d["customer"] == query.customer]
        if query.plan:
            data = [
                d
                for d in data
                if any((i["plan"] or {}).get("id") == query.plan for i in d["items"]["data"])
            ]
        if query.status is None:
            data = [d for d in data if d["status"] != "canceled"]
        elif query.status != "all":
            data = [d for d in data if d["status"] == query.status]
        return apply_list_options(
            data,
            query,
            lambda object_id, param: Subscriptions.retrieve(store, account_id, object_id, param),
        )

    @staticmethod
    def update(
        store: Store, account_id: str, subscription_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(SubscriptionUpdate, params)
        values = payload.present()
        if payload.quantity is not None and payload.quantity < 0:
            raise StripeError(
                400,
                "Invalid non-negative integer",
                code="parameter_invalid_integer",
                param="quantity",
            )
        with store.lock:
            subscription = Subscriptions.retrieve(store, account_id, subscription_id)
            if subscription["status"] == "canceled" and set(values) - {"metadata"}:
                raise StripeError(
                    400,
                    "A canceled subscription can only update its metadata.",
                )
            default_source = values.get("default_source")
            if isinstance(default_source, dict):
                card = Customers.create_card(
                    store,
                    account_id,
                    subscription["customer"],
                    {"source": _default_source_token(default_source)},
                )
                default_source = card["id"]
            elif default_source:
                Customers.retrieve_card(
                    store, account_id, subscription["customer"], default_source, "default_source"
                )

            if "default_source" in values:
                subscription["default_source"] = default_source
            if "cancel_at_period_end" in values:
                cancel = bool(values["cancel_at_period_end"])
                subscription["cancel_at_period_end"] = cancel
                subscription["cancel_at"] = subscription["current_period_end"] if cancel else None
            if "metadata" in values:
                subscription["metadata"] = merge_metadata(
                    subscription["metadata"], values["metadata"]
                )
            if payload.quantity is not None:
                subscription["quantity"] = payload.quantity
                items = subscription["items"]["data"]
                if len(items) == 1:
                    items[0]["quantity"] = payload.quantity
        logger.info("Updated subscription %s in %s", subscription_id, account_id)
        return subscription

    @staticmethod
    def cancel(store: Store, account_id: str, subscription_id: str) -> Record:
        with store.lock:
            subscription = Subscriptions.retrieve(store, account_id, subscription_id)
            if subscription["status"] == "canceled":
                raise StripeError(
                    400,
                    f"Subscription {subscription_id} has already been canceled.",
                )
            now = now_ts()
            subscription["status"] = "canceled"
            subscription["canceled_at"] = now
            subscription["ended_at"] = now
            Customers.remove_subscription(
                store, account_id, subscription["customer"], subscription_id
            )
        logger.info("Canceled subscription %s in %s", subscription_id, account_id)
        return subscription

    # ── Items ────────────────────────────────────────────

    @staticmethod
    def retrieve_item(store: Store, account_id: str, item_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve subscription item %s in %s", item_id, account_id)
        return get_or_404(store.subscription_items, account_id, item_id, "subscription_item", param)

    @staticmethod
    def list_items(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(SubscriptionItemListParams, params)
        data = store.subscription_items.get_all(account_id)
        if query.subscription:
            data = [d for d in data if d["subscription"] == query.subscription]
        return apply_list_options(
            data,
            query,
            lambda object_id, param: Subscriptions.retrieve_item(store, account_id, object_id, param),
        )

    @staticmethod
    def update_item(
        store: Store, account_id: str, item_id: str, params: dict[str, Any]
    ) -> Record:
        payload = parse_params(SubscriptionItemUpdate, params)
        values = payload.present()
        if payload.quantity is not None and payload.quantity < 0:
            raise StripeError(
                400,
                "Invalid non-negative integer",
                code="parameter_invalid_integer",
                param="quantity",
            )
        with store.lock:
            item = Subscriptions.retrieve_item(store, account_id, item_id)
            subscription = Subscriptions.retrieve(store, account_id, item["subscription"])
            if payload.quantity is not None:
                item["quantity"] = payload.quantity
                if len(subscription["items"]["data"]) == 1:
                    subscription["quantity"] = payload.quantity
            if "metadata" in values:
                item["metadata"] = merge_metadata(item["metadata"], values["metadata"])
        logger.info("Updated subscription item %s in %s", item_id, account_id)
        return item


subscriptions = Subscriptions()
