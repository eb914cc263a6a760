import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import PriceCreate, PriceListParams, PriceUpdate
from mockstripe.services import verify
from mockstripe.services.billing.products import Products
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    get_or_404,
    insert,
    merge_metadata,
    new_id,
    now_ts,
    parse_params,
    stringify_metadata,
)

logger = logging.getLogger(__name__)


def _unit_amount(unit_amount: int | None, unit_amount_decimal: str | None) -> tuple[int | None, str | None]:
    if unit_amount is not None:
        return unit_amount, str(unit_amount)
    if unit_amount_decimal is None:
        return None, None
    try:
        decimal = Decimal(unit_amount_decimal)
    except InvalidOperation:
        raise StripeError(
            400,
            f"Invalid decimal: {unit_amount_decimal}",
            code="parameter_invalid_decimal",
            param="unit_amount_decimal",
        ) from None
    return int(decimal), unit_amount_decimal


class Prices:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(PriceCreate, params)
        values = payload.present()
        verify.required_params(values, ["currency"])
        currency = payload.currency.lower()
        verify.currency(currency, "currency")
        if bool(payload.product) == bool(payload.product_data):
            raise StripeError(
                400,
                "You must specify either `product` or `product_data` when creating a price.",
            )
        verify.required_value(values, "billing_scheme", ["per_unit", "tiered", None])
        billing_scheme = payload.billing_scheme or "per_unit"
        if (
            billing_scheme == "per_unit"
            and payload.unit_amount is None
            and payload.unit_amount_decimal is None
        ):
            raise StripeError(
                400,
                "Missing required param: unit_amount.",
                code="parameter_missing",
                param="unit_amount",
            )
        recurring = None
        if payload.recurring is not None:
            recurring_values = payload.recurring.model_dump(exclude_unset=True)
            if recurring_values.get("interval") not in ("day", "week", "month", "year"):
                raise StripeError(
                    400,
                    "Invalid recurring[interval]: must be one of day, week, month or year",
                    param="recurring[interval]",
                )
            recurring = {
                "aggregate_usage": payload.recurring.aggregate_usage,
                "interval": payload.recurring.interval,
                "interval_count": payload.recurring.interval_count or 1,
                "trial_period_days": payload.recurring.trial_period_days,
                "usage_type": payload.recurring.usage_type or "licensed",
            }
        unit_amount, unit_amount_decimal = _unit_amount(
            payload.unit_amount, payload.unit_amount_decimal
        )
        if payload.product:
            product_id = Products.retrieve(store, account_id, payload.product, "product")["id"]
        else:
            product_id = None

        price_id = new_id(store.prices, account_id, payload.id, "price_", "Price")
        if product_id is None:
            product_id = Products.create(store, account_id, dict(payload.product_data))["id"]
        price: Record = {
            "id": price_id,
            "object": "price",
            "active": payload.active if payload.active is not None else True,
            "billing_scheme": billing_scheme,
            "created": now_ts(),
            "currency": currency,
            "livemode": False,
            "lookup_key": payload.lookup_key,
            "metadata": stringify_metadata(payload.metadata),
            "nickname": payload.nickname,
            "product": product_id,
            "recurring": recurring,
            "tiers_mode": payload.tiers_mode,
            "transform_quantity": payload.transform_quantity,
            "type": "recurring" if recurring else "one_time",
            "unit_amount": unit_amount,
            "unit_amount_decimal": unit_amount_decimal,
        }
        insert(store.prices, account_id, price, "Price")
        logger.info("Created price %s in %s", price_id, account_id)
        return price

    @staticmethod
    def get_or_create(store: Store, account_id: str, price_id: str) -> Record:
        """Existing price, or a synthetic $10 monthly one stored under ``price_id``."""
        with store.lock:
            price = store.prices.get(account_id, price_id)
            if price is not None:
                return price
            price = {
                "id": price_id,
                "object": "price",
                "active": True,
                "billing_scheme": "per_unit",
                "created": now_ts(),
                "currency": "usd",
                "livemode": False,
                "lookup_key": None,
                "metadata": {},
                "nickname": None,
                "product": f"prod_{price_id[6:]}",
                "recurring": {
                    "aggregate_usage": None,
                    "interval": "month",
                    "interval_count": 1,
                    "trial_period_days": None,
                    "usage_type": "licensed",
                },
                "tiers_mode": None,
                "transform_quantity": None,
                "type": "recurring",
                "unit_amount": 1000,
                "unit_amount_decimal": "1000",
            }
            store.prices.put(account_id, price)
        logger.info("Auto-created price %s in %s", price_id, account_id)
        return price

    @staticmethod
    def retrieve(store: Store, account_id: str, price_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve price %s in %s", price_id, account_id)
        return get_or_404(store.prices, account_id, price_id, "price", param)

    @staticmethod
    def update(store: Store, account_id: str, price_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(PriceUpdate, params)
        values = payload.present()
        with store.lock:
            price = Prices.retrieve(store, account_id, price_id)
            for key in ("active", "nickname", "lookup_key"):
                if key in values:
                    price[key] = values[key]
            if "metadata" in values:
                price["metadata"] = merge_metadata(price["metadata"], values["metadata"])
        logger.info("Updated price %s in %s", price_id, account_id)
        return price

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(PriceListParams, params)
        data = store.prices.get_all(account_id)
        if query.active is not None:
            data = [d for d in data if d["active"] == query.active]
        if query.currency:
            data = [d for d in data if d["currency"] == query.currency.lower()]
        if query.product:
            data = [d for d in data if d["product"] == query.product]
        if query.type:
            data = [d for d in data if d["type"] == query.type]
        return apply_list_options(
            data, query, lambda object_id, param: Prices.retrieve(store, account_id, object_id, param)
        )


prices = Prices()
