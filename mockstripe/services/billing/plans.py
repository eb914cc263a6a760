import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import PlanCreate, PlanListParams, PlanUpdate
from mockstripe.services import verify
from mockstripe.services.billing.products import Products
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    deleted,
    get_or_404,
    insert,
    merge_metadata,
    new_id,
    now_ts,
    parse_params,
    stringify_metadata,
)

logger = logging.getLogger(__name__)


class Plans:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(PlanCreate, params)
        values = payload.present()
        verify.required_params(values, ["currency", "interval", "product"])
        verify.required_value(values, "billing_scheme", ["per_unit", "tiered", None])
        verify.required_value(values, "interval", ["day", "month", "week", "year"])
        verify.required_value(values, "usage_type", ["licensed", "metered", None])
        currency = payload.currency.lower()
        verify.currency(currency, "currency")

        plan_id = new_id(store.plans, account_id, payload.id, "plan_", "Plan", 14)
        if isinstance(payload.product, str):
            product = Products.retrieve(store, account_id, payload.product, "product")
            if product["type"] != "service":
                raise StripeError(
                    400,
                    "Plans may only be created with products of type `service`, but the "
                    f"supplied product (`{product['id']}`) had type `{product['type']}`.",
                    param="product",
                )
        else:
            product = Products.create(store, account_id, {**payload.product, "type": "service"})

        billing_scheme = payload.billing_scheme or "per_unit"
        usage_type = payload.usage_type or "licensed"
        plan: Record = {
            "id": plan_id,
            "object": "plan",
            "active": payload.active if payload.active is not None else True,
            "aggregate_usage": (payload.aggregate_usage or "sum") if usage_type == "metered" else None,
            "amount": payload.amount if billing_scheme == "per_unit" else None,
            "billing_scheme": billing_scheme,
            "created": now_ts(),
            "currency": currency,
            "interval": payload.interval,
            "interval_count": payload.interval_count or 1,
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "nickname": payload.nickname,
            "product": product["id"],
            "tiers": payload.tiers,
            "tiers_mode": payload.tiers_mode,
            "transform_usage": payload.transform_usage,
            "trial_period_days": payload.trial_period_days,
            "usage_type": usage_type,
        }
        insert(store.plans, account_id, plan, "Plan")
        logger.info("Created plan %s in %s", plan_id, account_id)
        return plan

    @staticmethod
    def get_or_create(store: Store, account_id: str, plan_id: str) -> Record:
        """Existing plan, or a synthetic $10 monthly one stored under ``plan_id``."""
        with store.lock:
            plan = store.plans.get(account_id, plan_id)
            if plan is not None:
                return plan
            plan = {
                "id": plan_id,
                "object": "plan",
                "active": True,
                "aggregate_usage": None,
                "amount": 1000,
                "billing_scheme": "per_unit",
                "created": now_ts(),
                "currency": "usd",
                "interval": "month",
                "interval_count": 1,
                "livemode": False,
                "metadata": {},
                "nickname": None,
                "product": f"prod_{plan_id[5:]}",
                "tiers": None,
                "tiers_mode": None,
                "transform_usage": None,
                "trial_period_days": None,
                "usage_type": "licensed",
            }
            store.plans.put(account_id, plan)
        logger.info("Auto-created plan %s in %s", plan_id, account_id)
        return plan

    @staticmethod
    def retrieve(store: Store, account_id: str, plan_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve plan %s in %s", plan_id, account_id)
        return get_or_404(store.plans, account_id, plan_id, "plan", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(PlanListParams, params)
        data = store.plans.get_all(account_id)
        if query.active is not None:
            data = [d for d in data if d["active"] == query.active]
        if query.product:
            data = [d for d in data if d["product"] == query.product]
        return apply_list_options(
            data, query, lambda object_id, param: Plans.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, plan_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(PlanUpdate, params)
        values = payload.present()
        with store.lock:
            plan = Plans.retrieve(store, account_id, plan_id)
            for key in ("active", "nickname", "trial_period_days"):
                if key in values:
                    plan[key] = values[key]
            if "metadata" in values:
                plan["metadata"] = merge_metadata(plan["metadata"], values["metadata"])
        logger.info("Updated plan %s in %s", plan_id, account_id)
        return plan

    @staticmethod
    def delete(store: Store, account_id: str, plan_id: str) -> dict[str, Any]:
        with store.lock:
            Plans.retrieve(store, account_id, plan_id)
            store.plans.remove(account_id, plan_id)
        logger.info("Deleted plan %s in %s", plan_id, account_id)
        return deleted(plan_id, "plan")


plans = Plans()
