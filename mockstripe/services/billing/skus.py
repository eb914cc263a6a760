import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import SkuCreate, SkuListParams, SkuUpdate
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

INVENTORY_TYPES = ("finite", "bucket", "infinite")


def _check_inventory_type(inventory_type: Any) -> None:
    if inventory_type not in INVENTORY_TYPES:
        raise StripeError(
            400,
            "Invalid inventory[type]: must be one of finite, bucket or infinite",
            param="inventory[type]",
        )


def _inventory(inventory: dict[str, Any]) -> dict[str, Any]:
    quantity = inventory.get("quantity")
    return {
        **inventory,
        "quantity": int(quantity) if quantity not in (None, "") else None,
        "value": inventory.get("value"),
    }


class Skus:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(SkuCreate, params)
        values = payload.present()
        verify.required_params(values, ["currency", "inventory", "price", "product"])
        verify.required_params(values, ["inventory[type]"])
        _check_inventory_type(values["inventory"]["type"])
        currency = payload.currency.lower()
        verify.currency(currency, "currency")
        Products.retrieve(store, account_id, payload.product, "product")

        sku_id = new_id(store.skus, account_id, payload.id, "sku_", "Sku", 20)
        now = now_ts()
        sku: Record = {
            "id": sku_id,
            "object": "sku",
            "active": payload.active if payload.active is not None else True,
            "attributes": payload.attributes or {},
            "created": now,
            "currency": currency,
            "image": payload.image,
            "inventory": _inventory(payload.inventory),
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "package_dimensions": payload.package_dimensions,
            "price": payload.price,
            "product": payload.product,
            "updated": now,
        }
        insert(store.skus, account_id, sku, "Sku")
        logger.info("Created sku %s in %s", sku_id, account_id)
        return sku

    @staticmethod
    def retrieve(store: Store, account_id: str, sku_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve sku %s in %s", sku_id, account_id)
        return get_or_404(store.skus, account_id, sku_id, "sku", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(SkuListParams, params)
        data = store.skus.get_all(account_id)
        if query.active is not None:
            data = [d for d in data if d["active"] == query.active]
        if query.ids:
            data = [d for d in data if d["id"] in query.ids]
        if query.product:
            data = [d for d in data if d["product"] == query.product]
        return apply_list_options(
            data, query, lambda object_id, param: Skus.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, sku_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(SkuUpdate, params)
        values = payload.present()
        if values.get("inventory") and "type" in values["inventory"]:
            _check_inventory_type(values["inventory"]["type"])
        with store.lock:
            sku = Skus.retrieve(store, account_id, sku_id)
            for key in ("active", "price", "image"):
                if key in values:
                    sku[key] = values[key]
            if values.get("attributes") is not None:
                sku["attributes"] = {**sku["attributes"], **values["attributes"]}
            if values.get("inventory") is not None:
                sku["inventory"] = _inventory({**sku["inventory"], **values["inventory"]})
            if "metadata" in values:
                sku["metadata"] = merge_metadata(sku["metadata"], values["metadata"])
            sku["updated"] = now_ts()
        logger.info("Updated sku %s in %s", sku_id, account_id)
        return sku


skus = Skus()
