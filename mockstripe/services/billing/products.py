import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import ProductCreate, ProductListParams, ProductUpdate
from mockstripe.services import verify
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


class Products:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(ProductCreate, params)
        values = payload.present()
        values.setdefault("type", "service")
        verify.required_params(values, ["name"])
        verify.required_value(values, "type", ["service", "good"])

        product_type = values["type"]
        product_id = new_id(store.products, account_id, payload.id, "prod_", "Product", 20)
        now = now_ts()
        if product_type == "good":
            shippable = payload.shippable if payload.shippable is not None else True
        else:
            shippable = None
        product: Record = {
            "id": product_id,
            "object": "product",
            "active": payload.active if payload.active is not None else True,
            "attributes": payload.attributes or [],
            "caption": payload.caption,
            "created": now,
            "description": payload.description,
            "images": payload.images or [],
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "name": payload.name,
            "package_dimensions": payload.package_dimensions,
            "shippable": shippable,
            "statement_descriptor": payload.statement_descriptor,
            "type": product_type,
            "updated": now,
            "url": payload.url,
        }
        insert(store.products, account_id, product, "Product")
        logger.info("Created product %s in %s", product_id, account_id)
        return product

    @staticmethod
    def retrieve(store: Store, account_id: str, product_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve product %s in %s", product_id, account_id)
        return get_or_404(store.products, account_id, product_id, "product", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(ProductListParams, params)
        data = store.products.get_all(account_id)
        if query.active is not None:
            data = [d for d in data if d["active"] == query.active]
        if query.ids:
            data = [d for d in data if d["id"] in query.ids]
        if query.shippable is not None:
            data = [d for d in data if d["shippable"] == query.shippable]
        if query.url:
            data = [d for d in data if d["url"] == query.url]
        if query.type:
            data = [d for d in data if d["type"] == query.type]
        return apply_list_options(
            data, query, lambda object_id, param: Products.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, product_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(ProductUpdate, params)
        values = payload.present()
        with store.lock:
            product = Products.retrieve(store, account_id, product_id)
            if "name" in values and not values["name"]:
                raise StripeError(400, "You must supply a non-empty name.", param="name")
            for key in ("name", "description", "active", "url", "statement_descriptor"):
                if key in values:
                    product[key] = values[key]
            if "images" in values:
                product["images"] = values["images"] or []
            if "metadata" in values:
                product["metadata"] = merge_metadata(product["metadata"], values["metadata"])
            product["updated"] = now_ts()
        logger.info("Updated product %s in %s", product_id, account_id)
        return product

    @staticmethod
    def delete(store: Store, account_id: str, product_id: str) -> dict[str, Any]:
        with store.lock:
            Products.retrieve(store, account_id, product_id)
            for records, noun in (
                (store.prices, "prices"),
                (store.plans, "plans"),
                (store.skus, "SKUs"),
            ):
                if any(r.get("product") == product_id for r in records.get_all(account_id)):
                    raise StripeError(
                        400,
                        f"This product cannot be deleted because it has one or more {noun}.",
                    )
            store.products.remove(account_id, product_id)
        logger.info("Deleted product %s in %s", product_id, account_id)
        return deleted(product_id, "product")


products = Products()
