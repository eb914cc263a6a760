import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import TaxRateCreate, TaxRateListParams, TaxRateUpdate
from mockstripe.services import verify
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


class TaxRates:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(TaxRateCreate, params)
        values = payload.present()
        verify.required_params(values, ["display_name", "inclusive", "percentage"])
        if not 0 <= payload.percentage <= 100:
            raise StripeError(
                400,
                "Invalid percentage: must be between 0 and 100",
                param="percentage",
            )
        tax_rate_id = new_id(store.tax_rates, account_id, payload.id, "txr_", "Tax rate")
        tax_rate: Record = {
            "id": tax_rate_id,
            "object": "tax_rate",
            "active": payload.active if payload.active is not None else True,
            "created": now_ts(),
            "description": payload.description,
            "display_name": payload.display_name,
            "inclusive": payload.inclusive,
            "jurisdiction": payload.jurisdiction,
            "livemode": False,
            "metadata": stringify_metadata(payload.metadata),
            "percentage": payload.percentage,
        }
        insert(store.tax_rates, account_id, tax_rate, "Tax rate")
        logger.info("Created tax rate %s in %s", tax_rate_id, account_id)
        return tax_rate

    @staticmethod
    def retrieve(store: Store, account_id: str, tax_rate_id: str, param: str = "id") -> Record:
        logger.debug("Retrieve tax rate %s in %s", tax_rate_id, account_id)
        return get_or_404(store.tax_rates, account_id, tax_rate_id, "tax rate", param)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(TaxRateListParams, params)
        data = store.tax_rates.get_all(account_id)
        if query.active is not None:
            data = [d for d in data if d["active"] == query.active]
        if query.inclusive is not None:
            data = [d for d in data if d["inclusive"] == query.inclusive]
        return apply_list_options(
            data, query, lambda object_id, param: TaxRates.retrieve(store, account_id, object_id, param)
        )

    @staticmethod
    def update(store: Store, account_id: str, tax_rate_id: str, params: dict[str, Any]) -> Record:
        payload = parse_params(TaxRateUpdate, params)
        values = payload.present()
        with store.lock:
            tax_rate = TaxRates.retrieve(store, account_id, tax_rate_id)
            for key in ("active", "description", "display_name", "jurisdiction"):
                if key in values:
                    tax_rate[key] = values[key]
            if "metadata" in values:
                tax_rate["metadata"] = merge_metadata(tax_rate["metadata"], values["metadata"])
        logger.info("Updated tax rate %s in %s", tax_rate_id, account_id)
        return tax_rate


tax_rates = TaxRates()
