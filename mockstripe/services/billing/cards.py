import logging
from datetime import datetime, timezone

from mockstripe.db import Record, Store
from mockstripe.services import tokens
from mockstripe.services.common import generate_id

logger = logging.getLogger(__name__)


class Cards:
    @staticmethod
    def create_from_source(
        store: Store, account_id: str, token: str, param: str = "source"
    ) -> Record:
        """Build an unattached card for a plain (already resolved) token."""
        details = tokens.card_token(token, param)
        now = datetime.now(timezone.utc)
        card_id = "card_" + generate_id(24)
        card: Record = {
            "id": card_id,
            "object": "card",
            "address_city": None,
            "address_country": None,
            "address_line1": None,
            "address_line1_check": None,
            "address_line2": None,
            "address_state": None,
            "address_zip": None,
            "address_zip_check": None,
            "brand": details.brand,
            "country": details.country,
            "customer": None,
            "cvc_check": None,
            "dynamic_last4": None,
            "exp_month": now.month,
            "exp_year": now.year + 1,
            "fingerprint": tokens.fingerprint(token),
            "funding": details.funding,
            "last4": details.last4,
            "metadata": {},
            "name": None,
            "tokenization_method": None,
        }
        if details.save:
            store.card_extras.put(account_id, {"id": card_id, "source_token": token})
        logger.debug("Created card %s from %s in %s", card_id, token, account_id)
        return card

    @staticmethod
    def source_token(store: Store, account_id: str, card_id: str) -> str | None:
        extra = store.card_extras.get(account_id, card_id)
        return extra["source_token"] if extra else None

    @staticmethod
    def forget(store: Store, account_id: str, card_id: str) -> None:
        store.card_extras.remove(account_id, card_id)


cards = Cards()
