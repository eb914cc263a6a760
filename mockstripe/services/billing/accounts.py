"""Connected accounts.

Connected accounts all live in the platform account's partition. The
platform account itself is never stored and is synthesized on demand.
"""
import logging
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError
from mockstripe.schemas.billing import AccountCreate, AccountUpdate
from mockstripe.schemas.common import ListParams
from mockstripe.services import verify
from mockstripe.services.common import (
    ListPage,
    apply_list_options,
    deleted,
    insert,
    list_object,
    merge_metadata,
    new_id,
    now_ts,
    parse_params,
    stringify_metadata,
)

logger = logging.getLogger(__name__)

ACCOUNT_TYPES = ["standard", "custom", "express"]

_BUSINESS_PROFILE_FIELDS = (
    "mcc",
    "name",
    "product_description",
    "support_address",
    "support_email",
    "support_phone",
    "support_url",
    "url",
)

_REQUIREMENTS = {
    "current_deadline": None,
    "currently_due": [
        "business_type",
        "business_url",
        "company.address.city",
        "company.address.line1",
        "company.address.postal_code",
        "company.address.state",
        "product_description",
        "support_phone",
        "tos_acceptance.date",
        "tos_acceptance.ip",
    ],
    "disabled_reason": "requirements.past_due",
    "eventually_due": [
        "business_url",
        "product_description",
        "support_phone",
        "tos_acceptance.date",
        "tos_acceptance.ip",
    ],
    "past_due": [],
    "pending_verification": [],
}

# Fields the real API never returns for these account types
_OMITTED_FIELDS = {
    "standard": ("company", "created", "external_accounts", "individual", "requirements", "tos_acceptance"),
    "express": ("company", "individual", "tos_acceptance"),
}


def _business_profile(params: dict[str, Any] | None) -> dict[str, Any]:
    params = params or {}
    profile = {key: params.get(key) for key in _BUSINESS_PROFILE_FIELDS}
    profile["name"] = profile["name"] or "Stripe.com"
    return profile


def _settings(params: dict[str, Any] | None) -> dict[str, Any]:
    branding = (params or {}).get("branding") or {}
    return {
        "branding": {
            "icon": branding.get("icon"),
            "logo": branding.get("logo"),
            "primary_color": branding.get("primary_color"),
        },
        "card_payments": {
            "decline_on": {"avs_failure": True, "cvc_failure": False},
            "statement_descriptor_prefix": None,
        },
        "dashboard": {"display_name": "Stripe.com", "timezone": "US/Pacific"},
        "payments": {
            "statement_descriptor": "",
            "statement_descriptor_kana": None,
            "statement_descriptor_kanji": None,
        },
        "payouts": {
            "debit_negative_balances": True,
            "schedule": {"delay_days": 7, "interval": "daily"},
            "statement_descriptor": None,
        },
    }


def _platform_account(account_id: str) -> Record:
    return {
        "id": account_id,
        "object": "account",
        "business_profile": _business_profile(None),
        "business_type": None,
        "capabilities": {},
        "charges_enabled": True,
        "country": "US",
        "default_currency": "usd",
        "details_submitted": True,
        "email": "site@stripe.com",
        "metadata": {},
        "payouts_enabled": True,
        "settings": _settings(None),
        "type": "standard",
    }


class Accounts:
    @staticmethod
    def create(store: Store, account_id: str, params: dict[str, Any]) -> Record:
        if account_id != store.platform_account_id:
            raise StripeError(
                400,
                "You can only create new accounts if you've signed up for Connect, "
                "which you can learn how to do at https://stripe.com/docs/connect.",
            )
        payload = parse_params(AccountCreate, params)
        values = payload.present()
        verify.required_params(values, ["type"])
        verify.required_value(values, "type", ACCOUNT_TYPES)
        if payload.default_currency:
            verify.currency(payload.default_currency.lower(), "default_currency")

        connected_id = new_id(store.accounts, account_id, payload.id, "acct_", "Account", 16)
        tos = payload.tos_acceptance or {}
        account: Record = {
            "id": connected_id,
            "object": "account",
            "business_profile": _business_profile(payload.business_profile),
            "business_type": payload.business_type,
            "capabilities": {},
            "charges_enabled": False,
            "country": payload.country or "US",
            "created": now_ts(),
            "default_currency": (payload.default_currency or "usd").lower(),
            "details_submitted": False,
            "email": payload.email or "site@stripe.com",
            "external_accounts": list_object([], f"/v1/accounts/{connected_id}/external_accounts"),
            "metadata": stringify_metadata(payload.metadata),
            "payouts_enabled": False,
            "requirements": {
                key: list(value) if isinstance(value, list) else value
                for key, value in _REQUIREMENTS.items()
            },
            "settings": _settings(payload.settings),
            "tos_acceptance": {
                "date": tos.get("date"),
                "ip": tos.get("ip"),
                "user_agent": tos.get("user_agent"),
            },
            "type": payload.type,
        }
        for key in _OMITTED_FIELDS.get(payload.type, ()):
            account.pop(key, None)
        insert(store.accounts, account_id, account, "Account")
        logger.info("Created %s account %s", payload.type, connected_id)
        return account

    @staticmethod
    def retrieve(
        store: Store, account_id: str, connected_id: str, censored_key: str = ""
    ) -> Record:
        logger.debug("Retrieve account %s as %s", connected_id, account_id)
        if account_id not in (store.platform_account_id, connected_id):
            raise StripeError(
                400,
                "The account specified in the path of /v1/accounts/:account does not "
                "match the account specified in the Stripe-Account header.",
            )
        account = store.accounts.get(store.platform_account_id, connected_id)
        if account is None:
            raise StripeError(
                403,
                f"The provided key '{censored_key}' does not have access to account "
                f"'{connected_id}' (or that account does not exist). Application access "
                "may have been revoked.",
                code="account_invalid",
            )
        return account

    @staticmethod
    def retrieve_current(store: Store, account_id: str, censored_key: str = "") -> Record:
        if account_id == store.platform_account_id:
            return _platform_account(account_id)
        return Accounts.retrieve(store, account_id, account_id, censored_key)

    @staticmethod
    def list(store: Store, account_id: str, params: dict[str, Any]) -> ListPage:
        query = parse_params(ListParams, params)
        data = store.accounts.get_all(store.platform_account_id)
        return apply_list_options(
            data,
            query,
            lambda object_id, param: Accounts.retrieve(store, account_id, object_id),
        )

    @staticmethod
    def update(
        store: Store, account_id: str, connected_id: str, params: dict[str, Any],
        censored_key: str = "",
    ) -> Record:
        payload = parse_params(AccountUpdate, params)
        values = payload.present()
        if payload.default_currency:
            verify.currency(payload.default_currency.lower(), "default_currency")
        with store.lock:
            account = Accounts.retrieve(store, account_id, connected_id, censored_key)
            if "email" in values:
                account["email"] = values["email"]
            if "default_currency" in values:
                account["default_currency"] = (values["default_currency"] or "usd").lower()
            if values.get("business_profile"):
                for key in _BUSINESS_PROFILE_FIELDS:
                    if key in values["business_profile"]:
                        account["business_profile"][key] = values["business_profile"][key]
            if "metadata" in values:
                account["metadata"] = merge_metadata(account["metadata"], values["metadata"])
        logger.info("Updated account %s", connected_id)
        return account

    @staticmethod
    def delete(
        store: Store, account_id: str, connected_id: str, censored_key: str = ""
    ) -> dict[str, Any]:
        Accounts.retrieve(store, account_id, connected_id, censored_key)
        store.accounts.remove(store.platform_account_id, connected_id)
        logger.info("Deleted account %s", connected_id)
        return deleted(connected_id, "account")


accounts = Accounts()
