"""Source tokens: the magic strings that stand in for real card data.

Each known token maps to a synthetic card. Some also carry side effects:
failing before a charge exists, declining a charge after it is stored,
flagging it for review, refusing to attach to a customer, or scheduling a
dispute. A token chain (``tok_a|tok_b``) hands out one token per use.
"""
from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from mockstripe.db import Record, Store
from mockstripe.errors import StripeError

logger = logging.getLogger(__name__)

TOKEN_CHAIN = re.compile(r"^[A-Za-z0-9_-]+(\|[A-Za-z0-9_-]+)+$")
PAYMENT_METHOD_PREFIX = "pm_card_"


@dataclass(frozen=True)
class CardToken:
    brand: str
    last4: str
    country: str = "US"
    funding: str = "credit"
    save: bool = True


CARD_TOKENS: dict[str, CardToken] = {
    "tok_visa": CardToken("Visa", "4242"),
    "tok_visa_debit": CardToken("Visa", "5556", funding="debit"),
    "tok_mastercard": CardToken("MasterCard", "4444"),
    "tok_mastercard_debit": CardToken("MasterCard", "3222", funding="debit"),
    "tok_mastercard_prepaid": CardToken("MasterCard", "5100", funding="prepaid"),
    "tok_amex": CardToken("American Express", "8431"),
    "tok_ca": CardToken("Visa", "0000", country="CA"),
    "tok_chargeCustomerFail": CardToken("Visa", "0341"),
    "tok_riskLevelElevated": CardToken("Visa", "9235"),
    "tok_chargeDeclined": CardToken("Visa", "0002"),
    "tok_chargeDeclinedInsufficientFunds": CardToken("Visa", "9995"),
    "tok_chargeDeclinedFraudulent": CardToken("Visa", "0019"),
    "tok_chargeDeclinedIncorrectCvc": CardToken("Visa", "0127"),
    "tok_chargeDeclinedExpiredCard": CardToken("Visa", "0069"),
    "tok_chargeDeclinedProcessingError": CardToken("Visa", "0119"),
    "tok_createDispute": CardToken("Visa", "0259"),
    "tok_createDisputeProductNotReceived": CardToken("Visa", "2685"),
    "tok_createDisputeInquiry": CardToken("Visa", "1976"),
    # Cards from this token are never saved anywhere
    "tok_forget": CardToken("Visa", "1982", save=False),
}

BRAND_CODES = {
    "Visa": "visa",
    "American Express": "amex",
    "MasterCard": "mastercard",
    "Discover": "discover",
    "JCB": "jcb",
    "Diners Club": "diners",
    "Unknown": "unknown",
}

_ISSUER_DECLINE_MESSAGE = "The bank did not return any further details with this decline."


@dataclass(frozen=True)
class Decline:
    code: str
    decline_code: str
    message: str
    param: str | None = None
    outcome: dict[str, Any] = field(default_factory=dict)
    # Declines on attach to a customer as well as on charge
    on_attach: bool = False


def _issuer_decline(reason: str, seller_message: str = _ISSUER_DECLINE_MESSAGE) -> dict[str, Any]:
    return {
        "network_status": "declined_by_network",
        "reason": reason,
        "risk_level": "normal",
        "seller_message": seller_message,
        "type": "issuer_declined",
    }


DECLINES: dict[str, Decline] = {
    "tok_chargeDeclined": Decline(
        "card_declined",
        "generic_decline",
        "Your card was declined.",
        outcome=_issuer_decline("generic_decline"),
        on_attach=True,
    ),
    "tok_chargeDeclinedInsufficientFunds": Decline(
        "card_declined",
        "insufficient_funds",
        "Your card has insufficient funds.",
        outcome=_issuer_decline("insufficient_funds"),
        on_attach=True,
    ),
    "tok_chargeDeclinedFraudulent": Decline(
        "card_declined",
        "fraudulent",
        "Your card was declined.",
        outcome={
            "network_status": "not_sent_to_network",
            "reason": "merchant_blacklist",
            "risk_level": "highest",
            "seller_message": "Stripe blocked this payment.",
            "type": "blocked",
        },
    ),
    "tok_chargeDeclinedIncorrectCvc": Decline(
        "incorrect_cvc",
        "incorrect_cvc",
        "Your card's security code is incorrect.",
        param="cvc",
        outcome=_issuer_decline("incorrect_cvc"),
        on_attach=True,
    ),
    "tok_chargeDeclinedExpiredCard": Decline(
        "expired_card",
        "expired_card",
        "Your card has expired.",
        param="exp_month",
        outcome=_issuer_decline("expired_card"),
        on_attach=True,
    ),
    "tok_chargeDeclinedProcessingError": Decline(
        "processing_error",
        "processing_error",
        "An error occurred while processing your card. Try again in a little bit.",
        outcome=_issuer_decline(
            "processing_error",
            "The bank could not process this payment.",
        ),
    ),
    "tok_chargeCustomerFail": Decline(
        "card_declined",
        "generic_decline",
        "Your card was declined.",
        outcome=_issuer_decline("generic_decline"),
    ),
}

ELEVATED_RISK_OUTCOME = {
    "network_status": "approved_by_network",
    "reason": "elevated_risk_level",
    "risk_level": "elevated",
    "seller_message": (
        "Stripe evaluated this payment as having elevated risk, "
        "and placed it in your manual review queue."
    ),
    "type": "manual_review",
}

DISPUTE_TOKENS = frozenset(
    {
        "tok_createDispute",
        "tok_createDisputeProductNotReceived",
        "tok_createDisputeInquiry",
    }
)


def is_token_chain(token: str) -> bool:
    return bool(TOKEN_CHAIN.match(token))


def next_in_chain(store: Store, chain: str, param: str = "source") -> str:
    """Consume the next token of ``chain``.

    The cursor is keyed by the literal chain string, so every caller that
    presents the same string shares it.
    """
    tokens = chain.split("|")
    with store.lock:
        position = store.token_chain_cursors.get(chain, 0)
        if position >= len(tokens):
            raise StripeError(
                400,
                f"Source token chain '{chain}' can only be used {len(tokens)} times.",
                param=param,
            )
        store.token_chain_cursors[chain] = position + 1
    logger.debug("Token chain %s yielded %s (use %d)", chain, tokens[position], position + 1)
    return tokens[position]


def resolve(store: Store, token: str, param: str = "source") -> str:
    """Turn whatever the caller sent into a single plain ``tok_`` token."""
    if is_token_chain(token):
        token = next_in_chain(store, token, param)
    if token.startswith(PAYMENT_METHOD_PREFIX):
        token = "tok_" + token[len(PAYMENT_METHOD_PREFIX):]
    return token


def card_token(token: str, param: str = "source") -> CardToken:
    try:
        return CARD_TOKENS[token]
    except KeyError:
        raise StripeError(
            400,
            f"No such token: '{token}'",
            code="resource_missing",
            param=param,
        ) from None


def fingerprint(token: str) -> str:
    return hashlib.sha1(token.encode("utf-8")).hexdigest()[:16]


def check_pre_charge(token: str | None) -> None:
    """Tokens that fail a request before anything is stored."""
    if token == "tok_429":
        raise StripeError(
            429,
            "Too many requests hit the API too quickly. We recommend an "
            "exponential backoff of your requests.",
            "rate_limit_error",
            code="rate_limit",
        )
    if token == "tok_500":
        raise StripeError(
            500,
            "An unknown error occurred while processing this request.",
            "api_error",
        )


def check_attach(token: str) -> None:
    """Some decline tokens cannot even be attached to a customer."""
    decline = DECLINES.get(token)
    if decline is not None and decline.on_attach:
        raise StripeError(
            402,
            decline.message,
            "card_error",
            code=decline.code,
            decline_code=decline.decline_code,
            param=decline.param,
        )


def apply_charge_effects(token: str | None, charge: Record) -> None:
    """Mutate a stored charge the way ``token`` dictates.

    Declines leave the failed charge in place and then raise the card error
    that references it.
    """
    if token == "tok_riskLevelElevated":
        charge["outcome"] = dict(ELEVATED_RISK_OUTCOME)
        charge["review"] = "prv_" + charge["id"][3:]
        return
    decline = DECLINES.get(token or "")
    if decline is None:
        return
    charge["failure_code"] = decline.code
    charge["failure_message"] = decline.message
    charge["outcome"] = dict(decline.outcome)
    charge["status"] = "failed"
    charge["paid"] = False
    charge["captured"] = False
    charge["amount_captured"] = 0
    logger.info("Declined charge %s with %s", charge["id"], decline.decline_code)
    raise StripeError(
        402,
        decline.message,
        "card_error",
        code=decline.code,
        decline_code=decline.decline_code,
        param=decline.param,
        charge=charge["id"],
    )
