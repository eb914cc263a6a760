"""Tests for the source token interpreter."""

import pytest

from mockstripe.db import Store
from mockstripe.errors import StripeError
from mockstripe.services import tokens


def test_is_token_chain():
    assert tokens.is_token_chain("tok_chargeDeclined|tok_visa") is True
    assert tokens.is_token_chain("tok_visa") is False
    assert tokens.is_token_chain("tok_visa|") is False


def test_chain_hands_out_tokens_in_order(store):
    chain = "tok_chargeDeclined|tok_visa"
    assert tokens.resolve(store, chain) == "tok_chargeDeclined"
    assert tokens.resolve(store, chain) == "tok_visa"


def test_exhausted_chain_raises(store):
    chain = "tok_visa|tok_mastercard"
    tokens.resolve(store, chain)
    tokens.resolve(store, chain)
    with pytest.raises(StripeError) as exc_info:
        tokens.resolve(store, chain)
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == (
        "Source token chain 'tok_visa|tok_mastercard' can only be used 2 times."
    )


def test_chains_are_independent_per_store(store):
    chain = "tok_amex|tok_visa"
    assert tokens.resolve(store, chain) == "tok_amex"
    assert tokens.resolve(Store(), chain) == "tok_amex"


def test_payment_method_alias():
    assert tokens.resolve(Store(), "pm_card_visa") == "tok_visa"


def test_card_token_unknown():
    with pytest.raises(StripeError) as exc_info:
        tokens.card_token("tok_bogus")
    assert exc_info.value.code == "resource_missing"
    assert exc_info.value.message == "No such token: 'tok_bogus'"
    assert exc_info.value.param == "source"


def test_card_token_known():
    card = tokens.card_token("tok_mastercard")
    assert card.brand == "MasterCard"
    assert card.last4 == "4444"


def test_fingerprint_is_stable():
    assert tokens.fingerprint("tok_visa") == tokens.fingerprint("tok_visa")
    assert tokens.fingerprint("tok_visa") != tokens.fingerprint("tok_amex")


def test_pre_charge_rate_limit():
    with pytest.raises(StripeError) as exc_info:
        tokens.check_pre_charge("tok_429")
    assert exc_info.value.status_code == 429
    assert exc_info.value.type == "rate_limit_error"


def test_pre_charge_api_error():
    with pytest.raises(StripeError) as exc_info:
        tokens.check_pre_charge("tok_500")
    assert exc_info.value.status_code == 500
    assert exc_info.value.type == "api_error"


def test_check_attach_only_for_attach_declines():
    tokens.check_attach("tok_chargeCustomerFail")
    tokens.check_attach("tok_visa")
    with pytest.raises(StripeError) as exc_info:
        tokens.check_attach("tok_chargeDeclinedExpiredCard")
    assert exc_info.value.status_code == 402
    assert exc_info.value.code == "expired_card"


def test_apply_charge_effects_decline_marks_charge_failed():
    charge = {"id": "ch_1", "status": "succeeded", "paid": True, "captured": True}
    with pytest.raises(StripeError) as exc_info:
        tokens.apply_charge_effects("tok_chargeDeclinedInsufficientFunds", charge)
    assert exc_info.value.decline_code == "insufficient_funds"
    assert exc_info.value.charge == "ch_1"
    assert charge["status"] == "failed"
    assert charge["paid"] is False
    assert charge["failure_code"] == "card_declined"


def test_apply_charge_effects_elevated_risk():
    charge = {"id": "ch_abc", "status": "succeeded"}
    tokens.apply_charge_effects("tok_riskLevelElevated", charge)
    assert charge["outcome"]["risk_level"] == "elevated"
    assert charge["review"] == "prv_abc"
    assert charge["status"] == "succeeded"
