"""Guarded mutations under concurrent callers."""

import threading
from concurrent.futures import ThreadPoolExecutor

from mockstripe.db import AccountData, RecordConflictError
from mockstripe.errors import StripeError
from mockstripe.services import billing as billing_service

WORKERS = 16


def _run_all(fn, count=WORKERS):
    """Start ``count`` calls together and collect (result, error) pairs."""
    barrier = threading.Barrier(count)

    def call(ix):
        barrier.wait()
        try:
            return fn(ix), None
        except (StripeError, RecordConflictError) as exc:
            return None, exc

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(call, range(count)))


def test_charge_is_captured_once(store, account_id, uncaptured_charge):
    outcomes = _run_all(
        lambda _: billing_service.charges.capture(store, account_id, uncaptured_charge["id"], {})
    )
    successes = [result for result, error in outcomes if error is None]
    failures = [error for result, error in outcomes if error is not None]
    assert len(successes) == 1
    assert len(failures) == WORKERS - 1
    assert all(error.code == "charge_already_captured" for error in failures)
    assert uncaptured_charge["captured"] is True


def test_partial_refunds_never_exceed_amount(store, account_id, charge):
    # 2000 in steps of 300 fits six refunds
    outcomes = _run_all(
        lambda _: billing_service.refunds.create(
            store, account_id, {"charge": charge["id"], "amount": 300}
        )
    )
    successes = [result for result, error in outcomes if error is None]
    assert len(successes) == 6
    assert charge["amount_refunded"] == 1800
    assert charge["amount_refunded"] <= charge["amount"]
    assert charge["refunds"]["total_count"] == 6
    assert len(store.refunds.get_all(account_id)) == 6


def test_same_id_put_succeeds_once():
    records = AccountData()
    outcomes = _run_all(lambda ix: records.put("acct_a", {"id": "ch_same", "worker": ix}))
    errors = [error for _, error in outcomes if error is not None]
    assert len(errors) == WORKERS - 1
    assert all(isinstance(error, RecordConflictError) for error in errors)
    assert len(records.get_all("acct_a")) == 1


def test_same_id_create_succeeds_once(store, account_id):
    outcomes = _run_all(
        lambda _: billing_service.products.create(
            store, account_id, {"id": "prod_same", "name": "Gold"}
        )
    )
    errors = [error for _, error in outcomes if error is not None]
    assert len(errors) == WORKERS - 1
    assert all(error.code == "resource_already_exists" for error in errors)
    assert len(store.products.get_all(account_id)) == 1
