"""Tests for the partitioned record store."""

import pytest

from mockstripe.db import AccountData, RecordConflictError


def test_put_and_get():
    records = AccountData()
    records.put("acct_a", {"id": "ch_1", "created": 1})
    assert records.get("acct_a", "ch_1") == {"id": "ch_1", "created": 1}
    assert records.contains("acct_a", "ch_1") is True


def test_get_missing_returns_none():
    records = AccountData()
    assert records.get("acct_a", "ch_1") is None
    assert records.contains("acct_a", "ch_1") is False


def test_put_refuses_to_overwrite():
    records = AccountData()
    records.put("acct_a", {"id": "ch_1"})
    with pytest.raises(RecordConflictError):
        records.put("acct_a", {"id": "ch_1"})


def test_partitions_are_isolated():
    records = AccountData()
    records.put("acct_a", {"id": "ch_1", "created": 1})
    records.put("acct_b", {"id": "ch_1", "created": 2})
    assert records.get("acct_a", "ch_1")["created"] == 1
    assert records.get("acct_b", "ch_1")["created"] == 2
    assert records.get_all("acct_c") == []


def test_get_all_is_newest_first():
    records = AccountData()
    records.put("acct_a", {"id": "old", "created": 100})
    records.put("acct_a", {"id": "new", "created": 200})
    records.put("acct_a", {"id": "newer_same_second", "created": 200})
    ids = [r["id"] for r in records.get_all("acct_a")]
    assert ids == ["newer_same_second", "new", "old"]


def test_remove():
    records = AccountData()
    records.put("acct_a", {"id": "ch_1"})
    records.remove("acct_a", "ch_1")
    records.remove("acct_a", "ch_1")
    assert records.get("acct_a", "ch_1") is None


def test_accounts_lists_partitions():
    records = AccountData()
    records.put("acct_a", {"id": "x"})
    records.put("acct_b", {"id": "y"})
    assert sorted(records.accounts()) == ["acct_a", "acct_b"]


def test_get_all_orders_records_without_created():
    records = AccountData()
    records.put("acct_a", {"id": "first", "created": 100})
    records.put("acct_a", {"id": "second"})
    records.put("acct_a", {"id": "third", "created": 100})
    assert [r["id"] for r in records.get_all("acct_a")] == ["third", "second", "first"]
