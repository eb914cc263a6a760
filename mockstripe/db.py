"""In-memory record storage.

All state lives for the lifetime of the process. Records are plain dicts in
the real service's JSON shape, partitioned by account id.
"""
from __future__ import annotations

from collections.abc import Iterator
from threading import Lock, RLock
from typing import Any, Generic, TypeVar

from fastapi import Request

from mockstripe.config import settings
from mockstripe.tasks import DeferredTasks

Record = dict[str, Any]
T = TypeVar("T", bound=dict)


class RecordConflictError(Exception):
    """Raised when a put would overwrite an existing record."""


class AccountData(Generic[T]):
    """Records of one type, keyed by account id and then record id."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, T]] = {}
        self._lock = Lock()

    def get(self, account_id: str, object_id: str) -> T | None:
        partition = self._data.get(account_id)
        if partition is None:
            return None
        return partition.get(object_id)

    def get_all(self, account_id: str) -> list[T]:
        """Newest first, by insertion order.

        Not every record carries a `created` timestamp (standard accounts do
        not), so the partition's own insertion order is the sequence.
        """
        with self._lock:
            partition = self._data.get(account_id)
            if not partition:
                return []
            return list(reversed(partition.values()))

    def contains(self, account_id: str, object_id: str) -> bool:
        return self.get(account_id, object_id) is not None

    def put(self, account_id: str, record: T) -> None:
        with self._lock:
            partition = self._data.setdefault(account_id, {})
            if record["id"] in partition:
                raise RecordConflictError(
                    f"There is already an entry for [{account_id}][{record['id']}]. "
                    "Refusing to overwrite it."
                )
            partition[record["id"]] = record

    def remove(self, account_id: str, object_id: str) -> None:
        with self._lock:
            partition = self._data.get(account_id)
            if partition is not None:
                partition.pop(object_id, None)

    def accounts(self) -> Iterator[str]:
        return iter(list(self._data))


class Store:
    """Every namespace's records plus the token interpreter's state.

    Construct one per application (or per test) and pass it to the service
    functions explicitly.
    """

    def __init__(self, platform_account_id: str | None = None) -> None:
        # Partition that owns the connected accounts
        self.platform_account_id = platform_account_id or settings.default_account_id
        self.accounts: AccountData[Record] = AccountData()
        self.charges: AccountData[Record] = AccountData()
        self.refunds: AccountData[Record] = AccountData()
        self.disputes: AccountData[Record] = AccountData()
        self.customers: AccountData[Record] = AccountData()
        self.subscriptions: AccountData[Record] = AccountData()
        self.subscription_items: AccountData[Record] = AccountData()
        self.plans: AccountData[Record] = AccountData()
        self.prices: AccountData[Record] = AccountData()
        self.products: AccountData[Record] = AccountData()
        self.skus: AccountData[Record] = AccountData()
        self.tax_rates: AccountData[Record] = AccountData()
        self.checkout_sessions: AccountData[Record] = AccountData()
        self.payment_intents: AccountData[Record] = AccountData()

        # card id -> {"id": card id, "source_token": token}
        self.card_extras: AccountData[Record] = AccountData()
        # literal chain string -> index of the next token to hand out
        self.token_chain_cursors: dict[str, int] = {}

        self.deferred = DeferredTasks()
        # Guards read-modify-write sequences (capture, refund, update)
        self.lock = RLock()


def get_store(request: Request) -> Store:
    return request.app.state.store
