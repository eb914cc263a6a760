"""Idempotency-key bookkeeping.

The first request under a key records its decoded parameters and, once it
finishes, its response. Later requests with the same key either replay that
response or are rejected.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any

from cachetools import TTLCache

from mockstripe.errors import StripeError
from mockstripe.services.common import generate_id

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str, str]

# Responses with these statuses never happened as far as the client is concerned
UNCACHED_STATUSES = frozenset({401, 429})


def new_request_id() -> str:
    return "req_" + generate_id(14)


@dataclass
class IdempotentRequest:
    params: Any
    request_id: str
    status_code: int | None = None
    body: bytes | None = None

    @property
    def complete(self) -> bool:
        return self.status_code is not None


class IdempotencyCache:
    def __init__(self, maxsize: int, ttl: int) -> None:
        self._entries: TTLCache[CacheKey, IdempotentRequest] = TTLCache(
            maxsize=maxsize, ttl=ttl
        )
        self._lock = Lock()

    def begin(
        self, key: CacheKey, params: Any, request_id: str
    ) -> tuple[IdempotentRequest, bool]:
        """Returns the entry for ``key`` and whether this request created it.

        Raises when an existing entry cannot be replayed for ``params``.
        """
        idempotency_key = key[3]
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = IdempotentRequest(params=params, request_id=request_id)
                self._entries[key] = entry
                return entry, True
        if entry.params != params:
            logger.info("Idempotency key %s reused with different parameters", idempotency_key)
            raise StripeError(
                400,
                "Keys for idempotent requests can only be used with the same parameters "
                "they were first used with. Try using a key other than "
                f"'{idempotency_key}' if you meant to execute a different request.",
                "idempotency_error",
            )
        if not entry.complete:
            raise StripeError(
                409,
                "There is currently another in-progress request using this Stripe "
                "token (probably the same request). Try again later.",
                "idempotency_error",
            )
        return entry, False

    def complete(self, key: CacheKey, status_code: int, body: bytes) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return
            if status_code in UNCACHED_STATUSES:
                del self._entries[key]
                return
            entry.status_code = status_code
            entry.body = body

    def discard(self, key: CacheKey) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
