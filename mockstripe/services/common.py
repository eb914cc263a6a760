"""Shared service utilities: ids, timestamps, metadata, params, pagination."""
from __future__ import annotations

import json
import random
import re
import string
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar
from urllib.parse import parse_qsl

from pydantic import BaseModel, ValidationError

from mockstripe.db import AccountData, Record, RecordConflictError
from mockstripe.errors import StripeError, resource_already_exists, resource_missing

M = TypeVar("M", bound=BaseModel)

_ID_CHARS = string.digits + string.ascii_letters
_KEY_PART = re.compile(r"\[([^\[\]]*)\]")


def generate_id(length: int = 20) -> str:
    return "".join(random.choice(_ID_CHARS) for _ in range(length))


def now_ts() -> int:
    return int(time.time())


def stringify_metadata(metadata: Mapping[str, Any] | str | None) -> dict[str, str]:
    if not metadata or isinstance(metadata, str):
        return {}
    return {str(key): str(value) for key, value in metadata.items()}


def merge_metadata(
    existing: Mapping[str, str], updates: Mapping[str, Any] | str | None
) -> dict[str, str]:
    """Apply an update the way the real API does.

    Keys are merged into the existing metadata, a key set to "" is removed,
    and an empty metadata value clears everything.
    """
    if updates is None or updates == "" or updates == {}:
        return {} if updates == "" else dict(existing)
    if isinstance(updates, str):
        raise StripeError(400, "Invalid metadata: must be a hash", param="metadata")
    merged = dict(existing)
    for key, value in updates.items():
        if value is None or value == "":
            merged.pop(str(key), None)
        else:
            merged[str(key)] = str(value)
    return merged


def insert(records: AccountData[Record], account_id: str, record: Record, kind: str) -> Record:
    """Store a new record, mapping an id collision to resource_already_exists."""
    try:
        records.put(account_id, record)
    except RecordConflictError as exc:
        raise resource_already_exists(kind) from exc
    return record


def new_id(
    records: AccountData[Record], account_id: str, requested: str | None, prefix: str, kind: str,
    length: int = 24,
) -> str:
    """The caller's id if it is free, otherwise a fresh prefixed one."""
    if requested:
        if records.contains(account_id, requested):
            raise resource_already_exists(kind)
        return requested
    return prefix + generate_id(length)


def get_or_404(
    records: AccountData[Record], account_id: str, object_id: str, kind: str, param: str | None
) -> Record:
    record = records.get(account_id, object_id)
    if record is None:
        raise resource_missing(kind, object_id, param)
    return record


def deleted(object_id: str, object_name: str) -> dict[str, Any]:
    return {"id": object_id, "object": object_name, "deleted": True}


# ── Request parameters ───────────────────────────────────


def _split_key(key: str) -> list[str]:
    base_end = key.find("[")
    if base_end <= 0:
        return [key]
    parts = [key[:base_end]]
    rest = key[base_end:]
    pos = 0
    for match in _KEY_PART.finditer(rest):
        if match.start() != pos:
            return [key]
        parts.append(match.group(1))
        pos = match.end()
    if pos != len(rest):
        return [key]
    return parts


# Free-form string maps whose keys may be numeric
_MAP_PARAMS = frozenset({"metadata"})


def _listify(value: Any, name: str | None = None) -> Any:
    if not isinstance(value, dict) or name in _MAP_PARAMS:
        return value
    converted = {key: _listify(child, key) for key, child in value.items()}
    if converted and all(key.isdigit() for key in converted):
        indexes = sorted(converted, key=int)
        if [int(key) for key in indexes] == list(range(len(indexes))):
            return [converted[key] for key in indexes]
    return converted


def decode_form(pairs: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Decode bracket-notation form fields into nested dicts and lists.

    ``metadata[a]=1`` becomes ``{"metadata": {"a": "1"}}``,
    ``items[0][plan]=p`` becomes ``{"items": [{"plan": "p"}]}`` and
    ``expand[]=x`` becomes ``{"expand": ["x"]}``.
    """
    root: dict[str, Any] = {}
    for key, value in pairs:
        parts = _split_key(key)
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        last = parts[-1]
        if last == "":
            last = str(len(node))
        node[last] = value
    return _listify(root)


def decode_body(body: bytes, content_type: str | None) -> dict[str, Any]:
    """Form-encoded (the client libraries' default) or JSON request bodies."""
    if not body:
        return {}
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type == "application/json":
        try:
            decoded = json.loads(body)
        except ValueError as exc:
            raise StripeError(400, "Invalid JSON body.") from exc
        if not isinstance(decoded, dict):
            raise StripeError(400, "Invalid JSON body.")
        return decoded
    return decode_form(parse_qsl(body.decode("utf-8"), keep_blank_values=True))


def bracket_param(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if not parts:
        return ""
    return parts[0] + "".join(f"[{part}]" for part in parts[1:])


def parse_params(model: type[M], params: Mapping[str, Any] | None) -> M:
    """Validate raw request params into ``model`` with Stripe-shaped errors."""
    try:
        return model.model_validate(dict(params or {}))
    except ValidationError as exc:
        error = exc.errors()[0]
        # Union members add their type name to the location
        loc = [part for part in error["loc"] if not (isinstance(part, str) and "[" in part)]
        loc = [part for part in loc if part not in {"str", "int", "bool", "dict", "list"}]
        param = bracket_param(loc)
        kind = error["type"]
        if kind.startswith("int") or kind.startswith("greater_than") or kind.startswith("less_than"):
            if param == "limit":
                raise StripeError(
                    400,
                    "Invalid integer: limit must be between 1 and 100.",
                    code="parameter_invalid_integer",
                    param=param,
                ) from exc
            raise StripeError(
                400,
                "Invalid integer: " + str(error.get("input")),
                code="parameter_invalid_integer",
                param=param,
            ) from exc
        if kind.startswith("bool"):
            raise StripeError(
                400,
                "Invalid boolean: " + str(error.get("input")),
                param=param,
            ) from exc
        if kind.startswith("float") or kind.startswith("decimal"):
            raise StripeError(
                400,
                "Invalid decimal: " + str(error.get("input")),
                code="parameter_invalid_decimal",
                param=param,
            ) from exc
        if kind == "extra_forbidden":
            raise StripeError(
                400,
                f"Received unknown parameter: {param}",
                code="parameter_unknown",
                param=param,
            ) from exc
        if kind == "missing":
            raise StripeError(
                400,
                f"Missing required param: {param}.",
                code="parameter_missing",
                param=param,
            ) from exc
        raise StripeError(400, f"Invalid {param}: {error['msg']}", param=param) from exc


# ── Pagination ───────────────────────────────────────────


@dataclass
class ListPage:
    data: list[Record]
    has_more: bool


def _index_of(data: list[Record], object_id: str) -> int | None:
    for ix, record in enumerate(data):
        if record["id"] == object_id:
            return ix
    return None


def apply_list_options(
    data: list[Record],
    params: Any,
    retrieve: Callable[[str, str], Record],
) -> ListPage:
    """Cursor pagination over a newest-first sequence that is already filtered.

    ``retrieve(id, param_name)`` resolves cursors so that a bad cursor fails
    exactly like a bad id anywhere else.
    """
    limit: int | None = params.limit
    if params.starting_after:
        cursor = retrieve(params.starting_after, "starting_after")
        ix = _index_of(data, cursor["id"])
        remaining = data[ix + 1:] if ix is not None else []
        if limit is not None and len(remaining) > limit:
            return ListPage(remaining[:limit], True)
        return ListPage(remaining, False)
    if params.ending_before:
        cursor = retrieve(params.ending_before, "ending_before")
        ix = _index_of(data, cursor["id"])
        preceding = data[:ix] if ix is not None else []
        if limit is not None and len(preceding) > limit:
            return ListPage(preceding[-limit:], True)
        return ListPage(preceding, False)
    if limit is not None and len(data) > limit:
        return ListPage(data[:limit], True)
    return ListPage(list(data), False)


def list_object(data: list[Record], url: str) -> dict[str, Any]:
    """Inline list shape used inside records (charge refunds, customer sources)."""
    return {
        "object": "list",
        "data": data,
        "has_more": False,
        "total_count": len(data),
        "url": url,
    }
