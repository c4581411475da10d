# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Persisted form of the cache index.

The whole two-level index is stored under one aggregate key as UTF-8 JSON::

    {
      "<identifier>": {
        "<storeName>": [
          {
            "value": {"type": "string", "value": "hello"},
            "expirationDate": "2026-01-01T00:00:00+00:00",
            "lastUpdatedDate": "...",
            "lastAccessedDate": "...",
            "getHitCount": 0,
            "setHitCount": 1
          }
        ]
      }
    }

Each record sits in a single-element list. Readers take the last element
when a list holds more than one.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from stashkit.kernel.exceptions import CodecException
from stashkit.store.types import (
    EPOCH,
    BooleanValue,
    CacheEntry,
    CacheValue,
    JsonValue,
    NumberValue,
    StringValue,
)

logger = structlog.get_logger("stashkit.store.serialization")

Index = dict[str, dict[str, CacheEntry]]


def format_date(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def parse_date(raw: Any) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (naive ones are taken as UTC) and numbers as
    milliseconds since the epoch. Anything else degrades to :data:`EPOCH`.
    """
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, str):
        try:
            parsed = datetime.fromisoformat(raw.strip())
        except ValueError:
            return EPOCH
    elif isinstance(raw, int | float) and not isinstance(raw, bool):
        try:
            return EPOCH + timedelta(milliseconds=raw)
        except (OverflowError, ValueError):
            return EPOCH
    else:
        return EPOCH

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def encode_value(value: CacheValue) -> dict[str, Any]:
    match value:
        case StringValue(v) | NumberValue(v) | BooleanValue(v) | JsonValue(v):
            return {"type": value.tag, "value": v}
        case _:
            raise CodecException(f"Unsupported cache value {type(value).__name__}", code="CODEC_VALUE")


def decode_value(raw: Any) -> CacheValue:
    match raw:
        case {"type": "string", "value": str() as v}:
            return StringValue(v)
        case {"type": "number", "value": int() | float() as v} if not isinstance(v, bool):
            return NumberValue(v)
        case {"type": "boolean", "value": bool() as v}:
            return BooleanValue(v)
        case {"type": "json", "value": v}:
            return JsonValue(v)
        case _:
            raise CodecException("Unrecognised stored value", code="CODEC_VALUE", context={"raw": repr(raw)[:200]})


def _count(raw: Any) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool) and raw >= 0:
        return raw
    return 0


def entry_to_record(entry: CacheEntry) -> dict[str, Any]:
    return {
        "value": encode_value(entry.value),
        "expirationDate": format_date(entry.expiration_date),
        "lastUpdatedDate": format_date(entry.last_updated_date),
        "lastAccessedDate": format_date(entry.last_accessed_date),
        "getHitCount": entry.get_hit_count,
        "setHitCount": entry.set_hit_count,
    }


def record_to_entry(identifier: str, store_name: str, record: Any) -> CacheEntry:
    if not isinstance(record, dict) or "value" not in record:
        raise CodecException("Stored record is not an object with a value", code="CODEC_RECORD")
    return CacheEntry(
        identifier=identifier,
        store_name=store_name,
        value=decode_value(record["value"]),
        expiration_date=parse_date(record.get("expirationDate")),
        last_updated_date=parse_date(record.get("lastUpdatedDate")),
        last_accessed_date=parse_date(record.get("lastAccessedDate")),
        get_hit_count=_count(record.get("getHitCount")),
        set_hit_count=_count(record.get("setHitCount")),
    )


def dump_index(index: Index) -> bytes:
    payload = {
        identifier: {store_name: [entry_to_record(entry)] for store_name, entry in stores.items()}
        for identifier, stores in index.items()
    }
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def load_index(raw: bytes) -> Index:
    """Rebuild the index from its persisted bytes.

    Raises:
        CodecException: the payload is not JSON or not shaped like an index.
            Individual records that fail to parse are skipped.
    """
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CodecException("Persisted index is not valid JSON", code="CODEC_INDEX") from exc
    if not isinstance(payload, dict):
        raise CodecException("Persisted index is not an object", code="CODEC_INDEX")

    index: Index = {}
    for identifier, stores in payload.items():
        if not isinstance(stores, dict):
            logger.warning("cache_identifier_skipped", identifier=identifier, reason="not an object")
            continue
        for store_name, records in stores.items():
            if not isinstance(records, list) or not records:
                logger.warning("cache_record_skipped", identifier=identifier, store_name=store_name, reason="empty")
                continue
            try:
                entry = record_to_entry(identifier, store_name, records[-1])
            except CodecException as exc:
                logger.warning("cache_record_skipped", identifier=identifier, store_name=store_name, reason=str(exc))
                continue
            index.setdefault(identifier, {})[store_name] = entry
    return index
