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
"""Cache value sum type, cache entries and cache results."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Any, ClassVar

from stashkit.kernel.exceptions import ValidationException

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utc_now() -> datetime:
    """Default engine clock."""
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class StringValue:
    tag: ClassVar[str] = "string"
    value: str


@dataclass(frozen=True, slots=True)
class NumberValue:
    tag: ClassVar[str] = "number"
    value: int | float


@dataclass(frozen=True, slots=True)
class BooleanValue:
    tag: ClassVar[str] = "boolean"
    value: bool


@dataclass(frozen=True, slots=True)
class JsonValue:
    """Any JSON-compatible structure: dicts, lists, nested scalars or ``None``."""

    tag: ClassVar[str] = "json"
    value: Any


CacheValue = StringValue | NumberValue | BooleanValue | JsonValue

CACHE_VALUE_TYPES: tuple[type, ...] = (StringValue, NumberValue, BooleanValue, JsonValue)


def _ensure_json(payload: Any) -> None:
    try:
        json.dumps(payload)
    except (TypeError, ValueError) as exc:
        raise ValidationException(
            f"Value of type {type(payload).__name__} is not JSON-serializable",
            code="VALUE_NOT_SERIALIZABLE",
            context={"type": type(payload).__name__},
        ) from exc


def _check_variant(value: CacheValue) -> CacheValue:
    payload = value.value
    match value:
        case StringValue():
            valid = isinstance(payload, str)
        case NumberValue():
            valid = isinstance(payload, int | float) and not isinstance(payload, bool)
        case BooleanValue():
            valid = isinstance(payload, bool)
        case JsonValue():
            _ensure_json(payload)
            return JsonValue(copy.deepcopy(payload))
    if not valid:
        raise ValidationException(
            f"{type(value).__name__} cannot hold a {type(payload).__name__}",
            code="VALUE_TYPE_MISMATCH",
            context={"variant": value.tag, "type": type(payload).__name__},
        )
    return value


def as_cache_value(raw: Any) -> CacheValue:
    """Lift a plain Python value into the matching :data:`CacheValue` variant.

    Variants passed in directly are checked against their tag, and JSON
    payloads are deep-copied either way. ``bool`` is checked before numbers
    since it subclasses ``int``.

    Raises:
        ValidationException: *raw* cannot be represented as JSON, or a
            variant's payload does not match its tag.
    """
    if isinstance(raw, CACHE_VALUE_TYPES):
        return _check_variant(raw)
    if isinstance(raw, bool):
        return BooleanValue(raw)
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, int | float):
        return NumberValue(raw)
    _ensure_json(raw)
    return JsonValue(copy.deepcopy(raw))


def copy_value(value: CacheValue) -> CacheValue:
    """Return a value the caller may mutate without touching the cache."""
    if isinstance(value, JsonValue):
        return JsonValue(copy.deepcopy(value.value))
    return value


@dataclass(slots=True)
class CacheEntry:
    """The stored record for one compound key. Mutated in place by the entry store."""

    identifier: str
    store_name: str
    value: CacheValue
    expiration_date: datetime
    last_updated_date: datetime
    last_accessed_date: datetime
    set_hit_count: int = 0
    get_hit_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expiration_date

    def snapshot(self) -> CacheEntry:
        return replace(self, value=copy_value(self.value))

    def to_result(self) -> CacheResult:
        return CacheResult(
            identifier=self.identifier,
            store_name=self.store_name,
            value=copy_value(self.value),
            expiration_date=self.expiration_date,
            last_updated_date=self.last_updated_date,
            last_accessed_date=self.last_accessed_date,
            get_hit_count=self.get_hit_count,
            set_hit_count=self.set_hit_count,
        )


@dataclass(frozen=True, slots=True)
class CacheResult:
    """What ``get`` hands back, for hits and misses alike."""

    identifier: str
    store_name: str
    value: CacheValue | None
    expiration_date: datetime
    last_updated_date: datetime
    last_accessed_date: datetime
    get_hit_count: int
    set_hit_count: int

    @classmethod
    def default(cls, identifier: str, store_name: str) -> CacheResult:
        """The miss shape: no value, every date at the epoch, zero counts."""
        return cls(
            identifier=identifier,
            store_name=store_name,
            value=None,
            expiration_date=EPOCH,
            last_updated_date=EPOCH,
            last_accessed_date=EPOCH,
            get_hit_count=0,
            set_hit_count=0,
        )

    @property
    def found(self) -> bool:
        return self.value is not None
