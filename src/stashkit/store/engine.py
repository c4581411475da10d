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
"""CacheEngine — the public surface of the keyed, time-bounded cache."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from stashkit.kernel.exceptions import ValidationException
from stashkit.store.codecs import IdentityCodec
from stashkit.store.entry_store import DEFAULT_AGGREGATE_KEY, EntryStore
from stashkit.store.notifications import Listener, NotificationRegistry, Unsubscribe
from stashkit.store.ports.outbound import Codec, PersistenceAdapter
from stashkit.store.types import CacheResult, as_cache_value, copy_value, utc_now

logger = structlog.get_logger("stashkit.store.engine")

ResultCallback = Callable[[CacheResult], None]


class CacheEngine:
    """Keyed cache with lazy time-based expiry, hit counting and change listeners.

    Entries are addressed by ``(identifier, store_name)``. The whole index is
    persisted under one aggregate key after every mutation; a rejected write
    (for example a quota overflow) is logged and reported through the return
    value of :meth:`set` / :meth:`remove`, while the in-memory index keeps
    the change.

    Args:
        adapter: Substrate the index is persisted into and rehydrated from.
        codec: Transform applied to the serialized index (compression,
            encryption). Defaults to pass-through.
        aggregate_key: Substrate key holding the whole index.
        clock: Returns the current time as an aware datetime.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        codec: Codec | None = None,
        *,
        aggregate_key: str = DEFAULT_AGGREGATE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._clock = clock
        self._entries = EntryStore(adapter, codec or IdentityCodec(), aggregate_key)
        self._notifications = NotificationRegistry()
        self._stats: dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "removes": 0,
            "persist_failures": 0,
        }

    @property
    def entries(self) -> EntryStore:
        return self._entries

    def set(self, identifier: str, store_name: str, value: Any, expiration_date: datetime | timedelta) -> bool:
        """Store *value* under the key and notify its listeners.

        *expiration_date* is an absolute instant (naive datetimes are taken
        as UTC) or a ``timedelta`` from now. Listeners are called after the
        in-memory update whether or not the write reached the substrate.

        Returns:
            ``True`` if the index was persisted.

        Raises:
            ValidationException: *value* is not JSON-representable or
                *expiration_date* has an unsupported type.
        """
        now = self._clock()
        cache_value = as_cache_value(value)
        expires = self._resolve_expiration(expiration_date, now)

        entry = self._entries.upsert(identifier, store_name, cache_value, expires, now)
        self._stats["sets"] += 1
        persisted = self._persist()
        logger.debug(
            "cache_set",
            identifier=identifier,
            store_name=store_name,
            set_hit_count=entry.set_hit_count,
            persisted=persisted,
        )

        self._notifications.publish(identifier, store_name, copy_value(cache_value))
        return persisted

    def get(self, identifier: str, store_name: str, on_result: ResultCallback | None = None) -> CacheResult:
        """Look up the key.

        A miss or expired entry yields :meth:`CacheResult.default`. When
        *on_result* is given it is called exactly once with the same result
        that is returned.
        """
        entry = self._entries.lookup(identifier, store_name, self._clock())
        if entry is None:
            self._stats["misses"] += 1
            logger.debug("cache_miss", identifier=identifier, store_name=store_name)
            result = CacheResult.default(identifier, store_name)
        else:
            self._stats["hits"] += 1
            self._persist()
            logger.debug(
                "cache_hit",
                identifier=identifier,
                store_name=store_name,
                get_hit_count=entry.get_hit_count,
            )
            result = entry.to_result()

        if on_result is not None:
            on_result(result)
        return result

    def remove(self, identifier: str, store_name: str) -> bool:
        """Delete the key and persist. Listeners are not notified.

        Returns:
            ``True`` if the index was persisted.
        """
        removed = self._entries.delete(identifier, store_name)
        if removed:
            self._stats["removes"] += 1
        persisted = self._persist()
        logger.debug("cache_removed", identifier=identifier, store_name=store_name, existed=removed)
        return persisted

    def clear(self) -> None:
        """Drop every entry and erase the aggregate key. Subscriptions survive."""
        count = len(self._entries)
        self._entries.clear_all()
        self._entries.erase()
        logger.info("cache_cleared", key=self._entries.aggregate_key, entries=count)

    def subscribe_to_updates(self, identifier: str, store_name: str, listener: Listener) -> Unsubscribe:
        """Call *listener* with the new value on every ``set`` of this key.

        Returns a callable that removes only this subscription.
        """
        return self._notifications.subscribe(identifier, store_name, listener)

    def get_stats(self) -> dict[str, int]:
        return {
            "entries": len(self._entries),
            **self._stats,
            "listeners": self._notifications.listener_count(),
        }

    def _persist(self) -> bool:
        persisted = self._entries.persist()
        if not persisted:
            self._stats["persist_failures"] += 1
        return persisted

    @staticmethod
    def _resolve_expiration(expiration: datetime | timedelta, now: datetime) -> datetime:
        if isinstance(expiration, timedelta):
            return now + expiration
        if isinstance(expiration, datetime):
            if expiration.tzinfo is None:
                return expiration.replace(tzinfo=UTC)
            return expiration.astimezone(UTC)
        raise ValidationException(
            f"Unsupported expiration type {type(expiration).__name__}",
            code="EXPIRATION_TYPE",
            context={"type": type(expiration).__name__},
        )
