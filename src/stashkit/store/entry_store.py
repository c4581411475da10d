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
"""In-process index of cache entries, rehydrated from and persisted to a substrate."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime

import structlog

from stashkit.store.ports.outbound import Codec, PersistenceAdapter
from stashkit.store.serialization import Index, dump_index, load_index
from stashkit.store.types import CacheEntry, CacheValue

logger = structlog.get_logger("stashkit.store.entries")

DEFAULT_AGGREGATE_KEY = "reusableStore"


class EntryStore:
    """Two-level map identifier -> store name -> :class:`CacheEntry`.

    The in-memory index is the source of truth between persistence calls.
    Every substrate call is attempted once; failures are logged and
    reported through return values, never raised.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        codec: Codec,
        aggregate_key: str = DEFAULT_AGGREGATE_KEY,
    ) -> None:
        self._adapter = adapter
        self._codec = codec
        self._aggregate_key = aggregate_key
        self._index: Index = {}
        self.load()

    @property
    def aggregate_key(self) -> str:
        return self._aggregate_key

    def load(self) -> None:
        """Replace the index with whatever the substrate holds; empty on any failure."""
        self._index = {}
        try:
            raw = self._adapter.read(self._aggregate_key)
        except Exception as exc:
            logger.error("cache_load_failed", key=self._aggregate_key, stage="read", error=str(exc),
                         error_type=type(exc).__name__)
            return
        if raw is None:
            logger.info("cache_load_empty", key=self._aggregate_key)
            return
        try:
            self._index = load_index(self._codec.decode(raw))
        except Exception as exc:
            logger.error("cache_load_failed", key=self._aggregate_key, stage="decode", error=str(exc),
                         error_type=type(exc).__name__)
            return
        logger.info("cache_loaded", key=self._aggregate_key, entries=len(self))

    def upsert(
        self,
        identifier: str,
        store_name: str,
        value: CacheValue,
        expiration_date: datetime,
        now: datetime,
    ) -> CacheEntry:
        """Create or overwrite the entry for a key and return a copy of it."""
        stores = self._index.setdefault(identifier, {})
        entry = stores.get(store_name)
        if entry is None:
            entry = CacheEntry(
                identifier=identifier,
                store_name=store_name,
                value=value,
                expiration_date=expiration_date,
                last_updated_date=now,
                last_accessed_date=now,
                set_hit_count=1,
                get_hit_count=0,
            )
            stores[store_name] = entry
        else:
            entry.value = value
            entry.expiration_date = expiration_date
            entry.last_updated_date = now
            entry.set_hit_count += 1
        return entry.snapshot()

    def lookup(self, identifier: str, store_name: str, now: datetime) -> CacheEntry | None:
        """Return a copy of the live entry for a key, recording the access.

        Expired entries are reported as absent but left in place.
        """
        entry = self._index.get(identifier, {}).get(store_name)
        if entry is None or entry.is_expired(now):
            return None
        entry.get_hit_count += 1
        entry.last_accessed_date = now
        return entry.snapshot()

    def peek(self, identifier: str, store_name: str) -> CacheEntry | None:
        """Copy of the stored entry, expired or not, without touching counters.

        Read-only introspection alongside :meth:`keys` and ``in``; unlike
        :meth:`lookup` it records no access, so it is safe to call from
        listeners and diagnostics.
        """
        entry = self._index.get(identifier, {}).get(store_name)
        return entry.snapshot() if entry is not None else None

    def delete(self, identifier: str, store_name: str) -> bool:
        stores = self._index.get(identifier)
        if stores is None or store_name not in stores:
            return False
        del stores[store_name]
        if not stores:
            del self._index[identifier]
        return True

    def clear_all(self) -> None:
        self._index = {}

    def persist(self) -> bool:
        """Write the full index under the aggregate key. Returns ``False`` on failure."""
        try:
            payload = self._codec.encode(dump_index(self._index))
            self._adapter.write(self._aggregate_key, payload)
        except Exception as exc:
            logger.error("cache_persist_failed", key=self._aggregate_key, error=str(exc),
                         error_type=type(exc).__name__)
            return False
        logger.debug("cache_persisted", key=self._aggregate_key, size=len(payload), entries=len(self))
        return True

    def erase(self) -> bool:
        """Remove the aggregate key from the substrate. Returns ``False`` on failure."""
        try:
            self._adapter.erase(self._aggregate_key)
        except Exception as exc:
            logger.error("cache_erase_failed", key=self._aggregate_key, error=str(exc),
                         error_type=type(exc).__name__)
            return False
        return True

    def keys(self) -> Iterator[tuple[str, str]]:
        for identifier, stores in self._index.items():
            for store_name in stores:
                yield identifier, store_name

    def __len__(self) -> int:
        return sum(len(stores) for stores in self._index.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        identifier, store_name = key
        return store_name in self._index.get(identifier, {})
