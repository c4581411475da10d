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
"""Per-key listener registry for cache updates."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from stashkit.store.types import CacheValue

logger = structlog.get_logger("stashkit.store.notifications")

Listener = Callable[[CacheValue], None]
Unsubscribe = Callable[[], None]


class _Registration:
    """One subscription. Identity, not the listener, is what unsubscribe removes."""

    __slots__ = ("listener",)

    def __init__(self, listener: Listener) -> None:
        self.listener = listener


class NotificationRegistry:
    """Maps (identifier, store name) to an ordered list of listeners.

    Subscribing the same callable twice creates two registrations, each
    removed only by its own unsubscribe handle.
    """

    def __init__(self) -> None:
        self._listeners: dict[tuple[str, str], list[_Registration]] = {}

    def subscribe(self, identifier: str, store_name: str, listener: Listener) -> Unsubscribe:
        key = (identifier, store_name)
        registration = _Registration(listener)
        self._listeners.setdefault(key, []).append(registration)

        def unsubscribe() -> None:
            registrations = self._listeners.get(key)
            if registrations is None:
                return
            for i, current in enumerate(registrations):
                if current is registration:
                    del registrations[i]
                    break
            if not registrations:
                del self._listeners[key]

        return unsubscribe

    def publish(self, identifier: str, store_name: str, value: CacheValue) -> int:
        """Call every listener registered for exactly this key, in order.

        A listener that raises is logged and skipped. Returns the number of
        listeners called.
        """
        registrations = list(self._listeners.get((identifier, store_name), ()))
        for registration in registrations:
            try:
                registration.listener(value)
            except Exception as exc:
                logger.error(
                    "cache_listener_failed",
                    identifier=identifier,
                    store_name=store_name,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
        return len(registrations)

    def listener_count(self, identifier: str | None = None, store_name: str | None = None) -> int:
        """Listeners for one key, or across all keys when no key is given."""
        if identifier is None or store_name is None:
            return sum(len(registrations) for registrations in self._listeners.values())
        return len(self._listeners.get((identifier, store_name), ()))

    def clear(self) -> None:
        self._listeners.clear()
