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
"""Byte-limited in-process persistence substrate."""

from __future__ import annotations

from typing import Any

from stashkit.kernel.exceptions import QuotaExceededException


class InMemoryPersistence:
    """Dict-backed substrate with a total byte quota shared by all keys.

    Mirrors browser storage: key and payload both count against the quota,
    and a rejected write leaves every stored key as it was. Suitable for
    tests and single-process applications.
    """

    def __init__(self, capacity_bytes: int | None = None) -> None:
        if capacity_bytes is not None and capacity_bytes <= 0:
            raise ValueError("capacity_bytes must be positive or None")
        self._capacity = capacity_bytes
        self._store: dict[str, bytes] = {}

    def read(self, key: str) -> bytes | None:
        return self._store.get(key)

    def write(self, key: str, data: bytes) -> None:
        """Store *data* under *key*, replacing any previous payload."""
        if self._capacity is not None:
            size = self._footprint(key, data)
            used = self.used_bytes - (self._footprint(key, self._store[key]) if key in self._store else 0)
            if used + size > self._capacity:
                raise QuotaExceededException(
                    f"Writing {size} bytes to '{key}' exceeds the {self._capacity} byte quota",
                    code="PERSIST_QUOTA",
                    context={"key": key, "size": size, "used": used, "capacity": self._capacity},
                )
        self._store[key] = bytes(data)

    def erase(self, key: str) -> None:
        self._store.pop(key, None)

    def erase_all(self) -> None:
        self._store.clear()

    @property
    def used_bytes(self) -> int:
        return sum(self._footprint(k, v) for k, v in self._store.items())

    def keys(self) -> list[str]:
        return list(self._store)

    def get_stats(self) -> dict[str, Any]:
        return {
            "type": "memory",
            "size": len(self._store),
            "used_bytes": self.used_bytes,
            "capacity_bytes": self._capacity,
        }

    @staticmethod
    def _footprint(key: str, data: bytes) -> int:
        return len(key.encode("utf-8")) + len(data)
