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
"""Redis-backed persistence substrate."""

from __future__ import annotations

from typing import Any

import structlog

from stashkit.kernel.exceptions import QuotaExceededException

logger = structlog.get_logger("stashkit.store.redis")


class RedisPersistence:
    """Delegates to a synchronous ``redis.Redis``-like client.

    Keys are prefixed with *namespace* so ``erase_all`` only touches keys
    this adapter wrote.
    """

    def __init__(self, client: Any, namespace: str = "stashkit", capacity_bytes: int | None = None) -> None:
        self._client = client
        self._namespace = namespace
        self._capacity = capacity_bytes

    @classmethod
    def from_url(cls, url: str, namespace: str = "stashkit", capacity_bytes: int | None = None) -> RedisPersistence:
        import redis

        return cls(redis.Redis.from_url(url), namespace=namespace, capacity_bytes=capacity_bytes)

    def read(self, key: str) -> bytes | None:
        raw = self._client.get(self._qualify(key))
        if raw is None:
            return None
        return raw if isinstance(raw, bytes) else str(raw).encode("utf-8")

    def write(self, key: str, data: bytes) -> None:
        if self._capacity is not None and len(data) > self._capacity:
            raise QuotaExceededException(
                f"Writing {len(data)} bytes to '{key}' exceeds the {self._capacity} byte quota",
                code="PERSIST_QUOTA",
                context={"key": key, "size": len(data), "capacity": self._capacity},
            )
        self._client.set(self._qualify(key), data)

    def erase(self, key: str) -> None:
        self._client.delete(self._qualify(key))

    def erase_all(self) -> None:
        keys = list(self._client.scan_iter(match=f"{self._namespace}:*"))
        if keys:
            self._client.delete(*keys)
        logger.debug("redis_namespace_erased", namespace=self._namespace, count=len(keys))

    def ping(self) -> bool:
        """Validate connectivity."""
        return bool(self._client.ping())

    def close(self) -> None:
        self._client.close()

    def _qualify(self, key: str) -> str:
        return f"{self._namespace}:{key}"
