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
"""Wire a CacheEngine and its collaborators from configuration."""

from __future__ import annotations

import importlib
from collections.abc import Callable
from datetime import datetime

import structlog

from stashkit.config.properties.store import StoreProperties
from stashkit.core.config import Config
from stashkit.logging import LoggingPort, configure_logging
from stashkit.store.codecs import ChainedCodec, FernetCodec, IdentityCodec, ZlibCodec
from stashkit.store.engine import CacheEngine
from stashkit.store.ports.outbound import Codec, PersistenceAdapter
from stashkit.store.types import utc_now

logger = structlog.get_logger("stashkit.store.factory")

_PROVIDERS = ("memory", "file", "redis")
_COMPRESSIONS = ("none", "zlib")


def is_available(module_name: str) -> bool:
    """Check if a Python package is importable."""
    try:
        importlib.import_module(module_name)
        return True
    except ImportError:
        return False


def detect_provider(properties: StoreProperties) -> str:
    """Pick ``redis`` when a URL is configured and the client is installed, else ``memory``."""
    if properties.redis_url and is_available("redis"):
        return "redis"
    return "memory"


def build_adapter(properties: StoreProperties) -> PersistenceAdapter:
    provider = properties.provider if properties.provider != "auto" else detect_provider(properties)
    if provider not in _PROVIDERS:
        raise ValueError(f"Unknown store provider '{provider}', expected one of {', '.join(_PROVIDERS)}")

    capacity = properties.capacity_bytes or None
    if provider == "redis":
        from stashkit.store.adapters.redis import RedisPersistence

        return RedisPersistence.from_url(properties.redis_url, capacity_bytes=capacity)
    if provider == "file":
        from stashkit.store.adapters.file import FilePersistence

        return FilePersistence(properties.directory, capacity_bytes=capacity)

    from stashkit.store.adapters.memory import InMemoryPersistence

    return InMemoryPersistence(capacity_bytes=capacity)


def build_codec(properties: StoreProperties) -> Codec:
    """Compression first, then encryption, so ciphertext is never compressed."""
    if properties.compression not in _COMPRESSIONS:
        raise ValueError(f"Unknown compression '{properties.compression}', expected one of {', '.join(_COMPRESSIONS)}")

    stages: list[Codec] = []
    if properties.compression == "zlib":
        stages.append(ZlibCodec())
    if properties.encryption_key:
        stages.append(FernetCodec(properties.encryption_key))

    if not stages:
        return IdentityCodec()
    if len(stages) == 1:
        return stages[0]
    return ChainedCodec(*stages)


def create_cache_engine(
    config: Config | None = None,
    *,
    clock: Callable[[], datetime] = utc_now,
    logging_port: LoggingPort | None = None,
) -> CacheEngine:
    """Build an engine from ``stashkit.store.*``; packaged defaults when *config* is omitted.

    ``stashkit.logging.*`` is applied through *logging_port* (a
    :class:`~stashkit.logging.StructlogAdapter` by default) before anything
    is built, unless ``stashkit.logging.enabled`` is false.
    """
    if config is None:
        config = Config.defaults()
    configure_logging(config, logging_port)
    properties = config.bind(StoreProperties)

    adapter = build_adapter(properties)
    codec = build_codec(properties)
    logger.info(
        "cache_engine_created",
        adapter=type(adapter).__name__,
        codec=type(codec).__name__,
        aggregate_key=properties.aggregate_key,
        encrypted=bool(properties.encryption_key),
    )
    return CacheEngine(adapter, codec, aggregate_key=properties.aggregate_key, clock=clock)
