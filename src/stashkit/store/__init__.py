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
"""stashkit store — keyed, time-bounded cache engine over a pluggable substrate."""

from stashkit.store.adapters.file import FilePersistence
from stashkit.store.adapters.memory import InMemoryPersistence
from stashkit.store.adapters.redis import RedisPersistence
from stashkit.store.codecs import ChainedCodec, FernetCodec, IdentityCodec, ZlibCodec
from stashkit.store.engine import CacheEngine
from stashkit.store.entry_store import EntryStore
from stashkit.store.factory import create_cache_engine
from stashkit.store.notifications import NotificationRegistry
from stashkit.store.ports.outbound import Codec, PersistenceAdapter
from stashkit.store.types import (
    EPOCH,
    BooleanValue,
    CacheEntry,
    CacheResult,
    CacheValue,
    JsonValue,
    NumberValue,
    StringValue,
    as_cache_value,
)

__all__ = [
    "EPOCH",
    "BooleanValue",
    "CacheEngine",
    "CacheEntry",
    "CacheResult",
    "CacheValue",
    "ChainedCodec",
    "Codec",
    "EntryStore",
    "FernetCodec",
    "FilePersistence",
    "IdentityCodec",
    "InMemoryPersistence",
    "JsonValue",
    "NotificationRegistry",
    "NumberValue",
    "PersistenceAdapter",
    "RedisPersistence",
    "StringValue",
    "ZlibCodec",
    "as_cache_value",
    "create_cache_engine",
]
