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
"""stashkit — keyed, time-bounded client-side cache with pluggable persistence."""

from stashkit.core.config import Config
from stashkit.kernel.exceptions import (
    CodecException,
    PersistenceException,
    QuotaExceededException,
    StashException,
    ValidationException,
)
from stashkit.logging import configure_logging
from stashkit.store import (
    CacheEngine,
    CacheResult,
    InMemoryPersistence,
    create_cache_engine,
)

__version__ = "0.1.0"

__all__ = [
    "CacheEngine",
    "CacheResult",
    "CodecException",
    "Config",
    "InMemoryPersistence",
    "PersistenceException",
    "QuotaExceededException",
    "StashException",
    "ValidationException",
    "__version__",
    "configure_logging",
    "create_cache_engine",
]
