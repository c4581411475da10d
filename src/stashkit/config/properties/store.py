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
"""Store subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from stashkit.core.config import config_properties


@config_properties(prefix="stashkit.store")
@dataclass
class StoreProperties:
    """Configuration for the cache engine and its collaborators (stashkit.store.*).

    ``capacity_bytes`` of 0 disables the quota check. An empty
    ``encryption_key`` disables payload encryption.
    """

    provider: str = "auto"
    aggregate_key: str = "reusableStore"
    capacity_bytes: int = 5 * 1024 * 1024
    directory: str = ".stashkit"
    redis_url: str = ""
    compression: str = "zlib"
    encryption_key: str = ""
