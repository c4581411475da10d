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
"""Outbound ports: the persistence substrate and the payload codec."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PersistenceAdapter(Protocol):
    """Byte-oriented key-value substrate the cache index is persisted into.

    ``write`` raises :class:`~stashkit.kernel.exceptions.QuotaExceededException`
    when the payload does not fit. There are no cross-key transactions.
    """

    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, data: bytes) -> None: ...

    def erase(self, key: str) -> None: ...

    def erase_all(self) -> None: ...


@runtime_checkable
class Codec(Protocol):
    """Lossless transform between the serialized index and its stored form.

    ``decode`` raises :class:`~stashkit.kernel.exceptions.CodecException`
    for input it cannot reverse.
    """

    def encode(self, data: bytes) -> bytes: ...

    def decode(self, data: bytes) -> bytes: ...
