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
"""Built-in codecs: pass-through, zlib compression, Fernet encryption, chaining."""

from __future__ import annotations

import zlib

from cryptography.fernet import Fernet, InvalidToken

from stashkit.kernel.exceptions import CodecException
from stashkit.store.ports.outbound import Codec


class IdentityCodec:
    """Stores the serialized index as-is."""

    def encode(self, data: bytes) -> bytes:
        return data

    def decode(self, data: bytes) -> bytes:
        return data


class ZlibCodec:
    """Compresses payloads with zlib to stretch a byte-limited substrate."""

    def __init__(self, level: int = 6) -> None:
        if not -1 <= level <= 9:
            raise CodecException(
                f"zlib level must be between -1 and 9, got {level}", code="CODEC_LEVEL", context={"level": level}
            )
        self._level = level

    def encode(self, data: bytes) -> bytes:
        return zlib.compress(data, self._level)

    def decode(self, data: bytes) -> bytes:
        try:
            return zlib.decompress(data)
        except zlib.error as exc:
            raise CodecException("Failed to decompress payload", code="CODEC_ZLIB", context={"size": len(data)}) from exc


class FernetCodec:
    """Authenticated symmetric encryption of payloads.

    A token produced under another key, or tampered with, fails to decode.
    """

    def __init__(self, key: str | bytes) -> None:
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as exc:
            raise CodecException("Invalid Fernet key", code="CODEC_KEY") from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encode(self, data: bytes) -> bytes:
        return self._fernet.encrypt(data)

    def decode(self, data: bytes) -> bytes:
        try:
            return self._fernet.decrypt(data)
        except InvalidToken as exc:
            raise CodecException("Failed to decrypt payload", code="CODEC_FERNET", context={"size": len(data)}) from exc


class ChainedCodec:
    """Applies codecs left to right on encode and right to left on decode.

    ``ChainedCodec(ZlibCodec(), FernetCodec(key))`` compresses, then encrypts.
    """

    def __init__(self, *codecs: Codec) -> None:
        self._codecs = codecs

    @property
    def codecs(self) -> tuple[Codec, ...]:
        return self._codecs

    def encode(self, data: bytes) -> bytes:
        for codec in self._codecs:
            data = codec.encode(data)
        return data

    def decode(self, data: bytes) -> bytes:
        for codec in reversed(self._codecs):
            data = codec.decode(data)
        return data
