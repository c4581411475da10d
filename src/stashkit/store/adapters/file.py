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
"""Directory-backed persistence substrate."""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path

from stashkit.kernel.exceptions import PersistenceException, QuotaExceededException

_SUFFIX = ".stash"


class FilePersistence:
    """Stores each key as one file under *directory*.

    File names are the SHA-256 of the key, so arbitrary Unicode keys are
    safe. Writes go to a temporary file that is then renamed over the
    target, so a crash never leaves a half-written payload behind.
    """

    def __init__(self, directory: str | Path, capacity_bytes: int | None = None) -> None:
        self._directory = Path(directory)
        self._capacity = capacity_bytes

    @property
    def directory(self) -> Path:
        return self._directory

    def read(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceException(f"Failed to read '{key}'", code="PERSIST_READ", context={"key": key}) from exc

    def write(self, key: str, data: bytes) -> None:
        if self._capacity is not None and len(data) > self._capacity:
            raise QuotaExceededException(
                f"Writing {len(data)} bytes to '{key}' exceeds the {self._capacity} byte quota",
                code="PERSIST_QUOTA",
                context={"key": key, "size": len(data), "capacity": self._capacity},
            )
        target = self._path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, target)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceException(f"Failed to write '{key}'", code="PERSIST_WRITE", context={"key": key}) from exc

    def erase(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceException(f"Failed to erase '{key}'", code="PERSIST_ERASE", context={"key": key}) from exc

    def erase_all(self) -> None:
        if not self._directory.is_dir():
            return
        try:
            for path in self._directory.glob(f"*{_SUFFIX}"):
                path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceException("Failed to erase store directory", code="PERSIST_ERASE") from exc

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / f"{digest}{_SUFFIX}"
