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
"""stashkit exception hierarchy."""

from __future__ import annotations

# =============================================================================
# Base Exception
# =============================================================================


class StashException(Exception):
    """Base exception for all stashkit errors.

    Carries an optional error code and context dict for structured error data.
    Catch StashException to handle every error raised by the package, or catch
    specific subclasses for targeted handling.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "PERSIST_QUOTA").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Input Exceptions
# =============================================================================


class ValidationException(StashException):
    """A value or argument handed to the cache cannot be represented."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(StashException):
    """Failures in collaborators: persistence substrate, codecs."""


class PersistenceException(InfrastructureException):
    """The persistence substrate is unavailable or failed an operation."""


class QuotaExceededException(PersistenceException):
    """A write was rejected because the payload exceeds the substrate capacity."""


class CodecException(InfrastructureException):
    """A payload could not be encoded, decoded or parsed."""
