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
"""Unified exception hierarchy for flysession.

All library exceptions inherit from FlySessionException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: Deployment misconfiguration, raised at startup
- SecurityException: Encryption and decryption failures
- InfrastructureException: Storage backend failures
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlySessionException(Exception):
    """Base exception for all flysession errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SESSION_DRIVER").
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
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FlySessionException):
    """Invalid or incomplete configuration detected at startup."""


class UnsupportedDriverException(ConfigurationException):
    """The configured session driver is neither built in nor registered."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(FlySessionException):
    """Encryption and integrity errors."""


class EncryptException(SecurityException):
    """A value could not be encrypted."""


class DecryptException(SecurityException):
    """A ciphertext was tampered with, truncated or encrypted with another key."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(FlySessionException):
    """Infrastructure failures: filesystem, database, network."""


class SessionStorageException(InfrastructureException):
    """A session handler could not reach its backing storage."""
