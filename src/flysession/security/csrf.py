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
"""CSRF token utilities — synchronizer token stored in the session.

Provides token generation and timing-safe validation for the session
synchronizer-token CSRF protection strategy.
"""

from __future__ import annotations

import secrets

CSRF_HEADER_NAME: str = "X-CSRF-TOKEN"
"""Name of the request header that carries the CSRF token."""

XSRF_HEADER_NAME: str = "X-XSRF-TOKEN"
"""Alternative header name used by JavaScript frameworks that read a cookie."""

CSRF_FORM_FIELD: str = "_token"
"""Name of the form field that carries the CSRF token."""

PROTECTED_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})
"""State-changing HTTP methods that require CSRF validation."""

TOKEN_BYTES: int = 20


def generate_csrf_token() -> str:
    """Generate a cryptographically-secure CSRF token.

    Returns:
        A 40-character lowercase hex string.
    """
    return secrets.token_hex(TOKEN_BYTES)


def validate_csrf_token(session_token: str | None, request_token: str | None) -> bool:
    """Validate a CSRF token using timing-safe comparison.

    Args:
        session_token: The token stored in the session.
        request_token: The token submitted with the request.

    Returns:
        ``True`` if both tokens are present and match; ``False`` otherwise.
    """
    if not session_token or not request_token:
        return False
    return secrets.compare_digest(session_token.encode("utf-8"), request_token.encode("utf-8"))
