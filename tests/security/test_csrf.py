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
"""Tests for CSRF token utilities."""

from __future__ import annotations

import re

from flysession.security.csrf import PROTECTED_METHODS, generate_csrf_token, validate_csrf_token


class TestGenerateCsrfToken:
    def test_token_is_40_hex_characters(self) -> None:
        assert re.fullmatch(r"[0-9a-f]{40}", generate_csrf_token())

    def test_tokens_are_unique(self) -> None:
        tokens = {generate_csrf_token() for _ in range(50)}
        assert len(tokens) == 50


class TestValidateCsrfToken:
    def test_matching_tokens(self) -> None:
        token = generate_csrf_token()
        assert validate_csrf_token(token, token) is True

    def test_mismatched_tokens(self) -> None:
        assert validate_csrf_token(generate_csrf_token(), generate_csrf_token()) is False

    def test_missing_tokens(self) -> None:
        token = generate_csrf_token()
        assert validate_csrf_token(None, token) is False
        assert validate_csrf_token(token, None) is False
        assert validate_csrf_token("", "") is False

    def test_non_ascii_submission_is_rejected(self) -> None:
        assert validate_csrf_token(generate_csrf_token(), "tökén") is False


class TestProtectedMethods:
    def test_contents(self) -> None:
        assert PROTECTED_METHODS == frozenset({"POST", "PUT", "PATCH", "DELETE"})
