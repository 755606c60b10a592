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
"""VerifyCsrfTokenFilter — synchronizer-token CSRF protection backed by the session.

* **Safe methods** (GET, HEAD, OPTIONS, TRACE) pass through untouched.
* **POST, PUT, PATCH and DELETE** must submit the session's CSRF token in the
  ``X-CSRF-TOKEN`` or ``X-XSRF-TOKEN`` header, or in the ``_token`` field of
  a urlencoded form. The comparison is timing-safe; a mismatch (or a
  missing token) results in an HTTP 403 response.

Must run after :class:`~flysession.session.filter.StartSessionFilter`.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Message

from flysession.security.csrf import (
    CSRF_FORM_FIELD,
    CSRF_HEADER_NAME,
    PROTECTED_METHODS,
    XSRF_HEADER_NAME,
    validate_csrf_token,
)
from flysession.session.attributes import session_from_request
from flysession.web.filters import CallNext, OncePerRequestFilter

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _replay(request: Request, body: bytes) -> Request:
    """Return a request whose body can be read again downstream."""

    async def _receive() -> Message:
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(request.scope, _receive)


class VerifyCsrfTokenFilter(OncePerRequestFilter):
    """Rejects state-changing requests that do not carry the session's CSRF token."""

    methods = PROTECTED_METHODS

    def __init__(self, exclude_patterns: list[str] | None = None) -> None:
        if exclude_patterns is not None:
            self.exclude_patterns = list(exclude_patterns)

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        store = session_from_request(request)
        if store is None:
            return JSONResponse({"error": "Session not started"}, status_code=403)

        submitted: str | None = request.headers.get(CSRF_HEADER_NAME) or request.headers.get(XSRF_HEADER_NAME)

        content_type: str = request.headers.get("content-type", "")
        if submitted is None and content_type.startswith(_FORM_CONTENT_TYPE):
            body = await request.body()
            fields = parse_qs(body.decode("latin-1"))
            submitted = (fields.get(CSRF_FORM_FIELD) or [None])[0]
            request = _replay(request, body)

        if not submitted:
            return JSONResponse({"error": "CSRF token missing"}, status_code=403)

        if not validate_csrf_token(store.token(), submitted):
            return JSONResponse({"error": "CSRF token invalid"}, status_code=403)

        return await call_next(request)
