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
"""Cookie session handler — the whole payload round-trips through the client."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

import structlog

from flysession.config.properties.session import SessionProperties
from flysession.encryption.ports.outbound import Encrypter
from flysession.kernel.exceptions import DecryptException
from flysession.session.ports.outbound import AbstractSessionHandler
from flysession.session.request import SessionRequest

logger = structlog.get_logger("flysession.session")

MAX_COOKIE_SIZE = 3500


class CookieSessionHandler(AbstractSessionHandler):
    """Keeps an encrypted ``{id, data, expires}`` envelope in the data cookie.

    Writes are buffered until :meth:`prepare_response` puts them on the
    outgoing response. Envelopes larger than :data:`MAX_COOKIE_SIZE` bytes
    are rejected instead of being truncated.
    """

    def __init__(
        self,
        encrypter: Encrypter,
        properties: SessionProperties | None = None,
        *,
        request: SessionRequest | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._encrypter = encrypter
        self._properties = properties or SessionProperties(driver="cookie")
        self._request = request
        self._clock = clock
        self._pending: str | None = None
        self._delete_pending = False

    @property
    def cookie_name(self) -> str:
        return self._properties.cookie_data

    @property
    def pending(self) -> str | None:
        """Encrypted envelope waiting to be sent, if any."""
        return self._pending

    async def read(self, session_id: str) -> str:
        if self._request is None:
            return ""
        value = self._request.cookies.get(self.cookie_name)
        if not value:
            return ""

        try:
            envelope = json.loads(self._encrypter.decrypt(value.encode("ascii")))
        except (DecryptException, UnicodeError, json.JSONDecodeError):
            logger.warning("session_cookie_invalid", session_id=session_id)
            return ""

        if not isinstance(envelope, dict) or not isinstance(envelope.get("data"), str):
            return ""
        if envelope.get("id") != session_id:
            return ""
        expires = envelope.get("expires")
        if not isinstance(expires, int) or expires < self._clock():
            return ""
        return envelope["data"]

    async def write(self, session_id: str, data: str) -> bool:
        envelope = {
            "id": session_id,
            "data": data,
            "expires": int(self._clock()) + self._properties.lifetime_seconds,
        }
        encoded = json.dumps(envelope, separators=(",", ":")).encode("utf-8")
        value = self._encrypter.encrypt(encoded).decode("ascii")

        if len(value) > MAX_COOKIE_SIZE:
            logger.warning(
                "session_cookie_too_large",
                session_id=session_id,
                size=len(value),
                limit=MAX_COOKIE_SIZE,
                hint="Session data exceeds cookie size limit. Consider using file or database sessions.",
            )
            return False

        self._pending = value
        self._delete_pending = False
        return True

    async def destroy(self, session_id: str) -> bool:
        self._pending = None
        self._delete_pending = True
        return True

    async def gc(self, max_lifetime: int) -> int:
        # Expired envelopes are rejected on read; browsers drop the cookies.
        return 0

    def prepare_response(self, response: Any) -> None:
        props = self._properties
        if self._pending is not None:
            response.set_cookie(
                key=self.cookie_name,
                value=self._pending,
                max_age=None if props.expire_on_close else props.lifetime_seconds,
                path=props.path,
                domain=props.domain,
                secure=props.secure,
                httponly=props.http_only,
                samesite=props.same_site,
            )
        elif self._delete_pending:
            response.delete_cookie(key=self.cookie_name, path=props.path, domain=props.domain)
