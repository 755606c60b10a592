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
"""Store — one session's attributes, identity and request lifecycle."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from flysession.security.csrf import generate_csrf_token
from flysession.session.attributes import PREVIOUS_URL_KEY, TOKEN_KEY, generate_session_id, is_valid_session_id
from flysession.session.codec import JsonSerializer, PayloadCodec
from flysession.session.flash import FlashBag
from flysession.session.ports.outbound import SessionHandler

logger = structlog.get_logger("flysession.session")


def _as_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return int(bool(value))
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


class Store:
    """Server-side session bound to a single request.

    ``start()`` loads and decodes the payload, ages flash data and makes sure
    a CSRF token exists. ``save()`` drops stale flash values, encodes the
    attributes and hands them to the handler. Attribute access in between is
    synchronous and never touches storage.

    Reserved keys (flash bookkeeping, CSRF token, previous URL) live in the
    same mapping as user data and are therefore part of :meth:`all`.
    """

    def __init__(
        self,
        name: str,
        handler: SessionHandler,
        session_id: str | None = None,
        *,
        codec: PayloadCodec | None = None,
        serializer: JsonSerializer | None = None,
    ) -> None:
        self._name = name
        self._handler = handler
        self._codec = codec or PayloadCodec()
        self._serializer = serializer or JsonSerializer()
        self._attributes: dict[str, Any] = {}
        self._started = False
        self._id = ""
        self.set_id(session_id)

    # -- identity -------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, session_id: str | None) -> None:
        """Adopt *session_id*, or a fresh id when it is missing or malformed."""
        self._id = session_id if is_valid_session_id(session_id) else generate_session_id()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def started(self) -> bool:
        return self._started

    @property
    def handler(self) -> SessionHandler:
        return self._handler

    @property
    def encrypted(self) -> bool:
        return self._codec.encrypted

    @property
    def flash_bag(self) -> FlashBag:
        return FlashBag(self._attributes)

    # -- lifecycle ------------------------------------------------------------

    async def start(self) -> bool:
        """Load the session; calling it again while started is a no-op."""
        if self._started:
            return True

        await self._handler.open(self._name)
        self._load(await self._handler.read(self._id))
        self.flash_bag.age()
        if not self.has(TOKEN_KEY):
            self.regenerate_token()

        self._started = True
        return True

    def _load(self, payload: str) -> None:
        if not payload:
            return
        raw = self._codec.decode(payload, session_id=self._id)
        if raw is None:
            return
        data = self._serializer.deserialize(raw)
        if data is None:
            logger.warning("session_payload_unreadable", session_id=self._id)
            return
        self._attributes.update(data)

    async def save(self) -> bool:
        """Persist the session; returns ``False`` when the handler write fails."""
        try:
            self.flash_bag.clean()
            raw = self._serializer.serialize(self._attributes)
            payload = self._codec.encode(raw)

            try:
                written = await self._handler.write(self._id, payload)
            except Exception as exc:  # noqa: BLE001
                logger.error("session_handler_raised", session_id=self._id, error=str(exc))
                written = False

            if not written:
                logger.error(
                    "session_save_failed",
                    session_id=self._id,
                    session_name=self._name,
                    handler=type(self._handler).__name__,
                    data_size=len(payload),
                    encrypted=self._codec.encrypted,
                )
            await self._handler.close()
            return written
        finally:
            self._started = False

    async def regenerate(self, destroy: bool = False) -> bool:
        """Move the session to a new id, optionally destroying the old record."""
        if destroy:
            await self._handler.destroy(self._id)
        self._id = generate_session_id()
        return True

    async def invalidate(self) -> bool:
        """Drop all attributes and move to a new id, destroying the old record."""
        self.flush()
        return await self.regenerate(destroy=True)

    # -- attributes -----------------------------------------------------------

    def all(self) -> dict[str, Any]:
        return dict(self._attributes)

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def put(self, key: str | Mapping[str, Any], value: Any = None) -> None:
        """Store one value, or every pair of a mapping."""
        if isinstance(key, Mapping):
            self._attributes.update(key)
        else:
            self._attributes[key] = value

    def has(self, key: str) -> bool:
        """``True`` when *key* is present and not ``None``."""
        return self._attributes.get(key) is not None

    def exists(self, key: str) -> bool:
        """``True`` when *key* is present, even with a ``None`` value."""
        return key in self._attributes

    def missing(self, key: str) -> bool:
        return key not in self._attributes

    def forget(self, key: str) -> None:
        self._attributes.pop(key, None)

    def forget_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._attributes.pop(key, None)

    def flush(self) -> None:
        self._attributes.clear()

    def pull(self, key: str, default: Any = None) -> Any:
        """Return and remove *key*."""
        return self._attributes.pop(key, default)

    def push(self, key: str, value: Any) -> None:
        """Append *value* to the list stored under *key*."""
        current = self._attributes.get(key)
        if isinstance(current, list):
            items = list(current)
        else:
            items = [] if current is None else [current]
        items.append(value)
        self._attributes[key] = items

    def increment(self, key: str, amount: int = 1) -> int:
        """Add *amount* to *key*; a missing or non-numeric value counts as 0."""
        value = _as_int(self._attributes.get(key)) + amount
        self._attributes[key] = value
        return value

    def decrement(self, key: str, amount: int = 1) -> int:
        return self.increment(key, -amount)

    # -- flash ----------------------------------------------------------------

    def flash(self, key: str, value: Any = True) -> None:
        self.flash_bag.flash(key, value)

    def now(self, key: str, value: Any) -> None:
        self.flash_bag.now(key, value)

    def reflash(self) -> None:
        self.flash_bag.reflash()

    def keep(self, keys: str | Iterable[str]) -> None:
        self.flash_bag.keep(keys)

    def get_flash(self, key: str, default: Any = None) -> Any:
        return self.flash_bag.get(key, default)

    def has_flash(self, key: str) -> bool:
        return self.flash_bag.has(key)

    def get_flash_all(self) -> dict[str, Any]:
        return self.flash_bag.all()

    # -- CSRF token / previous URL --------------------------------------------

    def token(self) -> str:
        """The CSRF token, or an empty string before one is generated."""
        return self.get(TOKEN_KEY) or ""

    def regenerate_token(self) -> str:
        token = generate_csrf_token()
        self._attributes[TOKEN_KEY] = token
        return token

    def previous_url(self) -> str | None:
        return self.get(PREVIOUS_URL_KEY)

    def set_previous_url(self, url: str) -> None:
        self._attributes[PREVIOUS_URL_KEY] = url

    # -- handler capabilities -------------------------------------------------

    async def set_user_id(self, user_id: Any) -> bool:
        """Associate this session with *user_id* where the handler supports it."""
        return await self._handler.set_user_id(self._id, user_id)

    def __repr__(self) -> str:
        return f"Store(name={self._name!r}, handler={type(self._handler).__name__}, started={self._started})"
