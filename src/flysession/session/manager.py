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
"""SessionManager — handler selection, session cookies and garbage collection."""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from typing import Any

import structlog
from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncEngine

from flysession.config.properties.session import SessionProperties
from flysession.encryption.ports.outbound import Encrypter
from flysession.kernel.exceptions import ConfigurationException, DecryptException, UnsupportedDriverException
from flysession.session.adapters.cookie import CookieSessionHandler
from flysession.session.adapters.database import DatabaseSessionHandler, session_table
from flysession.session.adapters.file import FileSessionHandler
from flysession.session.adapters.memory import ArraySessionHandler
from flysession.session.codec import PayloadCodec
from flysession.session.ports.outbound import SessionHandler
from flysession.session.request import SessionRequest
from flysession.session.store import Store

logger = structlog.get_logger("flysession.session")

DriverFactory = Callable[[SessionProperties, SessionRequest], SessionHandler]

BUILT_IN_DRIVERS: frozenset[str] = frozenset({"file", "database", "db", "cookie", "array"})


class SessionManager:
    """Builds one :class:`Store` per request from configuration.

    Misconfiguration of the selected driver raises
    :class:`ConfigurationException` at construction; an unknown driver name is
    reported by :meth:`validate` or on first use.
    """

    def __init__(
        self,
        properties: SessionProperties | None = None,
        *,
        encrypter: Encrypter | None = None,
        engine: AsyncEngine | None = None,
        drivers: Mapping[str, DriverFactory] | None = None,
        random_source: Callable[[int, int], int] = random.randint,
    ) -> None:
        self._properties = properties or SessionProperties()
        self._encrypter = encrypter
        self._engine = engine
        self._drivers: dict[str, DriverFactory] = {k.lower(): v for k, v in (drivers or {}).items()}
        self._random = random_source
        self._shared_handlers: dict[str, SessionHandler] = {}
        self._table: Table | None = None
        self._check_driver_requirements()

    # -- configuration --------------------------------------------------------

    @property
    def properties(self) -> SessionProperties:
        return self._properties

    @property
    def encrypter(self) -> Encrypter | None:
        return self._encrypter

    @property
    def driver(self) -> str:
        return self._properties.driver

    def using_database(self) -> bool:
        return self.driver in ("database", "db")

    def using_file(self) -> bool:
        return self.driver == "file"

    def using_cookie(self) -> bool:
        return self.driver == "cookie"

    def _check_driver_requirements(self) -> None:
        if self._properties.encrypt and self._encrypter is None:
            raise ConfigurationException(
                "Session encryption is enabled but no encrypter is configured",
                code="SESSION_ENCRYPTER",
            )
        if self.driver in self._drivers:
            return
        if self.using_database() and self._engine is None:
            raise ConfigurationException(
                "The database session driver requires a database engine",
                code="SESSION_DATABASE",
                context={"driver": self.driver},
            )
        if self.using_cookie() and self._encrypter is None:
            raise ConfigurationException(
                "The cookie session driver requires an encrypter",
                code="SESSION_ENCRYPTER",
                context={"driver": self.driver},
            )

    def extend(self, driver: str, factory: DriverFactory) -> SessionManager:
        """Register a custom driver; *factory* receives the properties and the request."""
        self._drivers[driver.lower()] = factory
        return self

    def validate(self) -> SessionManager:
        """Fail fast when the configured driver cannot be served."""
        self._check_driver_requirements()
        if self.driver not in self._drivers and self.driver not in BUILT_IN_DRIVERS:
            raise UnsupportedDriverException(
                f"Session driver [{self.driver}] is not supported",
                code="SESSION_DRIVER",
                context={"driver": self.driver, "supported": sorted(BUILT_IN_DRIVERS | set(self._drivers))},
            )
        return self

    # -- handlers -------------------------------------------------------------

    def create_handler(self, request: SessionRequest | None = None) -> SessionHandler:
        """Instantiate the handler for the configured driver."""
        props = self._properties
        request = request or SessionRequest()
        driver = self.driver

        if driver in self._drivers:
            return self._drivers[driver](props, request)
        if driver == "file":
            return self._shared("file", lambda: FileSessionHandler(props.files, props.lifetime))
        if driver == "array":
            return self._shared("array", lambda: ArraySessionHandler(props.lifetime))
        if driver in ("database", "db"):
            if self._engine is None:
                raise ConfigurationException("The database session driver requires a database engine")
            if self._table is None:
                self._table = session_table(props.table)
            return DatabaseSessionHandler(self._engine, self._table, props.lifetime, request=request)
        if driver == "cookie":
            if self._encrypter is None:
                raise ConfigurationException("The cookie session driver requires an encrypter")
            return CookieSessionHandler(self._encrypter, props, request=request)

        raise UnsupportedDriverException(
            f"Session driver [{driver}] is not supported",
            code="SESSION_DRIVER",
            context={"driver": driver},
        )

    def _shared(self, key: str, factory: Callable[[], SessionHandler]) -> SessionHandler:
        # Stateless handlers are reused across requests; the array handler's
        # storage must outlive any single request.
        if key not in self._shared_handlers:
            self._shared_handlers[key] = factory()
        return self._shared_handlers[key]

    # -- stores ---------------------------------------------------------------

    def session_id_from_request(self, request: SessionRequest) -> str | None:
        """Read the session id cookie, decrypting it when encryption is on."""
        value = request.cookies.get(self._properties.cookie)
        if not value:
            return None
        if not self._properties.encrypt or self._encrypter is None:
            return value
        try:
            return self._encrypter.decrypt(value.encode("ascii")).decode("utf-8")
        except (DecryptException, UnicodeError):
            logger.warning("session_cookie_id_invalid", cookie=self._properties.cookie)
            return None

    def get_session(self, request: SessionRequest) -> Store:
        """Return the Store for *request*, building it on first access."""
        if request.store is None:
            request.store = Store(
                self._properties.cookie,
                self.create_handler(request),
                self.session_id_from_request(request),
                codec=PayloadCodec(self._encrypter, self._properties.encrypt),
            )
        return request.store

    # -- cookies --------------------------------------------------------------

    def cookie_parameters(self) -> dict[str, Any]:
        """Attributes of the outbound session id cookie."""
        props = self._properties
        lifetime = None if props.expire_on_close else props.lifetime_seconds
        return {
            "key": props.cookie,
            "max_age": lifetime,
            "expires": lifetime,
            "path": props.path,
            "domain": props.domain,
            "secure": props.secure,
            "httponly": props.http_only,
            "samesite": props.same_site,
        }

    def set_session_cookie(self, response: Any, store: Store) -> None:
        """Write the session id (and any handler-owned cookies) to *response*."""
        store.handler.prepare_response(response)

        value = store.id
        if self._properties.encrypt and self._encrypter is not None:
            value = self._encrypter.encrypt(value.encode("utf-8")).decode("ascii")
        response.set_cookie(value=value, **self.cookie_parameters())

    # -- garbage collection ---------------------------------------------------

    def should_garbage_collect(self) -> bool:
        numerator, denominator = self._properties.lottery
        return self._random(1, denominator) <= numerator

    async def garbage_collect(self, store: Store) -> int | None:
        """Remove expired sessions; failures are logged, never raised."""
        handler = store.handler
        try:
            removed = await handler.gc(self._properties.lifetime_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.error("session_gc_failed", handler=type(handler).__name__, error=str(exc))
            return None
        logger.debug("session_gc_completed", handler=type(handler).__name__, removed=removed)
        return removed

    async def run_lottery(self, store: Store) -> int | None:
        """Garbage-collect when this request wins the lottery."""
        if not self.should_garbage_collect():
            return None
        return await self.garbage_collect(store)
