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
"""Wiring helpers — build a ready-to-use SessionManager from configuration."""

from __future__ import annotations

from collections.abc import Mapping

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from flysession.config.properties.encryption import EncryptionProperties
from flysession.config.properties.session import SessionProperties
from flysession.core.config import Config
from flysession.encryption.adapters.fernet import FernetEncrypter
from flysession.encryption.ports.outbound import Encrypter
from flysession.logging.port import LoggingPort
from flysession.logging.structlog_adapter import StructlogAdapter
from flysession.session.manager import DriverFactory, SessionManager

logger = structlog.get_logger("flysession.session")


def create_encrypter(config: Config) -> Encrypter | None:
    """Return a Fernet encrypter for ``flysession.encryption.key``, if one is set."""
    key = config.bind(EncryptionProperties).key
    if not key:
        return None
    return FernetEncrypter.from_key(key)


def create_session_manager(
    config: Config,
    *,
    engine: AsyncEngine | None = None,
    encrypter: Encrypter | None = None,
    drivers: Mapping[str, DriverFactory] | None = None,
    logging_port: LoggingPort | None = None,
) -> SessionManager:
    """Configure logging, bind ``flysession.session`` properties and build a validated manager.

    Logging is set up first, through *logging_port* or a default
    :class:`StructlogAdapter`, so session ids are hashed in every later event.
    Configuration errors surface here, at startup, rather than on the first request.
    """
    if logging_port is None:
        logging_port = StructlogAdapter()
    logging_port.configure(config)

    properties = config.bind(SessionProperties)
    if encrypter is None:
        encrypter = create_encrypter(config)

    manager = SessionManager(properties, encrypter=encrypter, engine=engine, drivers=drivers).validate()
    logger.info(
        "session_manager_configured",
        driver=properties.driver,
        lifetime=properties.lifetime,
        encrypt=properties.encrypt,
        cookie=properties.cookie,
    )
    return manager
