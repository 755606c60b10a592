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
"""Tests for building a SessionManager from configuration."""

import pytest
import structlog
from sqlalchemy.ext.asyncio import create_async_engine
from structlog.testing import capture_logs

from flysession.core.config import Config
from flysession.encryption.adapters.fernet import FernetEncrypter
from flysession.kernel.exceptions import ConfigurationException, UnsupportedDriverException
from flysession.logging.port import LoggingPort
from flysession.logging.structlog_adapter import hash_session_id
from flysession.session.adapters.memory import ArraySessionHandler
from flysession.session.factory import create_encrypter, create_session_manager
from flysession.session.request import SessionRequest
from flysession.session.store import Store


@pytest.fixture(autouse=True)
def _no_app_key(monkeypatch):
    monkeypatch.delenv("APP_KEY", raising=False)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class RecordingLogging:
    """LoggingPort that records configure calls and leaves structlog alone."""

    def __init__(self) -> None:
        self.configured: list[Config] = []

    def configure(self, config):
        self.configured.append(config)

    def get_logger(self, name):
        return structlog.get_logger(name)

    def set_level(self, name, level):
        pass


class RejectingHandler(ArraySessionHandler):
    async def write(self, session_id, data):
        return False


def _config(**session):
    return Config.with_defaults({"flysession": {"session": session}})


class TestCreateEncrypter:
    def test_no_key_means_no_encrypter(self):
        assert create_encrypter(Config.with_defaults()) is None

    def test_key_from_environment(self, monkeypatch):
        key = FernetEncrypter.generate_key()
        monkeypatch.setenv("APP_KEY", key)
        encrypter = create_encrypter(Config.with_defaults())
        assert isinstance(encrypter, FernetEncrypter)
        assert encrypter.key == key.encode("ascii")


class TestCreateSessionManager:
    def test_array_driver(self):
        logging_port = RecordingLogging()
        with capture_logs() as logs:
            manager = create_session_manager(_config(driver="array", lifetime=15), logging_port=logging_port)
        assert isinstance(logging_port, LoggingPort)
        assert len(logging_port.configured) == 1
        assert manager.driver == "array"
        assert manager.properties.lifetime == 15
        assert isinstance(manager.create_handler(), ArraySessionHandler)
        assert logs[0]["event"] == "session_manager_configured"
        assert logs[0]["driver"] == "array"

    def test_file_driver_defaults(self, tmp_path):
        manager = create_session_manager(_config(files=str(tmp_path / "sessions")))
        assert manager.using_file() is True
        assert manager.encrypter is None

    def test_encryption_from_configured_key(self):
        key = FernetEncrypter.generate_key()
        config = Config.with_defaults(
            {"flysession": {"session": {"driver": "array", "encrypt": True}, "encryption": {"key": key}}}
        )
        manager = create_session_manager(config)
        assert manager.get_session(SessionRequest()).encrypted is True

    def test_explicit_encrypter_wins(self):
        encrypter = FernetEncrypter()
        manager = create_session_manager(_config(driver="cookie"), encrypter=encrypter)
        assert manager.encrypter is encrypter

    def test_unknown_driver_fails_at_startup(self):
        with pytest.raises(UnsupportedDriverException):
            create_session_manager(_config(driver="redis"))

    def test_custom_driver(self):
        manager = create_session_manager(
            _config(driver="custom"), drivers={"custom": lambda props, request: ArraySessionHandler(props.lifetime)}
        )
        assert isinstance(manager.create_handler(), ArraySessionHandler)

    def test_cookie_driver_without_key_fails_at_startup(self):
        with pytest.raises(ConfigurationException):
            create_session_manager(_config(driver="cookie"))

    def test_encrypt_without_key_fails_at_startup(self):
        with pytest.raises(ConfigurationException):
            create_session_manager(_config(driver="array", encrypt=True))

    @pytest.mark.asyncio
    async def test_database_driver_with_engine(self):
        engine = create_async_engine("sqlite+aiosqlite:///:memory:")
        try:
            manager = create_session_manager(_config(driver="database"), engine=engine)
            assert manager.using_database() is True
        finally:
            await engine.dispose()

    def test_database_driver_without_engine_fails_at_startup(self):
        with pytest.raises(ConfigurationException):
            create_session_manager(_config(driver="database"))


class TestLoggingPipeline:
    @pytest.mark.asyncio
    async def test_failed_save_logs_hashed_session_id(self, capsys):
        config = Config.with_defaults(
            {"flysession": {"session": {"driver": "array"}, "logging": {"format": "json"}}}
        )
        create_session_manager(config)

        store = Store("flysession_session", RejectingHandler())
        await store.start()
        session_id = store.id
        assert await store.save() is False

        out = capsys.readouterr().out
        assert "session_save_failed" in out
        assert session_id not in out
        assert hash_session_id(session_id) in out
