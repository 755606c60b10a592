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
"""Tests for SessionManager: driver selection, cookies, per-request stores and GC."""

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from starlette.responses import Response
from structlog.testing import capture_logs

from flysession.config.properties.session import SessionProperties
from flysession.encryption.adapters.fernet import FernetEncrypter
from flysession.kernel.exceptions import ConfigurationException, UnsupportedDriverException
from flysession.session.adapters.cookie import CookieSessionHandler
from flysession.session.adapters.database import DatabaseSessionHandler
from flysession.session.adapters.file import FileSessionHandler
from flysession.session.adapters.memory import ArraySessionHandler
from flysession.session.manager import SessionManager
from flysession.session.ports.outbound import AbstractSessionHandler
from flysession.session.request import SessionRequest

SID = "9" * 40


class ExplodingGcHandler(ArraySessionHandler):
    async def gc(self, max_lifetime):
        raise RuntimeError("disk on fire")


class TestConfigurationErrors:
    def test_database_without_engine(self):
        with pytest.raises(ConfigurationException, match="database engine"):
            SessionManager(SessionProperties(driver="database"))

    def test_db_alias_without_engine(self):
        with pytest.raises(ConfigurationException):
            SessionManager(SessionProperties(driver="db"))

    def test_cookie_without_encrypter(self):
        with pytest.raises(ConfigurationException, match="encrypter"):
            SessionManager(SessionProperties(driver="cookie"))

    def test_encrypt_without_encrypter(self):
        with pytest.raises(ConfigurationException, match="encryption"):
            SessionManager(SessionProperties(driver="array", encrypt=True))

    def test_unknown_driver_fails_validation(self):
        manager = SessionManager(SessionProperties(driver="redis"))
        with pytest.raises(UnsupportedDriverException) as exc_info:
            manager.validate()
        assert exc_info.value.context["driver"] == "redis"

    def test_unknown_driver_fails_on_use(self):
        with pytest.raises(UnsupportedDriverException):
            SessionManager(SessionProperties(driver="redis")).create_handler()


class TestHandlerSelection:
    def test_file(self, tmp_path: Path):
        manager = SessionManager(SessionProperties(driver="file", files=str(tmp_path / "s")))
        handler = manager.create_handler()
        assert isinstance(handler, FileSessionHandler)
        assert handler.directory == tmp_path / "s"
        assert manager.using_file() is True

    def test_array_storage_is_shared_across_requests(self):
        manager = SessionManager(SessionProperties(driver="array"))
        assert manager.create_handler(SessionRequest()) is manager.create_handler(SessionRequest())
        assert isinstance(manager.create_handler(), ArraySessionHandler)

    @pytest.mark.asyncio
    async def test_database(self):
        engine = create_async_engine("sqlite+aiosqlite:///:memory:")
        try:
            manager = SessionManager(SessionProperties(driver="db", table="web_sessions"), engine=engine)
            first = manager.create_handler(SessionRequest())
            second = manager.create_handler(SessionRequest())
            assert isinstance(first, DatabaseSessionHandler)
            assert first is not second
            assert first.table is second.table
            assert first.table.name == "web_sessions"
            assert manager.using_database() is True
        finally:
            await engine.dispose()

    def test_cookie(self):
        manager = SessionManager(SessionProperties(driver="cookie"), encrypter=FernetEncrypter())
        assert isinstance(manager.create_handler(), CookieSessionHandler)
        assert manager.using_cookie() is True

    def test_custom_driver(self):
        created = []

        def factory(props, request):
            handler = ArraySessionHandler(props.lifetime)
            created.append((handler, request))
            return handler

        manager = SessionManager(SessionProperties(driver="memcached")).extend("Memcached", factory)
        request = SessionRequest()
        handler = manager.validate().create_handler(request)
        assert created == [(handler, request)]

    def test_custom_driver_can_replace_builtin(self):
        sentinel = ArraySessionHandler()
        manager = SessionManager(SessionProperties(driver="database"), drivers={"database": lambda p, r: sentinel})
        assert manager.create_handler() is sentinel


class TestSessionIdFromRequest:
    def test_plain_cookie(self):
        manager = SessionManager(SessionProperties(driver="array"))
        assert manager.session_id_from_request(SessionRequest(cookies={"flysession_session": SID})) == SID

    def test_missing_cookie(self):
        manager = SessionManager(SessionProperties(driver="array"))
        assert manager.session_id_from_request(SessionRequest()) is None

    def test_encrypted_cookie(self):
        encrypter = FernetEncrypter()
        manager = SessionManager(SessionProperties(driver="array", encrypt=True), encrypter=encrypter)
        value = encrypter.encrypt(SID.encode()).decode()
        assert manager.session_id_from_request(SessionRequest(cookies={"flysession_session": value})) == SID

    def test_tampered_encrypted_cookie(self):
        manager = SessionManager(SessionProperties(driver="array", encrypt=True), encrypter=FernetEncrypter())
        assert manager.session_id_from_request(SessionRequest(cookies={"flysession_session": SID})) is None


class TestGetSession:
    def test_one_store_per_request(self):
        manager = SessionManager(SessionProperties(driver="array"))
        request = SessionRequest(cookies={"flysession_session": SID})
        store = manager.get_session(request)
        assert manager.get_session(request) is store
        assert store.id == SID
        assert store.name == "flysession_session"

    def test_distinct_requests_get_distinct_stores(self):
        manager = SessionManager(SessionProperties(driver="array"))
        assert manager.get_session(SessionRequest()) is not manager.get_session(SessionRequest())

    def test_store_uses_codec_encryption(self):
        manager = SessionManager(SessionProperties(driver="array", encrypt=True), encrypter=FernetEncrypter())
        assert manager.get_session(SessionRequest()).encrypted is True


class TestSessionCookie:
    def test_cookie_parameters(self):
        props = SessionProperties(
            driver="array", lifetime=30, path="/app", domain="example.com", secure=True, same_site="strict"
        )
        params = SessionManager(props).cookie_parameters()
        assert params == {
            "key": "flysession_session",
            "max_age": 1800,
            "expires": 1800,
            "path": "/app",
            "domain": "example.com",
            "secure": True,
            "httponly": True,
            "samesite": "strict",
        }

    def test_expire_on_close_makes_browser_session_cookie(self):
        params = SessionManager(SessionProperties(driver="array", expire_on_close=True)).cookie_parameters()
        assert params["max_age"] is None
        assert params["expires"] is None

    def test_set_session_cookie(self):
        manager = SessionManager(SessionProperties(driver="array"))
        store = manager.get_session(SessionRequest())
        response = Response()
        manager.set_session_cookie(response, store)
        header = response.headers["set-cookie"]
        assert header.startswith(f"flysession_session={store.id};")
        assert "HttpOnly" in header
        assert "Path=/" in header

    def test_encrypted_session_cookie_round_trips(self):
        encrypter = FernetEncrypter()
        manager = SessionManager(SessionProperties(driver="array", encrypt=True), encrypter=encrypter)
        store = manager.get_session(SessionRequest())
        response = Response()
        manager.set_session_cookie(response, store)
        value = response.headers["set-cookie"].split(";")[0].split("=", 1)[1].strip('"')
        assert value != store.id
        assert manager.session_id_from_request(SessionRequest(cookies={"flysession_session": value})) == store.id

    @pytest.mark.asyncio
    async def test_cookie_driver_attaches_data_cookie(self):
        manager = SessionManager(SessionProperties(driver="cookie"), encrypter=FernetEncrypter())
        store = manager.get_session(SessionRequest())
        await store.start()
        await store.save()
        response = Response()
        manager.set_session_cookie(response, store)
        names = {c.split("=", 1)[0] for c in response.headers.getlist("set-cookie")}
        assert names == {"flysession_session", "flysession_session_data"}


class TestGarbageCollection:
    @pytest.mark.parametrize(("draw", "expected"), [(1, True), (2, True), (3, False), (100, False)])
    def test_lottery(self, draw, expected):
        manager = SessionManager(SessionProperties(driver="array"), random_source=lambda low, high: draw)
        assert manager.should_garbage_collect() is expected

    def test_lottery_draw_bounds(self):
        calls = []

        def source(low, high):
            calls.append((low, high))
            return high

        manager = SessionManager(SessionProperties(driver="array", lottery=(1, 50)), random_source=source)
        manager.should_garbage_collect()
        assert calls == [(1, 50)]

    @pytest.mark.asyncio
    async def test_garbage_collect_uses_lifetime_seconds(self):
        seen = []

        class RecordingHandler(ArraySessionHandler):
            async def gc(self, max_lifetime):
                seen.append(max_lifetime)
                return 3

        manager = SessionManager(
            SessionProperties(driver="recording", lifetime=5), drivers={"recording": lambda p, r: RecordingHandler()}
        )
        store = manager.get_session(SessionRequest())
        assert await manager.garbage_collect(store) == 3
        assert seen == [300]

    @pytest.mark.asyncio
    async def test_gc_failure_is_logged_not_raised(self):
        manager = SessionManager(
            SessionProperties(driver="exploding"), drivers={"exploding": lambda p, r: ExplodingGcHandler()}
        )
        store = manager.get_session(SessionRequest())
        with capture_logs() as logs:
            assert await manager.garbage_collect(store) is None
        assert logs[0]["event"] == "session_gc_failed"
        assert logs[0]["handler"] == "ExplodingGcHandler"

    @pytest.mark.asyncio
    async def test_run_lottery_skips_on_miss(self):
        manager = SessionManager(
            SessionProperties(driver="exploding"),
            drivers={"exploding": lambda p, r: ExplodingGcHandler()},
            random_source=lambda low, high: high,
        )
        with capture_logs() as logs:
            assert await manager.run_lottery(manager.get_session(SessionRequest())) is None
        assert logs == []


class TestCapabilities:
    @pytest.mark.asyncio
    async def test_default_capabilities_are_no_ops(self):
        class Minimal(AbstractSessionHandler):
            async def read(self, session_id):
                return ""

            async def write(self, session_id, data):
                return True

            async def destroy(self, session_id):
                return True

            async def gc(self, max_lifetime):
                return 0

        handler = Minimal()
        assert await handler.set_user_id(SID, 1) is True
        response = Response()
        handler.prepare_response(response)
        assert "set-cookie" not in response.headers
