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
"""Relational session handler — one row per session via SQLAlchemy Core."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog
from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, delete, insert, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from flysession.session.ports.outbound import AbstractSessionHandler
from flysession.session.request import SessionRequest

logger = structlog.get_logger("flysession.session")

USER_AGENT_MAX_LENGTH = 255


def session_table(name: str = "sessions", metadata: MetaData | None = None) -> Table:
    """Build the session table definition.

    Indexed on ``last_activity`` for garbage collection and on ``user_id``
    for per-user lookups.
    """
    metadata = metadata if metadata is not None else MetaData()
    table = Table(
        name,
        metadata,
        Column("id", String(128), primary_key=True),
        Column("payload", Text, nullable=False),
        Column("last_activity", Integer, nullable=False),
        Column("user_id", String(255), nullable=True),
        Column("ip_address", String(45), nullable=True),
        Column("user_agent", String(USER_AGENT_MAX_LENGTH), nullable=True),
    )
    Index(f"ix_{name}_last_activity", table.c.last_activity)
    Index(f"ix_{name}_user_id", table.c.user_id)
    return table


def schema_hint(exc: BaseException) -> str | None:
    """Suggest a fix for common schema and permission problems."""
    message = str(exc).lower()
    if "no such table" in message or "doesn't exist" in message or "does not exist" in message:
        return "Create the session table with DatabaseSessionHandler.create_table() or a migration."
    if "no such column" in message or "unknown column" in message:
        return "The session table is missing columns: id, payload, last_activity, user_id, ip_address, user_agent."
    if "access denied" in message or "permission denied" in message:
        return "The database user lacks privileges on the session table."
    return None


class DatabaseSessionHandler(AbstractSessionHandler):
    """Persists payloads in a relational table with an atomic upsert per write.

    Client metadata (IP address, user agent) comes from the explicit
    :class:`SessionRequest`, never from ambient globals.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        table: str | Table = "sessions",
        lifetime: int = 120,
        *,
        request: SessionRequest | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engine = engine
        self._table = table if isinstance(table, Table) else session_table(table)
        self._lifetime_seconds = lifetime * 60
        self._request = request
        self._clock = clock
        self._user_id: str | None = None

    @property
    def table(self) -> Table:
        return self._table

    def _now(self) -> int:
        return int(self._clock())

    def _log_failure(self, event: str, exc: SQLAlchemyError, **context: Any) -> None:
        logger.error(
            event,
            table=self._table.name,
            error=str(exc),
            hint=schema_hint(exc),
            **context,
        )

    async def create_table(self) -> None:
        """Create the session table and its indexes if they do not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(self._table.metadata.create_all, tables=[self._table])

    # -- handler contract -----------------------------------------------------

    async def read(self, session_id: str) -> str:
        t = self._table
        stmt = select(t.c.payload).where(
            t.c.id == session_id,
            t.c.last_activity >= self._now() - self._lifetime_seconds,
        )
        try:
            async with self._engine.connect() as conn:
                payload = (await conn.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as exc:
            self._log_failure("session_db_read_failed", exc, session_id=session_id)
            return ""
        return payload or ""

    def _row_values(self, data: str) -> dict[str, Any]:
        values: dict[str, Any] = {"payload": data, "last_activity": self._now()}
        if self._user_id is not None:
            values["user_id"] = self._user_id
        if self._request is not None:
            values["ip_address"] = self._request.ip_address
            user_agent = self._request.user_agent
            values["user_agent"] = user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else None
        return values

    async def _upsert(self, conn: AsyncConnection, session_id: str, values: dict[str, Any]) -> None:
        t = self._table
        dialect = conn.dialect.name

        if dialect in ("sqlite", "postgresql"):
            dialect_insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = dialect_insert(t).values(id=session_id, **values)
            await conn.execute(stmt.on_conflict_do_update(index_elements=[t.c.id], set_=values))
        elif dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(t).values(id=session_id, **values)
            await conn.execute(stmt.on_duplicate_key_update(**values))
        else:
            result = await conn.execute(update(t).where(t.c.id == session_id).values(**values))
            if result.rowcount == 0:
                await conn.execute(insert(t).values(id=session_id, **values))

    async def write(self, session_id: str, data: str) -> bool:
        try:
            async with self._engine.begin() as conn:
                await self._upsert(conn, session_id, self._row_values(data))
        except SQLAlchemyError as exc:
            self._log_failure("session_db_write_failed", exc, session_id=session_id, data_size=len(data))
            return False
        return True

    async def destroy(self, session_id: str) -> bool:
        try:
            async with self._engine.begin() as conn:
                await conn.execute(delete(self._table).where(self._table.c.id == session_id))
        except SQLAlchemyError as exc:
            self._log_failure("session_db_destroy_failed", exc, session_id=session_id)
            return False
        return True

    async def gc(self, max_lifetime: int) -> int:
        stmt = delete(self._table).where(self._table.c.last_activity < self._now() - max_lifetime)
        async with self._engine.begin() as conn:
            removed = (await conn.execute(stmt)).rowcount or 0
        return removed

    # -- user association -----------------------------------------------------

    async def set_user_id(self, session_id: str, user_id: Any) -> bool:
        """Remember *user_id* for the next write and tag the existing row."""
        self._user_id = None if user_id is None else str(user_id)
        t = self._table
        try:
            async with self._engine.begin() as conn:
                await conn.execute(update(t).where(t.c.id == session_id).values(user_id=self._user_id))
        except SQLAlchemyError as exc:
            self._log_failure("session_db_user_update_failed", exc, session_id=session_id)
            return False
        return True

    async def sessions_for_user(self, user_id: Any) -> list[dict[str, Any]]:
        """Active sessions of *user_id*, most recently used first."""
        t = self._table
        stmt = (
            select(t.c.id, t.c.last_activity, t.c.ip_address, t.c.user_agent)
            .where(
                t.c.user_id == str(user_id),
                t.c.last_activity >= self._now() - self._lifetime_seconds,
            )
            .order_by(t.c.last_activity.desc())
        )
        async with self._engine.connect() as conn:
            rows = (await conn.execute(stmt)).mappings().all()
        return [dict(row) for row in rows]

    async def destroy_user_sessions(self, user_id: Any, except_session_id: str | None = None) -> int:
        """Delete every session of *user_id* ("log out everywhere"), optionally sparing one."""
        t = self._table
        stmt = delete(t).where(t.c.user_id == str(user_id))
        if except_session_id is not None:
            stmt = stmt.where(t.c.id != except_session_id)
        async with self._engine.begin() as conn:
            removed = (await conn.execute(stmt)).rowcount or 0
        logger.info(
            "session_user_sessions_destroyed",
            user_id=str(user_id),
            except_session_id=except_session_id,
            count=removed,
        )
        return removed
