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
"""File-per-session handler on the local filesystem."""

from __future__ import annotations

import asyncio
import os
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from flysession.kernel.exceptions import ConfigurationException
from flysession.session.attributes import is_valid_session_id
from flysession.session.ports.outbound import AbstractSessionHandler

logger = structlog.get_logger("flysession.session")

FILE_PREFIX = "sess_"


class FileSessionHandler(AbstractSessionHandler):
    """Stores each session in ``<directory>/sess_<id>``.

    The file's modification time is its last activity. Writes land in a
    temporary file that is atomically renamed over the target, so concurrent
    readers never observe a partial payload. Blocking I/O runs in the
    event loop's default executor.
    """

    def __init__(
        self,
        directory: str | Path,
        lifetime: int = 120,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._directory = Path(directory)
        self._lifetime_seconds = lifetime * 60
        self._clock = clock

        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationException(
                f"Session directory '{self._directory}' could not be created",
                code="SESSION_FILES",
                context={"directory": str(self._directory)},
            ) from exc
        if not os.access(self._directory, os.W_OK):
            raise ConfigurationException(
                f"Session directory '{self._directory}' is not writable",
                code="SESSION_FILES",
                context={"directory": str(self._directory)},
            )

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, session_id: str) -> Path:
        return self._directory / f"{FILE_PREFIX}{session_id}"

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # -- blocking helpers -----------------------------------------------------

    def _read_sync(self, path: Path) -> str:
        try:
            if path.stat().st_mtime < self._clock() - self._lifetime_seconds:
                return ""
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def _write_sync(self, path: Path, data: str) -> None:
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", dir=self._directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _gc_sync(self, max_lifetime: int) -> int:
        threshold = self._clock() - max_lifetime
        removed = 0
        for path in self._directory.glob(f"{FILE_PREFIX}*"):
            try:
                if path.stat().st_mtime < threshold:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        return removed

    # -- handler contract -----------------------------------------------------

    async def read(self, session_id: str) -> str:
        if not is_valid_session_id(session_id):
            return ""
        try:
            return await self._run(self._read_sync, self.path_for(session_id))
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("session_file_read_failed", session_id=session_id, error=str(exc))
            return ""

    async def write(self, session_id: str, data: str) -> bool:
        if not is_valid_session_id(session_id):
            return False
        try:
            await self._run(self._write_sync, self.path_for(session_id), data)
        except OSError as exc:
            logger.error(
                "session_file_write_failed",
                session_id=session_id,
                directory=str(self._directory),
                error=str(exc),
            )
            return False
        return True

    async def destroy(self, session_id: str) -> bool:
        if not is_valid_session_id(session_id):
            return True
        try:
            await self._run(self.path_for(session_id).unlink, True)
        except OSError as exc:
            logger.error("session_file_destroy_failed", session_id=session_id, error=str(exc))
            return False
        return True

    async def gc(self, max_lifetime: int) -> int:
        return await self._run(self._gc_sync, max_lifetime)
