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
"""In-memory session handler with lifetime-based expiry."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from flysession.session.ports.outbound import AbstractSessionHandler


class ArraySessionHandler(AbstractSessionHandler):
    """Keeps payloads in a process-local dict guarded by an asyncio.Lock.

    Suitable for development, testing, and single-process applications.
    """

    def __init__(
        self,
        lifetime: int = 120,
        storage: dict[str, tuple[str, float]] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lifetime_seconds = lifetime * 60
        self._storage: dict[str, tuple[str, float]] = storage if storage is not None else {}
        self._clock = clock
        self._lock = asyncio.Lock()

    def _expired(self, last_activity: float) -> bool:
        return last_activity < self._clock() - self._lifetime_seconds

    async def read(self, session_id: str) -> str:
        async with self._lock:
            entry = self._storage.get(session_id)
            if entry is None:
                return ""

            payload, last_activity = entry
            if self._expired(last_activity):
                del self._storage[session_id]
                return ""

            return payload

    async def write(self, session_id: str, data: str) -> bool:
        async with self._lock:
            self._storage[session_id] = (data, self._clock())
        return True

    async def destroy(self, session_id: str) -> bool:
        async with self._lock:
            self._storage.pop(session_id, None)
        return True

    async def gc(self, max_lifetime: int) -> int:
        async with self._lock:
            threshold = self._clock() - max_lifetime
            stale = [sid for sid, (_, last_activity) in self._storage.items() if last_activity < threshold]
            for session_id in stale:
                del self._storage[session_id]
        return len(stale)

    async def exists(self, session_id: str) -> bool:
        """Check if a session exists and is not expired."""
        return await self.read(session_id) != ""

    async def flush(self) -> None:
        """Remove every stored session."""
        async with self._lock:
            self._storage.clear()

    @property
    def storage(self) -> dict[str, tuple[str, float]]:
        return self._storage
