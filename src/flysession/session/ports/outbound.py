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
"""Session handler port — the contract every storage backend satisfies."""

from __future__ import annotations

import abc
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SessionHandler(Protocol):
    """Storage backend for encoded session payloads.

    ``read`` returns ``""`` for unknown or expired ids. ``write`` and
    ``destroy`` report I/O failures as ``False`` instead of raising.
    ``gc`` returns the number of removed entries, or ``None`` when the
    backend cannot tell.
    """

    async def open(self, name: str) -> bool: ...

    async def close(self) -> bool: ...

    async def read(self, session_id: str) -> str: ...

    async def write(self, session_id: str, data: str) -> bool: ...

    async def destroy(self, session_id: str) -> bool: ...

    async def gc(self, max_lifetime: int) -> int | None: ...

    async def set_user_id(self, session_id: str, user_id: Any) -> bool: ...

    def prepare_response(self, response: Any) -> None: ...


class AbstractSessionHandler(abc.ABC):
    """Base class providing no-op lifecycle hooks and optional capabilities.

    Subclasses implement ``read``, ``write``, ``destroy`` and ``gc``.
    Backends that associate sessions with users override :meth:`set_user_id`;
    backends that keep state in cookies override :meth:`prepare_response`.
    """

    async def open(self, name: str) -> bool:
        return True

    async def close(self) -> bool:
        return True

    @abc.abstractmethod
    async def read(self, session_id: str) -> str:
        ...

    @abc.abstractmethod
    async def write(self, session_id: str, data: str) -> bool:
        ...

    @abc.abstractmethod
    async def destroy(self, session_id: str) -> bool:
        ...

    @abc.abstractmethod
    async def gc(self, max_lifetime: int) -> int | None:
        ...

    async def set_user_id(self, session_id: str, user_id: Any) -> bool:
        """Associate *session_id* with *user_id*; a no-op reporting success by default."""
        return True

    def prepare_response(self, response: Any) -> None:
        """Attach backend-owned cookies to *response*; nothing by default."""
