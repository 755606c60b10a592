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
"""SessionRequest — the request inputs session handling needs, passed explicitly."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SessionRequest:
    """Framework-neutral view of an incoming request.

    Holds the cookies, client address, user agent and URL. One instance
    corresponds to one request; the :class:`SessionManager` caches the Store
    it builds for the request on this object.
    """

    cookies: Mapping[str, str] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    method: str = "GET"
    url: str | None = None
    store: Any = field(default=None, repr=False, compare=False)

    @classmethod
    def from_starlette(cls, request: Any) -> SessionRequest:
        """Build from a Starlette (or Starlette-like) request object."""
        client = getattr(request, "client", None)
        return cls(
            cookies=dict(request.cookies),
            ip_address=client.host if client is not None else None,
            user_agent=request.headers.get("user-agent"),
            method=request.method,
            url=str(request.url),
        )
