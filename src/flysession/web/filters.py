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
"""Request filters: the WebFilter protocol and a pattern-matching base class.

Filters see generic ``Any`` request/response objects; Starlette types stay in
``flysession.web.adapters.starlette``.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Coroutine
from fnmatch import fnmatch
from typing import Any, Protocol, runtime_checkable

CallNext = Callable[..., Coroutine[Any, Any, Any]]


@runtime_checkable
class WebFilter(Protocol):
    """A filter wraps the downstream app: it may inspect the request, short-circuit
    with its own response, or delegate to ``call_next`` and adjust the result.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool: ...


class OncePerRequestFilter(abc.ABC):
    """Base class selecting requests by path glob and HTTP method.

    Attributes:
        url_patterns: Paths the filter applies to; empty means every path.
        exclude_patterns: Paths skipped even when ``url_patterns`` matches.
        methods: HTTP methods the filter applies to; ``None`` means all.
    """

    url_patterns: list[str] = []
    exclude_patterns: list[str] = []
    methods: frozenset[str] | None = None

    def should_not_filter(self, request: Any) -> bool:
        if self.methods is not None and request.method.upper() not in self.methods:
            return True

        path: str = request.url.path
        if self.url_patterns and not any(fnmatch(path, p) for p in self.url_patterns):
            return True
        return any(fnmatch(path, p) for p in self.exclude_patterns)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Handle *request*; call ``await call_next(request)`` to continue the chain."""
        ...
