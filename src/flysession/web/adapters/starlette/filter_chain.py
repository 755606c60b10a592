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
"""WebFilterChainMiddleware — runs WebFilters around a Starlette app as pure ASGI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from flysession.web.filters import CallNext, WebFilter


class WebFilterChainMiddleware:
    """Executes *filters* in order around the wrapped app.

    The downstream response is buffered into a :class:`Response` so filters
    can set cookies after the app has run. The terminal call reads the body
    through ``request.receive``, so a filter that consumed the body may hand
    on a request that replays it.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = list(filters)
        self._chain: CallNext = self._call_app
        for web_filter in reversed(self._filters):
            self._chain = _wrap(web_filter, self._chain)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response = cast(Response, await self._chain(Request(scope, receive, send)))
        await response(scope, receive, send)

    async def _call_app(self, request: Request) -> Response:
        start: Message = {}
        body = bytearray()

        async def _capture(message: Message) -> None:
            if message["type"] == "http.response.start":
                start.update(message)
            elif message["type"] == "http.response.body":
                body.extend(message.get("body", b""))

        await self.app(request.scope, request.receive, _capture)

        response = Response(content=bytes(body), status_code=start.get("status", 200))
        response.raw_headers[:] = list(start.get("headers", []))
        return response


def _wrap(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    async def _inner(request: Any) -> Any:
        if web_filter.should_not_filter(request):
            return await next_call(request)
        return await web_filter.do_filter(request, next_call)

    return _inner
