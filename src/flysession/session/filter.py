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
"""StartSessionFilter — starts, exposes and persists the session for each request."""

from __future__ import annotations

from typing import Any

from flysession.session.attributes import SESSION_ATTRIBUTE
from flysession.session.manager import SessionManager
from flysession.session.request import SessionRequest
from flysession.web.filters import CallNext, OncePerRequestFilter


class StartSessionFilter(OncePerRequestFilter):
    """Manages server-side sessions through a :class:`SessionManager`.

    Starts the Store before the downstream handler runs, attaches it to
    ``request.state.session``, saves it afterwards (also when the handler
    raises), writes the session cookies and finally draws the garbage
    collection lottery.
    """

    def __init__(self, manager: SessionManager) -> None:
        self._manager = manager

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        session_request = SessionRequest.from_starlette(request)
        store = self._manager.get_session(session_request)
        await store.start()

        if session_request.method == "GET" and session_request.url is not None:
            store.set_previous_url(session_request.url)

        setattr(request.state, SESSION_ATTRIBUTE, store)

        try:
            response = await call_next(request)
        finally:
            await store.save()

        self._manager.set_session_cookie(response, store)
        await self._manager.run_lottery(store)
        return response
