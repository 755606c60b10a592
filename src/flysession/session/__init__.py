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
"""flysession Session — server-side sessions with pluggable storage handlers.

Import concrete handler types from the adapter package::

    from flysession.session.adapters.memory import ArraySessionHandler
    from flysession.session.adapters.database import DatabaseSessionHandler
"""

from flysession.session.attributes import SESSION_ATTRIBUTE, session_from_request
from flysession.session.codec import JsonSerializer, PayloadCodec
from flysession.session.factory import create_session_manager
from flysession.session.filter import StartSessionFilter
from flysession.session.flash import FlashBag
from flysession.session.manager import SessionManager
from flysession.session.ports.outbound import AbstractSessionHandler, SessionHandler
from flysession.session.request import SessionRequest
from flysession.session.store import Store

__all__ = [
    "SESSION_ATTRIBUTE",
    "AbstractSessionHandler",
    "FlashBag",
    "JsonSerializer",
    "PayloadCodec",
    "SessionHandler",
    "SessionManager",
    "SessionRequest",
    "StartSessionFilter",
    "Store",
    "create_session_manager",
    "session_from_request",
]
