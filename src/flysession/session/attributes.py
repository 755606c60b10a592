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
"""Well-known keys: the request attribute and the reserved session attributes."""

from __future__ import annotations

import re
import secrets
from typing import Any

SESSION_ATTRIBUTE: str = "session"
"""Name under which the started Store is exposed on ``request.state``."""

FLASH_KEY: str = "_flash"
FLASH_NEW_KEY: str = "_flash_new"
FLASH_OLD_KEY: str = "_flash_old"
TOKEN_KEY: str = "_token"
PREVIOUS_URL_KEY: str = "_previous_url"

RESERVED_KEYS: frozenset[str] = frozenset({FLASH_KEY, FLASH_NEW_KEY, FLASH_OLD_KEY, TOKEN_KEY, PREVIOUS_URL_KEY})

SESSION_ID_LENGTH: int = 40
_SESSION_ID_RE = re.compile(r"[a-zA-Z0-9]{40}")


def generate_session_id() -> str:
    """Return a fresh 40-character id built from 20 random bytes."""
    return secrets.token_hex(SESSION_ID_LENGTH // 2)


def is_valid_session_id(value: Any) -> bool:
    return isinstance(value, str) and _SESSION_ID_RE.fullmatch(value) is not None


def session_from_request(request: Any) -> Any:
    """Return the Store started for *request*, or ``None`` outside a session filter."""
    state = getattr(request, "state", None)
    return getattr(state, SESSION_ATTRIBUTE, None)
