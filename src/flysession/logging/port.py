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
"""LoggingPort — how flysession hands its log pipeline to the host application.

:func:`~flysession.session.factory.create_session_manager` configures the
port it is given (a :class:`~flysession.logging.structlog_adapter.StructlogAdapter`
by default) from the ``flysession.logging`` section. Implementations must
keep session ids out of rendered output.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from flysession.core.config import Config


@runtime_checkable
class LoggingPort(Protocol):
    """Log pipeline used by the session layer."""

    def configure(self, config: Config) -> None:
        """Install the pipeline described by ``flysession.logging``."""
        ...

    def get_logger(self, name: str) -> Any: ...

    def set_level(self, name: str, level: str) -> None: ...
