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
"""Session subsystem configuration properties."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from flysession.core.config import config_properties


@config_properties(prefix="flysession.session")
class SessionProperties(BaseModel):
    """Configuration for the session subsystem (flysession.session.*)."""

    driver: str = "file"
    lifetime: int = Field(default=120, ge=1)
    expire_on_close: bool = False
    encrypt: bool = False
    files: str = "storage/sessions"
    table: str = "sessions"
    cookie: str = "flysession_session"
    cookie_data: str = "flysession_session_data"
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    http_only: bool = True
    same_site: Literal["lax", "strict", "none"] = "lax"
    lottery: tuple[int, int] = (2, 100)

    @field_validator("driver", "same_site", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("lottery", mode="before")
    @classmethod
    def _split_lottery(cls, value: object) -> object:
        # FLYSESSION_SESSION_LOTTERY="2,100"
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(","))
        return value

    @field_validator("lottery")
    @classmethod
    def _check_lottery(cls, value: tuple[int, int]) -> tuple[int, int]:
        numerator, denominator = value
        if denominator < 1 or numerator < 0:
            raise ValueError("lottery must be [numerator >= 0, denominator >= 1]")
        return value

    @property
    def lifetime_seconds(self) -> int:
        return self.lifetime * 60
