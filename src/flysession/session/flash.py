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
"""Two-generation flash data aging.

Every flashed key carries a generation tag kept in the session attributes:

* ``_flash_new``: set during this request, visible during the next one.
* ``_flash_old``: set during the previous request, dropped after this one.

:meth:`FlashBag.age` runs once per :meth:`Store.start`, and
:meth:`FlashBag.clean` once per :meth:`Store.save`.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from flysession.session.attributes import FLASH_KEY, FLASH_NEW_KEY, FLASH_OLD_KEY


def _merge(existing: list[str], extra: Iterable[str]) -> list[str]:
    """Order-preserving union."""
    return list(dict.fromkeys([*existing, *extra]))


class FlashBag:
    """Flash operations over a session attribute mapping."""

    def __init__(self, attributes: dict[str, Any]) -> None:
        self._attributes = attributes

    # -- generation sets ------------------------------------------------------

    def _bucket(self) -> dict[str, Any]:
        bucket = self._attributes.get(FLASH_KEY)
        if not isinstance(bucket, dict):
            bucket = {}
            self._attributes[FLASH_KEY] = bucket
        return bucket

    def _tags(self, key: str) -> list[str]:
        tags = self._attributes.get(key)
        return list(tags) if isinstance(tags, list) else []

    @property
    def new_keys(self) -> list[str]:
        return self._tags(FLASH_NEW_KEY)

    @property
    def old_keys(self) -> list[str]:
        return self._tags(FLASH_OLD_KEY)

    def _set_tags(self, new: list[str], old: list[str]) -> None:
        self._attributes[FLASH_NEW_KEY] = new
        self._attributes[FLASH_OLD_KEY] = old

    def _drop_old(self) -> None:
        bucket = self._bucket()
        for key in self.old_keys:
            bucket.pop(key, None)

    # -- lifecycle ------------------------------------------------------------

    def age(self) -> None:
        """Drop last generation's values and demote this generation to old."""
        self._drop_old()
        self._set_tags([], self.new_keys)

    def clean(self) -> None:
        """Remove values whose keys are still tagged old before persisting."""
        self._drop_old()
        self._set_tags(self.new_keys, [])

    # -- mutation -------------------------------------------------------------

    def flash(self, key: str, value: Any = True) -> None:
        """Store *value* for the remainder of this request and the next one."""
        self._bucket()[key] = value
        self._set_tags(_merge(self.new_keys, [key]), [k for k in self.old_keys if k != key])

    def now(self, key: str, value: Any) -> None:
        """Store *value* for the current request only."""
        self._bucket()[key] = value
        self._set_tags([k for k in self.new_keys if k != key], _merge(self.old_keys, [key]))

    def reflash(self) -> None:
        """Keep every flash value for one more request."""
        self._set_tags(_merge(self.new_keys, self.old_keys), [])

    def keep(self, keys: str | Iterable[str]) -> None:
        """Keep the given flash keys for one more request."""
        selected = [keys] if isinstance(keys, str) else list(keys)
        self._set_tags(
            _merge(self.new_keys, selected),
            [k for k in self.old_keys if k not in selected],
        )

    # -- access ---------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        bucket = self._attributes.get(FLASH_KEY)
        if isinstance(bucket, dict):
            return bucket.get(key, default)
        return default

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def all(self) -> dict[str, Any]:
        bucket = self._attributes.get(FLASH_KEY)
        return dict(bucket) if isinstance(bucket, dict) else {}
