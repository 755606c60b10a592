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
"""Payload codec — attributes <-> opaque, transport-safe handler payloads.

Encoding pipeline::

    attributes -> JsonSerializer.serialize -> [Encrypter.encrypt] -> base64

Decoding is the exact inverse; any failure on the way back yields
``None`` so the caller starts a fresh session instead of failing the request.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

import structlog

from flysession.encryption.ports.outbound import Encrypter
from flysession.kernel.exceptions import DecryptException

logger = structlog.get_logger("flysession.session")


class JsonSerializer:
    """Serializes the attribute mapping as compact UTF-8 JSON."""

    def serialize(self, attributes: dict[str, Any]) -> bytes:
        return json.dumps(attributes, separators=(",", ":"), ensure_ascii=False).encode("utf-8")

    def deserialize(self, raw: bytes) -> dict[str, Any] | None:
        """Return the decoded mapping, or ``None`` for anything that is not a JSON object."""
        try:
            value = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        return value if isinstance(value, dict) else None


class PayloadCodec:
    """Applies optional authenticated encryption plus base64 transport encoding."""

    def __init__(self, encrypter: Encrypter | None = None, encrypt: bool = False) -> None:
        self._encrypter = encrypter if encrypt else None

    @property
    def encrypted(self) -> bool:
        """Whether payloads pass through the encrypter."""
        return self._encrypter is not None

    def encode(self, raw: bytes) -> str:
        """Encode *raw* for storage.

        Encrypter failures propagate: they signal a broken deployment, not bad input.
        """
        if self._encrypter is not None:
            raw = self._encrypter.encrypt(raw)
        return base64.b64encode(raw).decode("ascii")

    def decode(self, data: str, *, session_id: str | None = None) -> bytes | None:
        """Decode a stored payload, returning ``None`` when it cannot be trusted."""
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("session_payload_not_base64", session_id=session_id)
            return None

        if self._encrypter is None:
            return raw

        try:
            return self._encrypter.decrypt(raw)
        except DecryptException:
            logger.warning("session_payload_decrypt_failed", session_id=session_id)
            return None
