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
"""Fernet-backed Encrypter (AES-128-CBC + HMAC-SHA256)."""

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from flysession.kernel.exceptions import ConfigurationException, DecryptException, EncryptException


class FernetEncrypter:
    """Encrypts and decrypts session payloads using :class:`cryptography.fernet.Fernet`.

    Fernet tokens are authenticated, so any tampering surfaces as a
    :class:`DecryptException` rather than garbage plaintext.
    """

    def __init__(self, key: bytes | str | None = None) -> None:
        if isinstance(key, str):
            key = key.encode("ascii")
        self._key = key or Fernet.generate_key()
        try:
            self._fernet = Fernet(self._key)
        except ValueError as exc:
            raise ConfigurationException(
                "Encryption key must be 32 url-safe base64-encoded bytes",
                code="ENCRYPTION_KEY",
            ) from exc

    def encrypt(self, plaintext: bytes) -> bytes:
        try:
            return self._fernet.encrypt(plaintext)
        except TypeError as exc:
            raise EncryptException("Only bytes can be encrypted", code="ENCRYPT") from exc

    def decrypt(self, ciphertext: bytes) -> bytes:
        try:
            return self._fernet.decrypt(ciphertext)
        except (InvalidToken, TypeError) as exc:
            raise DecryptException("The payload is invalid", code="DECRYPT") from exc

    @property
    def key(self) -> bytes:
        return self._key

    @classmethod
    def from_key(cls, key: bytes | str) -> FernetEncrypter:
        return cls(key=key)

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")
