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
"""Encrypter port — authenticated encryption contract used for payloads and cookies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Encrypter(Protocol):
    """Authenticated-encryption primitive.

    Implementations must detect tampering: :meth:`decrypt` raises
    :class:`~flysession.kernel.exceptions.DecryptException` for any ciphertext
    that was modified, truncated or produced under a different key.
    """

    def encrypt(self, plaintext: bytes) -> bytes: ...

    def decrypt(self, ciphertext: bytes) -> bytes: ...
