# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Identifier to exponent hashing."""

from __future__ import annotations

import hashlib

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.exceptions import DataError


def sha256_int(data: bytes) -> int:
    """Return the SHA-256 digest of data as a big-endian integer."""
    return int.from_bytes(hashlib.sha256(data).digest(), "big")


def hash_identifier(identifier: str, group: GroupParameters = DEFAULT_GROUP) -> int:
    """Map an identifier into the exponent domain of the group.

    The full 256-bit digest is reduced modulo (modulus - 1), so the result is
    deterministic across processes and collisions are as unlikely as SHA-256
    collisions.

    Raises:
        DataError: If identifier is not a string.
    """
    if not isinstance(identifier, str):
        raise DataError(f"Identifier must be a string, got {type(identifier).__name__}")
    return sha256_int(identifier.encode("utf-8")) % group.exponent_order


__all__ = ["hash_identifier", "sha256_int"]
