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

"""
Group parameters shared by every participant.

All exponentiations in the protocol happen in the multiplicative group of
integers modulo a fixed safe prime. The parameters are constants, never
negotiated at runtime, so the same identifier hashes and blinds identically
in every process that selects the same named group.

Named groups:
- modp1024: RFC 2409 Second Oakley Group, generator 2 (default)
- modp2048: RFC 3526 group 14, generator 2
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from functools import cached_property

from dhpsi.exceptions import ConfigurationError


@dataclass(frozen=True)
class GroupParameters:
    """Modulus and generator defining the arithmetic domain."""

    name: str
    modulus: int
    generator: int

    def __post_init__(self) -> None:
        if self.modulus < 5:
            raise ValueError("modulus must be a large prime")
        if not 1 < self.generator < self.modulus:
            raise ValueError("generator must lie in (1, modulus)")

    @property
    def exponent_order(self) -> int:
        """Size of the exponent domain, modulus - 1."""
        return self.modulus - 1

    @cached_property
    def byte_length(self) -> int:
        """Number of bytes needed to encode any value in [0, modulus)."""
        return (self.modulus.bit_length() + 7) // 8

    @cached_property
    def decimal_length(self) -> int:
        """Number of decimal digits of the largest element, modulus - 1."""
        return len(str(self.modulus - 1))

    @cached_property
    def fingerprint(self) -> str:
        """Short stable digest used to compare parameters across processes."""
        material = f"{self.name}:{self.modulus:x}:{self.generator:x}".encode()
        return hashlib.sha256(material).hexdigest()[:16]

    def contains(self, value: int) -> bool:
        """Return True if value is a valid element encoding in [0, modulus)."""
        return 0 <= value < self.modulus

    def __repr__(self) -> str:
        return (
            f"GroupParameters(name={self.name!r}, bits={self.modulus.bit_length()}, "
            f"generator={self.generator}, fingerprint={self.fingerprint})"
        )


MODP_1024 = GroupParameters(
    name="modp1024",
    modulus=int(
        "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
        "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
        "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
        "E485B576625E7EC6F44C42E9A63A3620FFFFFFFFFFFFFFFF",
        16,
    ),
    generator=2,
)

MODP_2048 = GroupParameters(
    name="modp2048",
    modulus=int(
        "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
        "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
        "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
        "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
        "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3D"
        "C2007CB8A163BF0598DA48361C55D39A69163FA8FD24CF5F"
        "83655D23DCA3AD961C62F356208552BB9ED529077096966D"
        "670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
        "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9"
        "DE2BCBF6955817183995497CEA956AE515D2261898FA0510"
        "15728E5A8AACAA68FFFFFFFFFFFFFFFF",
        16,
    ),
    generator=2,
)

DEFAULT_GROUP = MODP_1024

_GROUPS: dict[str, GroupParameters] = {
    MODP_1024.name: MODP_1024,
    MODP_2048.name: MODP_2048,
}


def get_group(name: str) -> GroupParameters:
    """Look up a named group.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    try:
        return _GROUPS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown group '{name}', expected one of {sorted(_GROUPS)}"
        ) from None


def list_groups() -> list[str]:
    return sorted(_GROUPS)
