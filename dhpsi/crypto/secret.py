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
Private blinding exponents.

Each participant (and the relay) owns exactly one `Secret` for the lifetime
of its process. The value lives only in memory: it has a redacted repr and
refuses to be pickled, so it cannot leak through logs, error messages or
process-pool task arguments.
"""

from __future__ import annotations

import secrets

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters


class Secret:
    """A scalar in [2, modulus - 2] used as a blinding exponent."""

    __slots__ = ("_value",)

    def __init__(self, value: int, group: GroupParameters = DEFAULT_GROUP):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("Secret value must be an int")
        if not 2 <= value <= group.modulus - 2:
            raise ValueError("Secret value must lie in [2, modulus - 2]")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return "Secret(<redacted>)"

    __str__ = __repr__

    def __reduce__(self):  # type: ignore[no-untyped-def]
        raise TypeError("Secret values cannot be serialized")


def generate_secret(group: GroupParameters = DEFAULT_GROUP) -> Secret:
    """Draw a uniformly random secret from [2, modulus - 2] using a CSPRNG."""
    return Secret(secrets.randbelow(group.modulus - 3) + 2, group)


__all__ = ["Secret", "generate_secret"]
