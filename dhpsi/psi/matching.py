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
Intersection of fully exponentiated sets.

Values are compared through `canonical_key`, a fixed-width big-endian byte
string, so equality never depends on a textual representation.

Policy:
- The keys returned belong to the `indexed` set. Protocol runs index the
  initiator's own final set, keyed by its handles, which the session then
  resolves to the initiator's own identifiers.
- If two identifiers on the indexed side share a value, the first inserted
  one keeps the slot.
- Output follows the order of matching values in `scanned`, and an identifier
  is reported at most once.
"""

from __future__ import annotations

from collections.abc import Mapping

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.exceptions import DataError


def canonical_key(value: int, group: GroupParameters = DEFAULT_GROUP) -> bytes:
    """Encode a group element as exactly `group.byte_length` bytes."""
    if not isinstance(value, int) or isinstance(value, bool) or not group.contains(value):
        raise DataError("Exponentiated value outside the group range")
    return value.to_bytes(group.byte_length, "big")


def build_index(
    values: Mapping[str, int], group: GroupParameters = DEFAULT_GROUP
) -> dict[bytes, str]:
    """Map canonical value keys back to identifiers, first insertion wins."""
    index: dict[bytes, str] = {}
    for identifier, value in values.items():
        index.setdefault(canonical_key(value, group), identifier)
    return index


def intersect(
    indexed: Mapping[str, int],
    scanned: Mapping[str, int],
    group: GroupParameters = DEFAULT_GROUP,
) -> list[str]:
    """Return the identifiers of `indexed` whose value also occurs in `scanned`.

    Both sets must have had the same multiset of secrets applied. Runs in
    time linear in the combined sizes.
    """
    index = build_index(indexed, group)
    matched: list[str] = []
    seen: set[str] = set()
    for value in scanned.values():
        identifier = index.get(canonical_key(value, group))
        if identifier is not None and identifier not in seen:
            seen.add(identifier)
            matched.append(identifier)
    return matched


__all__ = ["build_index", "canonical_key", "intersect"]
