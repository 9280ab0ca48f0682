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

"""Per-participant protocol context.

A `ParticipantSession` is built once per process and handed to every
protocol operation. It owns the participant's secret, group parameters and
private records; none of these change after construction, so request
handlers share it without locking.

Identifiers never leave the session. Every record gets a random opaque
handle at construction, and the blinded set published to the peer and the
relay is keyed by those handles, in handle order rather than dataset order.
Only this session can map its own handles back to identifiers.
"""

from __future__ import annotations

import secrets
from collections.abc import Sequence
from concurrent.futures import Executor
from functools import cached_property

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.crypto.secret import Secret, generate_secret
from dhpsi.logging_config import get_logger
from dhpsi.psi.blinding import compute_blinded, re_exponentiate
from dhpsi.psi.matching import intersect
from dhpsi.psi.stats import aggregate, matched_attributes
from dhpsi.psi.types import BlindedSet, IntersectionResult, Record

logger = get_logger(__name__)

# Bytes of randomness per wire handle
HANDLE_BYTES = 16


def _new_handles(count: int) -> list[str]:
    handles: set[str] = set()
    while len(handles) < count:
        handles.add(secrets.token_hex(HANDLE_BYTES))
    return list(handles)


class ParticipantSession:
    """Immutable protocol context of one participant.

    Config: label, group, records.
    Private: secret (generated here unless injected for tests), and the
    handle -> identifier table.
    Derived: blinded set keyed by handles (computed once, on first use).
    """

    def __init__(
        self,
        label: str,
        records: Sequence[Record],
        group: GroupParameters = DEFAULT_GROUP,
        secret: Secret | None = None,
        executor: Executor | None = None,
        aggregation: str = "mean",
    ):
        self._label = label
        self._records = tuple(records)
        self._group = group
        self._secret = secret if secret is not None else generate_secret(group)
        self._executor = executor
        self._aggregation = aggregation

        identifiers = list(dict.fromkeys(r.id for r in self._records))
        self._identifier_of = dict(
            sorted(zip(_new_handles(len(identifiers)), identifiers))
        )
        self._position = {ident: pos for pos, ident in enumerate(identifiers)}
        logger.info(
            f"Session for participant {label} ready with {len(self._records)} records "
            f"(group={group.name})"
        )

    @property
    def label(self) -> str:
        return self._label

    @property
    def group(self) -> GroupParameters:
        return self._group

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    @cached_property
    def blinded(self) -> BlindedSet:
        """Own identifiers blinded with own secret, keyed by opaque handles."""
        handles = list(self._identifier_of)
        values = compute_blinded(
            [self._identifier_of[h] for h in handles],
            self._secret,
            self._group,
            self._executor,
        )
        return {h: values[self._identifier_of[h]] for h in handles}

    def resolve(self, handles: Sequence[str]) -> list[str]:
        """Map own handles back to identifiers, in dataset order.

        Handles this session did not issue are ignored.
        """
        found = {self._identifier_of[h] for h in handles if h in self._identifier_of}
        return sorted(found, key=self._position.__getitem__)

    def re_exponentiate(self, values: BlindedSet) -> BlindedSet:
        """Apply own secret to a set received from elsewhere."""
        return re_exponentiate(values, self._secret, self._group, self._executor)

    def intersect(self, own_final: BlindedSet, peer_final: BlindedSet) -> list[str]:
        """Match finals keyed by own and peer handles; return own identifiers."""
        return self.resolve(intersect(own_final, peer_final, self._group))

    def summarize(self, matched: Sequence[str]) -> IntersectionResult:
        values = matched_attributes(self._records, matched)
        return IntersectionResult(
            intersection=list(matched),
            average=aggregate(values, self._aggregation),
        )

    def __repr__(self) -> str:
        return (
            f"ParticipantSession(label={self._label!r}, records={len(self._records)}, "
            f"group={self._group.name})"
        )


__all__ = ["ParticipantSession"]
