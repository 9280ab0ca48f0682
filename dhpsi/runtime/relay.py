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
Oblivious relay.

The relay stores each participant's blinded set and, on request, raises
either the caller's own set or its counterpart's set to the relay's secret
K. It never sees plaintext identifiers, and since it holds neither
participant's secret it cannot compute the intersection itself.

Uploads are keyed by `(session_id, participant_label)`. A session pairs at
most two labels, so independent runs between the same two participants
do not interfere as long as they use distinct session ids.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Literal

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.crypto.secret import Secret, generate_secret
from dhpsi.exceptions import InvalidRequestError, ResourceNotFound
from dhpsi.logging_config import get_logger
from dhpsi.psi.blinding import re_exponentiate
from dhpsi.psi.types import BlindedSet

logger = get_logger(__name__)

Which = Literal["own", "peer"]

# A session pairs exactly two participants
MAX_PARTICIPANTS = 2


@dataclass
class RelaySessionState:
    uploads: dict[str, BlindedSet] = field(default_factory=dict)
    created_ts: float = field(default_factory=time.time)
    last_access_ts: float = field(default_factory=time.time)


class ObliviousRelay:
    """Session-keyed store of blinded sets with a private exponent K."""

    def __init__(
        self,
        group: GroupParameters = DEFAULT_GROUP,
        secret: Secret | None = None,
    ):
        self.group = group
        self._secret = secret if secret is not None else generate_secret(group)
        self._sessions: dict[str, RelaySessionState] = {}
        self._lock = threading.Lock()

    def upload(self, session_id: str, label: str, blinded: BlindedSet) -> None:
        """Store (or replace) a participant's blinded set for a session.

        Raises:
            InvalidRequestError: If a third label joins a two-party session.
        """
        with self._lock:
            state = self._sessions.setdefault(session_id, RelaySessionState())
            if label not in state.uploads and len(state.uploads) >= MAX_PARTICIPANTS:
                raise InvalidRequestError(
                    f"Session '{session_id}' already pairs {sorted(state.uploads)}"
                )
            state.uploads[label] = dict(blinded)
            state.last_access_ts = time.time()
        logger.info(
            f"Stored {len(blinded)} values from participant {label} (session={session_id})"
        )

    def _snapshot(self, session_id: str, label: str) -> tuple[BlindedSet, BlindedSet] | None:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                return None
            state.last_access_ts = time.time()
            own = state.uploads.get(label)
            others = [v for k, v in state.uploads.items() if k != label]
            if own is None or not others:
                return None
            return own, others[0]

    def get_processed(self, session_id: str, label: str, which: Which) -> BlindedSet:
        """Raise the caller's own or the counterpart's set to K.

        Returns an empty set while either upload of the session is missing;
        the caller should retry later.
        """
        if which not in ("own", "peer"):
            raise InvalidRequestError(f"Selector must be 'own' or 'peer', got '{which}'")
        pair = self._snapshot(session_id, label)
        if pair is None:
            logger.debug(f"Session {session_id} not ready for participant {label}")
            return {}
        own, peer = pair
        base = own if which == "own" else peer
        # Exponentiation runs outside the lock on a private copy
        return re_exponentiate(base, self._secret, self.group)

    def delete_session(self, session_id: str) -> None:
        """Forget every upload of a session.

        Raises:
            ResourceNotFound: If the session does not exist.
        """
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise ResourceNotFound(f"Session '{session_id}' not found")
        logger.info(f"Session {session_id} deleted")

    def list_sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions.keys())

    def session_labels(self, session_id: str) -> list[str]:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                raise ResourceNotFound(f"Session '{session_id}' not found")
            return sorted(state.uploads)

    def __repr__(self) -> str:
        return f"ObliviousRelay(group={self.group.name}, sessions={len(self._sessions)})"


__all__ = ["MAX_PARTICIPANTS", "ObliviousRelay", "RelaySessionState", "Which"]
