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
Protocol runs.

A run is one logical sequence of steps initiated by a participant:

Two-party::

    START -> LOCAL_BLIND -> EXCHANGE_BLINDED -> LOCAL_RE_EXPONENTIATE
          -> INTERSECT -> AGGREGATE -> DONE

With relay::

    START -> LOCAL_BLIND -> UPLOAD_TO_RELAY -> FETCH_PEER_PROCESSED
          -> FETCH_OWN_PROCESSED -> SEND_OWN_PROCESSED_TO_PEER
          -> RECEIVE_PEER_FINAL -> LOCAL_RE_EXPONENTIATE
          -> INTERSECT -> AGGREGATE -> DONE

Any `PSIError` moves the run to FAILED and is returned as a `RunFailure`
naming the state where it happened. A run never returns a partial
intersection.

Final values compared in INTERSECT:
- own side: H(id)*a*b (two-party) or H(id)*a*K*b (relay), computed by the
  peer on our values and keyed by our own opaque handles;
- peer side: H(id)*b*a or H(id)*b*K*a, computed locally and keyed by the
  peer's handles.
The own side is indexed, and the session maps matched handles back to our
own identifiers. Sets sent to the peer or the relay only ever carry handles.

Once our set is on the relay, the relay session is deleted when the run
ends, whether it succeeded or failed.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from dhpsi.exceptions import DataError, NetworkError, PSIError
from dhpsi.logging_config import get_logger
from dhpsi.psi.types import BlindedSet, IntersectionResult
from dhpsi.runtime.client import PeerClient, RelayClient
from dhpsi.runtime.relay import Which
from dhpsi.runtime.session import ParticipantSession

logger = get_logger(__name__)

T = TypeVar("T")


class RunState(enum.Enum):
    START = "start"
    LOCAL_BLIND = "local_blind"
    EXCHANGE_BLINDED = "exchange_blinded"
    LOCAL_RE_EXPONENTIATE = "local_re_exponentiate"
    UPLOAD_TO_RELAY = "upload_to_relay"
    FETCH_PEER_PROCESSED = "fetch_peer_processed"
    FETCH_OWN_PROCESSED = "fetch_own_processed"
    SEND_OWN_PROCESSED_TO_PEER = "send_own_processed_to_peer"
    RECEIVE_PEER_FINAL = "receive_peer_final"
    INTERSECT = "intersect"
    AGGREGATE = "aggregate"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RunFailure:
    """Structured failure of a protocol run."""

    kind: str
    reason: str
    state: RunState

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "failed",
            "kind": self.kind,
            "reason": self.reason,
            "state": self.state.value,
        }


RunOutcome = IntersectionResult | RunFailure


class ProtocolRun:
    """One execution of the protocol from the initiator's side."""

    def __init__(
        self,
        session: ParticipantSession,
        peer: PeerClient,
        relay: RelayClient | None = None,
        *,
        session_id: str | None = None,
        relay_wait_timeout: float = 30.0,
        relay_poll_interval: float = 0.25,
    ):
        self.session = session
        self.peer = peer
        self.relay = relay
        self.session_id = session_id or uuid.uuid4().hex
        self.relay_wait_timeout = relay_wait_timeout
        self.relay_poll_interval = relay_poll_interval
        self.state = RunState.START
        self.history: list[RunState] = [RunState.START]

    @property
    def mode(self) -> str:
        return "relay" if self.relay is not None else "two-party"

    def _enter(self, state: RunState) -> None:
        logger.debug(f"Run {self.session_id}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    async def _offload(self, fn: Callable[..., T], *args: Any) -> T:
        """Run CPU-bound exponentiation off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def execute(self) -> RunOutcome:
        logger.info(
            f"Run {self.session_id} started by {self.session.label} ({self.mode})"
        )
        try:
            if self.relay is None:
                result = await self._run_two_party()
            else:
                result = await self._run_with_relay(self.relay)
        except PSIError as e:
            failed_at = self.state
            self._enter(RunState.FAILED)
            logger.warning(
                f"Run {self.session_id} failed in {failed_at.value}: {e.kind}: {e.reason}"
            )
            return RunFailure(kind=e.kind, reason=e.reason, state=failed_at)
        self._enter(RunState.DONE)
        logger.info(f"Run {self.session_id} done, {result.size} common identifiers")
        return result

    def _check_own_final(self, own_final: BlindedSet, expected: BlindedSet) -> None:
        if own_final.keys() != expected.keys():
            raise DataError("Final set returned by peer does not cover our handles")

    async def _finish(self, own_final: BlindedSet, peer_final: BlindedSet) -> IntersectionResult:
        self._enter(RunState.INTERSECT)
        matched = self.session.intersect(own_final, peer_final)
        self._enter(RunState.AGGREGATE)
        return self.session.summarize(matched)

    async def _run_two_party(self) -> IntersectionResult:
        self._enter(RunState.LOCAL_BLIND)
        own = await self._offload(lambda: self.session.blinded)

        self._enter(RunState.EXCHANGE_BLINDED)
        peer_blinded = await self.peer.fetch_blinded()
        own_final = await self.peer.re_exponentiate(own)
        self._check_own_final(own_final, own)

        self._enter(RunState.LOCAL_RE_EXPONENTIATE)
        peer_final = await self._offload(self.session.re_exponentiate, peer_blinded)

        return await self._finish(own_final, peer_final)

    async def _poll_relay(self, relay: RelayClient, which: Which) -> BlindedSet:
        """Fetch from the relay until the session is ready or the wait expires."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.relay_wait_timeout
        while True:
            result = await relay.fetch_processed(self.session_id, self.session.label, which)
            if result:
                return result
            if loop.time() >= deadline:
                raise NetworkError(
                    f"Timed out after {self.relay_wait_timeout}s waiting for the relay "
                    f"to serve the {which} set of session {self.session_id}",
                    endpoint=relay.endpoint,
                )
            await asyncio.sleep(self.relay_poll_interval)

    async def _run_with_relay(self, relay: RelayClient) -> IntersectionResult:
        self._enter(RunState.LOCAL_BLIND)
        own = await self._offload(lambda: self.session.blinded)

        self._enter(RunState.UPLOAD_TO_RELAY)
        try:
            await relay.upload(self.session_id, self.session.label, own)
            return await self._exchange_through_relay(relay, own)
        finally:
            await self._cleanup(relay)

    async def _exchange_through_relay(
        self, relay: RelayClient, own: BlindedSet
    ) -> IntersectionResult:
        peer_count = await self.peer.request_relay_upload(self.session_id)

        if not own or peer_count == 0:
            # The relay serves empty sets only while waiting, so an empty
            # input on either side must not be polled for.
            return await self._finish({}, {})

        self._enter(RunState.FETCH_PEER_PROCESSED)
        peer_processed = await self._poll_relay(relay, "peer")

        self._enter(RunState.FETCH_OWN_PROCESSED)
        own_processed = await self._poll_relay(relay, "own")
        self._check_own_final(own_processed, own)

        self._enter(RunState.SEND_OWN_PROCESSED_TO_PEER)
        own_final = await self.peer.re_exponentiate(own_processed)

        self._enter(RunState.RECEIVE_PEER_FINAL)
        self._check_own_final(own_final, own)

        self._enter(RunState.LOCAL_RE_EXPONENTIATE)
        peer_final = await self._offload(self.session.re_exponentiate, peer_processed)

        return await self._finish(own_final, peer_final)

    async def _cleanup(self, relay: RelayClient) -> None:
        try:
            await relay.delete_session(self.session_id)
        except PSIError as e:
            # Must not mask the outcome of the run
            logger.warning(f"Could not delete relay session {self.session_id}: {e.reason}")


async def run_protocol(
    session: ParticipantSession,
    peer: PeerClient,
    relay: RelayClient | None = None,
    **kwargs: Any,
) -> RunOutcome:
    """Execute one protocol run and return its result or failure."""
    return await ProtocolRun(session, peer, relay, **kwargs).execute()


__all__ = ["ProtocolRun", "RunFailure", "RunOutcome", "RunState", "run_protocol"]
