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

"""Shared data and in-process wiring for DH-PSI tests."""

from __future__ import annotations

import httpx

from dhpsi.crypto.group import MODP_1024
from dhpsi.crypto.secret import Secret
from dhpsi.psi.types import Record
from dhpsi.runtime.client import PeerClient, RelayClient
from dhpsi.runtime.relay import ObliviousRelay
from dhpsi.runtime.server import create_participant_app, create_relay_app
from dhpsi.runtime.session import ParticipantSession

# Fixed exponents so that failures are reproducible
SECRET_A = 0x1F2E3D4C5B6A79880123456789ABCDEF
SECRET_B = 0x7766554433221100FFEEDDCCBBAA9988
SECRET_K = 0x0BADC0FFEE0DDF00D15EA5EDEADBEEF1

CLINIC_A = [
    {"id": "P1", "age": 34},
    {"id": "P2", "age": 51},
    {"id": "P3", "age": 27},
    {"id": "P4", "age": 63},
    {"id": "P5", "age": 45},
]

CLINIC_B = [
    {"id": "P3", "age": 27},
    {"id": "P5", "age": 45},
    {"id": "P6", "age": 38},
    {"id": "P7", "age": 70},
    {"id": "P1", "age": 34},
]


def to_records(rows: list[dict]) -> list[Record]:
    return [Record(id=r["id"], attribute=float(r["age"])) for r in rows]


def make_session(label: str, rows: list[dict], secret: int) -> ParticipantSession:
    return ParticipantSession(label, to_records(rows), MODP_1024, Secret(secret))


def wire_participants(
    session_a: ParticipantSession,
    session_b: ParticipantSession,
    relay: ObliviousRelay | None = None,
    *,
    relay_wait_timeout: float = 2.0,
):
    """Build A and B apps talking to each other in-process.

    A's peer client and both relay clients use `httpx.ASGITransport`, so no
    sockets are opened. Returns (app_a, app_b).
    """
    relay_a = relay_b = None
    if relay is not None:
        relay_app = create_relay_app(relay)
        relay_a = RelayClient(
            "relay:4000", group=relay.group, transport=httpx.ASGITransport(app=relay_app)
        )
        relay_b = RelayClient(
            "relay:4000", group=relay.group, transport=httpx.ASGITransport(app=relay_app)
        )

    app_b = create_participant_app(session_b, None, relay_b)
    peer_of_a = PeerClient(
        "participant-b:3002",
        group=session_a.group,
        transport=httpx.ASGITransport(app=app_b),
    )
    app_a = create_participant_app(
        session_a,
        peer_of_a,
        relay_a,
        relay_wait_timeout=relay_wait_timeout,
        relay_poll_interval=0.01,
    )
    return app_a, app_b
