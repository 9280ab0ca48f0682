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
Runtime components for dhpsi.

This module contains:
- ParticipantSession: immutable per-participant protocol context
- ObliviousRelay: session-keyed relay store
- PeerClient / RelayClient: HTTP clients
- ProtocolRun: the two-party and relay protocol runs
- create_participant_app / create_relay_app: FastAPI app factories
"""

from dhpsi.runtime.client import PeerClient, RelayClient
from dhpsi.runtime.protocol import (
    ProtocolRun,
    RunFailure,
    RunOutcome,
    RunState,
    run_protocol,
)
from dhpsi.runtime.relay import ObliviousRelay
from dhpsi.runtime.server import create_participant_app, create_relay_app
from dhpsi.runtime.session import ParticipantSession

__all__ = [
    "ObliviousRelay",
    "ParticipantSession",
    "PeerClient",
    "ProtocolRun",
    "RelayClient",
    "RunFailure",
    "RunOutcome",
    "RunState",
    "create_participant_app",
    "create_relay_app",
    "run_protocol",
]
