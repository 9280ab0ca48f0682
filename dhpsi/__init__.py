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

"""Diffie-Hellman private set intersection.

Two participants learn the identifiers they share, the size of the overlap
and an aggregate over a numeric attribute of the shared records, without
revealing identifiers outside the overlap. An optional oblivious relay adds
a third blinding exponent without learning any identifier.

    import dhpsi

    a = dhpsi.ParticipantSession("A", records_a)
    b = dhpsi.ParticipantSession("B", records_b)
"""

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("dhpsi")
except PackageNotFoundError:
    # Fallback for development checkouts that are not installed
    __version__ = "0.0.0-dev"

from dhpsi.crypto import (
    DEFAULT_GROUP,
    GroupParameters,
    Secret,
    generate_secret,
    get_group,
    hash_identifier,
)
from dhpsi.exceptions import (
    ConfigurationError,
    DataError,
    NetworkError,
    PSIError,
)
from dhpsi.logging_config import disable_logging, get_logger, setup_logging
from dhpsi.psi import (
    BlindedSet,
    IntersectionResult,
    Record,
    aggregate,
    compute_blinded,
    intersect,
    re_exponentiate,
)
from dhpsi.runtime import (
    ObliviousRelay,
    ParticipantSession,
    PeerClient,
    RelayClient,
    RunFailure,
    RunState,
    run_protocol,
)

__all__ = [
    "DEFAULT_GROUP",
    "BlindedSet",
    "ConfigurationError",
    "DataError",
    "GroupParameters",
    "IntersectionResult",
    "NetworkError",
    "ObliviousRelay",
    "PSIError",
    "ParticipantSession",
    "PeerClient",
    "Record",
    "RelayClient",
    "RunFailure",
    "RunState",
    "Secret",
    "__version__",
    "aggregate",
    "compute_blinded",
    "disable_logging",
    "generate_secret",
    "get_group",
    "get_logger",
    "hash_identifier",
    "intersect",
    "re_exponentiate",
    "run_protocol",
    "setup_logging",
]
