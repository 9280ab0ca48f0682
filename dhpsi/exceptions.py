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

"""Error taxonomy shared by the protocol core and the runtime.

Protocol failures derive from `PSIError` and carry a stable `kind` string
that is reported to callers in run failure results. The HTTP layer adds
`InvalidRequestError` and `ResourceNotFound` for request validation.

There is intentionally no "relay not ready" exception: a relay queried
before both uploads exist answers with an empty list, and callers retry.
"""

from __future__ import annotations


class PSIError(Exception):
    """Base exception for protocol run failures."""

    kind: str = "internal"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ConfigurationError(PSIError):
    """A required setting (peer address, dataset, group) is absent or invalid."""

    kind = "configuration"


class NetworkError(PSIError):
    """Peer or relay unreachable, non-success response, or timeout."""

    kind = "network"

    def __init__(self, reason: str, *, endpoint: str | None = None):
        self.endpoint = endpoint
        super().__init__(reason)


class DataError(PSIError):
    """A received value or uploaded structure is malformed."""

    kind = "data"


class InvalidRequestError(Exception):
    """Raised by request handlers for malformed client input (HTTP 400)."""


class ResourceNotFound(Exception):
    """Raised by request handlers for unknown resources (HTTP 404)."""


__all__ = [
    "ConfigurationError",
    "DataError",
    "InvalidRequestError",
    "NetworkError",
    "PSIError",
    "ResourceNotFound",
]
