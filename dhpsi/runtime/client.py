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
HTTP clients for the peer and the relay.

Each call opens a short-lived `httpx.AsyncClient` bound to the running event
loop, with an explicit timeout. Every transport failure, timeout or
non-success status is translated into `NetworkError`; a response body that
cannot be decoded becomes `DataError`.
"""

from __future__ import annotations

from typing import Any

import httpx

from dhpsi.crypto.group import DEFAULT_GROUP, GroupParameters
from dhpsi.exceptions import DataError, NetworkError
from dhpsi.logging_config import get_logger
from dhpsi.psi.types import BlindedSet
from dhpsi.runtime import codec
from dhpsi.runtime.config import normalize_endpoint
from dhpsi.runtime.relay import Which

logger = get_logger(__name__)


class _HttpClientBase:
    """Shared request plumbing."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        group: GroupParameters = DEFAULT_GROUP,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            endpoint: Base URL of the remote service; `http://` is assumed
                when no scheme is given.
            timeout: Timeout in seconds applied to every request.
            group: Group parameters used to validate received values.
            transport: Optional transport, e.g. `httpx.ASGITransport` in tests.
        """
        self.endpoint = normalize_endpoint(endpoint)
        self.timeout = timeout
        self.group = group
        self._transport = transport

    def _open(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.endpoint, timeout=self.timeout, transport=self._transport
        )

    def _network_error(self, action: str, e: Exception) -> NetworkError:
        if isinstance(e, httpx.TimeoutException):
            detail = f"timed out after {self.timeout}s"
        elif isinstance(e, httpx.HTTPStatusError):
            detail = f"HTTP {e.response.status_code}"
            try:
                body = e.response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("detail"):
                detail = f"{detail}: {body['detail']}"
        else:
            detail = str(e) or type(e).__name__
        return NetworkError(
            f"Failed to {action} at {self.endpoint}: {detail}", endpoint=self.endpoint
        )

    async def _request(
        self,
        action: str,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            async with self._open() as client:
                response = await client.request(method, url, json=json, params=params)
                response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            logger.warning(f"Request to {self.endpoint}{url} failed: {type(e).__name__}")
            raise self._network_error(action, e) from e
        try:
            return response.json()
        except ValueError as e:
            raise DataError(f"Failed to {action}: response is not valid JSON") from e

    async def health(self) -> dict[str, Any]:
        """Fetch the remote /health document."""
        body = await self._request("check health", "GET", "/health")
        if not isinstance(body, dict):
            raise DataError("Health response must be an object")
        return body


class PeerClient(_HttpClientBase):
    """Client for the counterpart participant."""

    async def fetch_blinded(self) -> BlindedSet:
        """GET /blinded: the peer's identifiers blinded with its secret."""
        payload = await self._request("fetch blinded set", "GET", "/blinded")
        return codec.from_json(payload, self.group)

    async def re_exponentiate(self, blinded: BlindedSet) -> BlindedSet:
        """POST /reexp: have the peer apply its secret to our values."""
        payload = await self._request(
            "request re-exponentiation", "POST", "/reexp", json=codec.to_json(blinded)
        )
        result = codec.from_json(payload, self.group)
        if result.keys() != blinded.keys():
            raise DataError("Peer returned a re-exponentiated set with different ids")
        return result

    async def request_relay_upload(self, session_id: str) -> int:
        """POST /relay-upload: ask the peer to upload its set to the relay."""
        body = await self._request(
            "trigger peer relay upload",
            "POST",
            "/relay-upload",
            json={"sessionId": session_id},
        )
        if not isinstance(body, dict) or not isinstance(body.get("count"), int):
            raise DataError("Malformed relay-upload acknowledgement from peer")
        return int(body["count"])


class RelayClient(_HttpClientBase):
    """Client for the oblivious relay."""

    async def upload(self, session_id: str, label: str, blinded: BlindedSet) -> None:
        body = await self._request(
            "upload to relay",
            "POST",
            "/upload",
            json={
                "sessionId": session_id,
                "participantLabel": label,
                "items": codec.to_json(blinded),
            },
        )
        if not isinstance(body, dict) or body.get("ok") is not True:
            raise DataError("Relay did not acknowledge the upload")

    async def fetch_processed(self, session_id: str, label: str, which: Which) -> BlindedSet:
        """GET /processed. An empty result means the session is not ready yet."""
        payload = await self._request(
            f"fetch {which} processed set",
            "GET",
            "/processed",
            params={"sessionId": session_id, "participantLabel": label, "type": which},
        )
        return codec.from_json(payload, self.group)

    async def delete_session(self, session_id: str) -> None:
        await self._request("delete relay session", "DELETE", f"/sessions/{session_id}")


__all__ = ["PeerClient", "RelayClient"]
