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
HTTP servers for participants and the relay.

Both are FastAPI applications built by factories so that several can live in
one process (tests wire them together with `httpx.ASGITransport`).

Participant endpoints:
    GET  /health        liveness, label and group fingerprint
    GET  /blinded       own identifiers blinded with own secret
    POST /reexp         apply own secret to a received blinded set
    POST /relay-upload  upload own blinded set to the relay for a session
    GET  /run           execute the protocol against the configured peer

Relay endpoints:
    GET    /health
    POST   /upload                  store a participant's blinded set
    GET    /processed               own or peer set raised to the relay secret
    GET    /sessions                list session ids
    DELETE /sessions/{session_id}   drop a session's uploads
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dhpsi.exceptions import (
    ConfigurationError,
    DataError,
    InvalidRequestError,
    NetworkError,
    ResourceNotFound,
)
from dhpsi.logging_config import get_logger
from dhpsi.runtime import codec
from dhpsi.runtime.client import PeerClient, RelayClient
from dhpsi.runtime.codec import BlindedItem, RelayUploadRequest, UploadRequest
from dhpsi.runtime.protocol import RunFailure, RunState, run_protocol
from dhpsi.runtime.relay import ObliviousRelay
from dhpsi.runtime.session import ParticipantSession

logger = get_logger(__name__)

_NAME_RE = re.compile(r"^[a-zA-Z0-9._-]+$")

# HTTP status of a failed /run, by failure kind
FAILURE_STATUS = {
    "network": 502,
    "data": 422,
    "configuration": 500,
}


def validate_name(name: str, name_type: str) -> None:
    """Validate that a name is safe for use as a key and in URL paths.

    Raises:
        InvalidRequestError: If the name is empty or contains invalid characters
    """
    if not name:
        raise InvalidRequestError(f"{name_type} cannot be empty")
    if not _NAME_RE.match(name):
        raise InvalidRequestError(
            f"{name_type} can only contain letters, numbers, dots, hyphens, and underscores"
        )


def resource_not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Resource not found at {request.url.path}: {exc}")
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def invalid_request_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Invalid request at {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def data_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Malformed data at {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422, content={"detail": str(exc), "error_type": "DataError"}
    )


def network_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning(f"Upstream failure at {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502, content={"detail": str(exc), "error_type": "NetworkError"}
    )


def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for better error reporting."""
    logger.error(f"Unhandled exception at {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Internal server error: {exc!s}",
            "error_type": type(exc).__name__,
            "path": str(request.url.path),
        },
    )


def _configure_app(app: FastAPI, cors_origins: Sequence[str]) -> None:
    app.add_exception_handler(ResourceNotFound, resource_not_found_handler)
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
    app.add_exception_handler(DataError, data_error_handler)
    app.add_exception_handler(NetworkError, network_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["GET", "POST", "DELETE"],
            allow_headers=["*"],
        )


def create_participant_app(
    session: ParticipantSession,
    peer: PeerClient | None = None,
    relay: RelayClient | None = None,
    *,
    relay_wait_timeout: float = 30.0,
    relay_poll_interval: float = 0.25,
    cors_origins: Sequence[str] = (),
) -> FastAPI:
    """Create the FastAPI app of a participant.

    Args:
        session: The participant's protocol context.
        peer: Client for the counterpart. Required to serve /run.
        relay: Client for the relay. When set, /run uses the relay variant.
        relay_wait_timeout: Seconds to wait for relay data before failing.
        relay_poll_interval: Seconds between relay polls.
        cors_origins: Origins allowed to call the app from a browser.

    Returns:
        FastAPI application instance
    """
    app = FastAPI(title=f"DH-PSI participant {session.label}")
    _configure_app(app, cors_origins)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "ok",
            "role": "participant",
            "label": session.label,
            "group": session.group.fingerprint,
        }

    @app.get("/blinded")
    def get_blinded() -> list[dict[str, str]]:
        """Own identifiers blinded with own secret."""
        blinded = session.blinded
        logger.info(f"Serving {len(blinded)} blinded values")
        return codec.to_json(blinded)

    @app.post("/reexp")
    def post_reexp(items: list[BlindedItem]) -> list[dict[str, str]]:
        """Raise a received blinded set to own secret."""
        values = codec.decode_items(items, session.group)
        logger.info(f"Re-exponentiating {len(values)} received values")
        return codec.to_json(session.re_exponentiate(values))

    @app.post("/relay-upload")
    async def post_relay_upload(request: RelayUploadRequest) -> dict[str, Any]:
        """Upload own blinded set to the relay under the given session id."""
        if relay is None:
            raise InvalidRequestError(f"Participant {session.label} has no relay configured")
        validate_name(request.session_id, "session id")
        loop = asyncio.get_running_loop()
        blinded = await loop.run_in_executor(None, lambda: session.blinded)
        await relay.upload(request.session_id, session.label, blinded)
        return {"ok": True, "count": len(blinded)}

    @app.get("/run")
    async def run() -> JSONResponse:
        """Execute the protocol and return the intersection result."""
        if peer is None:
            outcome = RunFailure(
                kind=ConfigurationError.kind,
                reason="No peer address configured",
                state=RunState.START,
            )
        else:
            outcome = await run_protocol(
                session,
                peer,
                relay,
                relay_wait_timeout=relay_wait_timeout,
                relay_poll_interval=relay_poll_interval,
            )
        if isinstance(outcome, RunFailure):
            return JSONResponse(
                status_code=FAILURE_STATUS.get(outcome.kind, 500),
                content=outcome.to_dict(),
            )
        return JSONResponse(status_code=200, content=outcome.to_dict())

    return app


def create_relay_app(
    relay: ObliviousRelay,
    *,
    cors_origins: Sequence[str] = (),
) -> FastAPI:
    """Create the FastAPI app of the oblivious relay."""
    app = FastAPI(title="DH-PSI oblivious relay")
    _configure_app(app, cors_origins)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "role": "relay", "group": relay.group.fingerprint}

    @app.post("/upload")
    def upload(request: UploadRequest) -> dict[str, bool]:
        """Store a participant's blinded set for a session."""
        validate_name(request.session_id, "session id")
        validate_name(request.participant_label, "participant label")
        try:
            blinded = codec.decode_items(request.items, relay.group)
        except DataError as e:
            raise InvalidRequestError(f"Invalid upload: {e.reason}") from e
        relay.upload(request.session_id, request.participant_label, blinded)
        return {"ok": True}

    @app.get("/processed")
    def processed(
        participant_label: str = Query(alias="participantLabel"),
        which: str = Query(default="peer", alias="type"),
        session_id: str = Query(default=codec.DEFAULT_SESSION_ID, alias="sessionId"),
    ) -> list[dict[str, str]]:
        """Own or counterpart set raised to the relay secret; empty if not ready."""
        validate_name(session_id, "session id")
        validate_name(participant_label, "participant label")
        if which not in ("own", "peer"):
            raise InvalidRequestError(f"type must be 'own' or 'peer', got '{which}'")
        result = relay.get_processed(session_id, participant_label, which)  # type: ignore[arg-type]
        return codec.to_json(result)

    @app.get("/sessions")
    def list_sessions() -> dict[str, list[str]]:
        """List all session ids."""
        return {"sessions": relay.list_sessions()}

    @app.delete("/sessions/{session_id}")
    def delete_session(session_id: str) -> dict[str, str]:
        """Delete a session and all its uploads."""
        relay.delete_session(session_id)
        return {"message": f"Session '{session_id}' deleted successfully"}

    return app


__all__ = [
    "FAILURE_STATUS",
    "create_participant_app",
    "create_relay_app",
    "validate_name",
]
