"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from transcription_relay.services.request_gate import (
    Authorizer,
    RequestGate,
    allow_all,
    build_request_gate,
)
from transcription_relay.services.transcribe import (
    TranscriptionRelay,
    get_transcription_relay,
)


def get_authorizer() -> Authorizer:
    """Return the caller authorization capability.

    Every caller is allowed until subscription verification is wired in;
    override this dependency to plug a real check.
    """

    return allow_all


AuthorizerDep = Annotated[Authorizer, Depends(get_authorizer)]


def get_request_gate(authorizer: AuthorizerDep) -> RequestGate:
    """Build the request gate around the configured authorizer."""

    return build_request_gate(authorizer)


RequestGateDep = Annotated[RequestGate, Depends(get_request_gate)]
TranscriptionRelayDep = Annotated[TranscriptionRelay, Depends(get_transcription_relay)]


__all__ = [
    "get_authorizer",
    "get_request_gate",
    "get_transcription_relay",
    "AuthorizerDep",
    "RequestGateDep",
    "TranscriptionRelayDep",
]
