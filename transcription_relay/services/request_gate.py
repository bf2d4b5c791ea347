"""Request gate: method validation, CORS preflight and caller authorization."""

from __future__ import annotations

import enum
import logging
from typing import Awaitable, Callable

from transcription_relay.config.settings import settings
from transcription_relay.errors import AuthorizationError

logger = logging.getLogger(__name__)

Authorizer = Callable[[str | None], Awaitable[bool]]
"""Async capability deciding whether a caller may use the relay."""

PREFLIGHT_METHOD = "OPTIONS"
SUBMISSION_METHOD = "POST"


class GateDecision(enum.Enum):
    PREFLIGHT = "preflight"
    REJECT = "reject"
    PROCEED = "proceed"


async def allow_all(caller_identity: str | None) -> bool:
    """Default authorizer: every caller is allowed."""

    return True


class RequestGate:
    """Decide what happens to a request before its body is read."""

    def __init__(
        self,
        authorizer: Authorizer = allow_all,
        *,
        allow_origin: str = "*",
        allow_methods: str = SUBMISSION_METHOD,
        allow_headers: str = "Content-Type",
        max_age: int = 3600,
    ) -> None:
        self._authorizer = authorizer
        self._allow_origin = allow_origin
        self._allow_methods = allow_methods
        self._allow_headers = allow_headers
        self._max_age = max_age

    @staticmethod
    def evaluate(method: str) -> GateDecision:
        normalized = (method or "").upper()
        if normalized == PREFLIGHT_METHOD:
            return GateDecision.PREFLIGHT
        if normalized == SUBMISSION_METHOD:
            return GateDecision.PROCEED
        return GateDecision.REJECT

    def origin_headers(self) -> dict[str, str]:
        """Headers attached to every response."""

        return {"Access-Control-Allow-Origin": self._allow_origin}

    def preflight_headers(self) -> dict[str, str]:
        """Headers answering a CORS preflight request."""

        return {
            **self.origin_headers(),
            "Access-Control-Allow-Methods": self._allow_methods,
            "Access-Control-Allow-Headers": self._allow_headers,
            "Access-Control-Max-Age": str(self._max_age),
        }

    async def authorize(self, caller_identity: str | None) -> None:
        """Raise ``AuthorizationError`` unless the authorizer admits the caller."""

        allowed = await self._authorizer(caller_identity)
        if not allowed:
            logger.info("Caller rejected by authorizer caller=%s", caller_identity or "-")
            raise AuthorizationError()


def build_request_gate(authorizer: Authorizer = allow_all) -> RequestGate:
    """Create a gate configured from the global settings."""

    return RequestGate(
        authorizer,
        allow_origin=settings.cors_allow_origin,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )


__all__ = [
    "Authorizer",
    "GateDecision",
    "RequestGate",
    "allow_all",
    "build_request_gate",
]
