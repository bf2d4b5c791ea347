"""Telemetry middleware for request instrumentation."""

from __future__ import annotations

import time
from typing import Any

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from transcription_relay.telemetry import observe_request


class TelemetryMiddleware(BaseHTTPMiddleware):
    """Collect request metrics for Prometheus."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:  # pragma: no cover - defensive
            observe_request(
                request.method,
                self._resolve_route(request),
                500,
                time.perf_counter() - start_time,
            )
            raise

        observe_request(
            request.method,
            self._resolve_route(request),
            response.status_code,
            time.perf_counter() - start_time,
        )
        return response

    @staticmethod
    def _resolve_route(request: Request) -> str:
        """Return the matched route pattern, or ``unmatched`` for unknown paths."""

        scope_route: Any = request.scope.get("route")
        path = getattr(scope_route, "path", None)
        return path or "unmatched"
