"""Attach the allow-origin header to every response."""

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp


class AllowOriginMiddleware(BaseHTTPMiddleware):
    """Set ``Access-Control-Allow-Origin`` unconditionally."""

    def __init__(self, app: ASGIApp, allow_origin: str = "*") -> None:
        super().__init__(app)
        self._allow_origin = allow_origin

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = self._allow_origin
        return response
