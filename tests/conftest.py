"""Shared fixtures: a recording fake of the transcription API and body builders."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Any, Callable, Iterable

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from transcription_relay.services.transcribe import TranscriptionRelay  # noqa: E402
from transcription_relay.services.upload_decoder import (  # noqa: E402
    ParsedUpload,
    UploadDecoder,
    boundary_from_content_type,
)

BOUNDARY = "----RelayTestBoundary7MA4YWxkTrZu0gW"
MULTIPART_CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"

UpstreamHandler = Callable[[httpx.Request], Any]


class FakeUpstream:
    """Callable used with ``httpx.MockTransport`` that records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: UpstreamHandler = lambda request: httpx.Response(
            200, json={"text": "Test transcript"}
        )

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if isinstance(result, httpx.Response):
            return result
        return await result

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def parsed(self, index: int = -1) -> ParsedUpload:
        """Decode the multipart body the relay sent upstream."""

        request = self.requests[index]
        decoder = UploadDecoder(boundary_from_content_type(request.headers["content-type"]))
        decoder.feed(request.content)
        return decoder.close()


def build_multipart(
    fields: dict[str, str] | None = None,
    files: Iterable[tuple[str, str | None, str | None, bytes]] = (),
    *,
    boundary: str = BOUNDARY,
    closed: bool = True,
) -> bytes:
    """Encode form fields and ``(name, filename, content_type, data)`` files."""

    chunks: list[bytes] = []
    for name, value in (fields or {}).items():
        chunks.append(
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
            f"{value}\r\n".encode("utf-8")
        )
    for name, filename, content_type, data in files:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        header = f"--{boundary}\r\nContent-Disposition: {disposition}\r\n"
        if content_type:
            header += f"Content-Type: {content_type}\r\n"
        chunks.append(header.encode("utf-8") + b"\r\n" + data + b"\r\n")
    if closed:
        chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_relay(upstream: FakeUpstream) -> Callable[..., TranscriptionRelay]:
    """Build relays wired to the fake upstream with a test credential."""

    def _make(credential: str | None = "sk-test", **overrides: Any) -> TranscriptionRelay:
        options: dict[str, Any] = {"timeout_seconds": 5.0}
        options.update(overrides)
        return TranscriptionRelay(
            lambda: credential,
            transport=httpx.MockTransport(upstream),
            **options,
        )

    return _make
