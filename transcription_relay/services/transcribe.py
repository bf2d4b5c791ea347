"""OpenAI transcription relay using the HTTP API."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from transcription_relay.config.settings import settings
from transcription_relay.errors import (
    ConfigurationError,
    MissingAudioError,
    UnclassifiedError,
    UpstreamError,
    UpstreamTimeoutError,
)
from transcription_relay.services.upload_decoder import ParsedUpload
from transcription_relay.telemetry import observe_upstream_call

logger = logging.getLogger(__name__)

CredentialSource = Callable[[], str | None]
"""Zero-argument callable yielding the upstream API key, if configured."""

TRANSCRIPTIONS_PATH = "/audio/transcriptions"
UPSTREAM_FILE_FIELD = "file"


@dataclass(frozen=True)
class UpstreamRequest:
    """Multipart payload forwarded to the transcription API."""

    filename: str
    mime_type: str
    data: bytes
    model: str
    prompt: str | None = None

    def form_fields(self) -> dict[str, str]:
        fields = {"model": self.model}
        if self.prompt:
            fields["prompt"] = self.prompt
        return fields

    def files(self) -> dict[str, tuple[str, bytes, str]]:
        return {UPSTREAM_FILE_FIELD: (self.filename, self.data, self.mime_type)}


@dataclass(frozen=True)
class TranscriptionResult:
    """Structured transcription outcome returned to controllers."""

    text: str


def settings_credential_source() -> str | None:
    """Read the API key from the process-wide settings."""

    secret = settings.openai.api_key
    if secret is None:
        return None
    return secret.get_secret_value() or None


class TranscriptionRelay:
    """Forward decoded uploads to the transcription API and map the outcome."""

    def __init__(
        self,
        credentials: CredentialSource,
        *,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = "whisper-1",
        timeout_seconds: float = 120.0,
        default_filename: str = "audio.m4a",
        default_mime_type: str = "audio/m4a",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url
        self._default_model = default_model
        self._timeout_seconds = timeout_seconds
        self._default_filename = default_filename
        self._default_mime_type = default_mime_type
        self._transport = transport

    def require_credential(self) -> str:
        """Return the API key or fail before any request work is done."""

        credential = self._credentials()
        if not credential:
            logger.error("OpenAI API key not configured")
            raise ConfigurationError()
        return credential

    def build_request(self, upload: ParsedUpload) -> UpstreamRequest:
        """Apply defaults to the decoded upload."""

        audio = upload.audio
        if audio is None or not audio.data:
            raise MissingAudioError()

        return UpstreamRequest(
            filename=audio.filename or self._default_filename,
            mime_type=audio.mime_type or self._default_mime_type,
            data=audio.data,
            model=upload.fields.get("model") or self._default_model,
            prompt=upload.fields.get("prompt") or None,
        )

    async def transcribe(self, upload: ParsedUpload, credential: str) -> TranscriptionResult:
        """Call the upstream API once and return its transcription text."""

        request = self.build_request(upload)
        start_time = time.perf_counter()
        outcome = "error"

        try:
            response = await asyncio.wait_for(
                self._post(request, credential),
                timeout=self._timeout_seconds,
            )
            if not response.is_success:
                outcome = "upstream_error"
                message = _upstream_error_message(response)
                logger.error(
                    "Transcription API error status=%s message=%s",
                    response.status_code,
                    message or "-",
                )
                raise UpstreamError(response.status_code, message)

            text = _transcription_text(response)
            outcome = "success"
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            outcome = "timeout"
            logger.error("Transcription API call exceeded %.1fs", self._timeout_seconds)
            raise UpstreamTimeoutError() from exc
        except httpx.HTTPError as exc:
            logger.error("Transcription API call failed: %r", exc)
            raise UnclassifiedError() from exc
        finally:
            observe_upstream_call(outcome, time.perf_counter() - start_time)

        logger.info(
            "Transcription complete model=%s bytes=%d chars=%d",
            request.model,
            len(request.data),
            len(text),
        )
        return TranscriptionResult(text=text)

    async def _post(self, request: UpstreamRequest, credential: str) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            return await client.post(
                TRANSCRIPTIONS_PATH,
                headers={"Authorization": f"Bearer {credential}"},
                data=request.form_fields(),
                files=request.files(),
            )


def _upstream_error_message(response: httpx.Response) -> str | None:
    """Extract ``error.message`` from an upstream error body when present."""

    try:
        payload: Any = response.json()
    except ValueError:
        return None

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    return None


def _transcription_text(response: httpx.Response) -> str:
    try:
        payload: Any = response.json()
    except ValueError as exc:
        logger.error("Transcription API returned a non-JSON body")
        raise UnclassifiedError() from exc

    text = payload.get("text") if isinstance(payload, dict) else None
    if not isinstance(text, str):
        logger.error("Transcription API response is missing the text field")
        raise UnclassifiedError()
    return text


def build_transcription_relay(
    credentials: CredentialSource = settings_credential_source,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TranscriptionRelay:
    """Create a relay configured from the global settings."""

    return TranscriptionRelay(
        credentials,
        base_url=settings.openai.base_url,
        default_model=settings.openai.default_model,
        timeout_seconds=settings.openai.timeout_seconds,
        default_filename=settings.relay.default_filename,
        default_mime_type=settings.relay.default_mime_type,
        transport=transport,
    )


def get_transcription_relay() -> TranscriptionRelay:
    """Return the process-wide transcription relay."""
    return _DEFAULT_RELAY


_DEFAULT_RELAY = build_transcription_relay()


__all__ = [
    "CredentialSource",
    "TranscriptionRelay",
    "TranscriptionResult",
    "UpstreamRequest",
    "build_transcription_relay",
    "get_transcription_relay",
    "settings_credential_source",
]
