"""Streaming multipart/form-data decoder for audio uploads.

The body is fed chunk by chunk into ``python_multipart``'s low-level parser.
Text parts become string fields (last value wins) and the first file part is
buffered in memory as the audio asset. Later file parts are drained without
being kept. Any preamble before the first boundary is skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AsyncIterable

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from transcription_relay.errors import DecodeError, UploadTooLargeError

logger = logging.getLogger(__name__)

_FIELD = "field"
_FILE = "file"
_DISCARD = "discard"


@dataclass(frozen=True)
class AudioAsset:
    """The single audio file captured from an upload."""

    filename: str | None
    mime_type: str | None
    data: bytes


@dataclass
class ParsedUpload:
    """Text fields plus at most one audio asset."""

    fields: dict[str, str] = field(default_factory=dict)
    audio: AudioAsset | None = None

    @property
    def has_audio(self) -> bool:
        return self.audio is not None and len(self.audio.data) > 0


def boundary_from_content_type(content_type: str | None) -> bytes:
    """Return the multipart boundary declared by a ``Content-Type`` header."""

    if not content_type:
        raise DecodeError("Missing Content-Type header")

    media_type, options = parse_options_header(content_type)
    media_type = media_type.strip().lower()
    if media_type != b"multipart/form-data":
        raise DecodeError(f"Unsupported content type: {media_type.decode('latin-1')}")

    boundary = options.get(b"boundary")
    if not boundary:
        raise DecodeError("Missing multipart boundary")
    return boundary


class UploadDecoder:
    """Incrementally assemble a ``ParsedUpload`` from raw body chunks."""

    def __init__(self, boundary: bytes, *, max_bytes: int | None = None) -> None:
        self._max_bytes = max_bytes
        self._upload = ParsedUpload()
        # The start of the body counts as a line break, so a delimiter on
        # the first line matches without a preamble.
        self._delimiter = b"\r\n--" + boundary
        self._preamble: bytearray | None = bytearray(b"\r\n")
        self._finished = False
        self._file_claimed = False

        self._header_field = bytearray()
        self._header_value = bytearray()
        self._headers: dict[bytes, bytes] = {}

        self._part_kind = _DISCARD
        self._part_name = ""
        self._part_filename: str | None = None
        self._part_mime_type: str | None = None
        self._part_buffer = bytearray()

        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_end": self._on_end,
            },
        )

    def feed(self, chunk: bytes) -> None:
        if self._preamble is not None:
            chunk = self._skip_preamble(chunk)
            if not chunk:
                return
        try:
            self._parser.write(chunk)
        except MultipartParseError as exc:
            raise DecodeError(f"Malformed multipart body: {exc}") from exc

    def _skip_preamble(self, chunk: bytes) -> bytes:
        """Drop bytes before the first delimiter line (RFC 2046 preamble)."""

        self._preamble.extend(chunk)
        index = self._preamble.find(self._delimiter)
        if index < 0:
            keep = len(self._delimiter) - 1
            if len(self._preamble) > keep:
                del self._preamble[:-keep]
            return b""

        if index > 0:
            logger.debug("Skipping multipart preamble before the first boundary")
        remainder = bytes(self._preamble[index + 2 :])
        self._preamble = None
        return remainder

    def close(self) -> ParsedUpload:
        """Finish decoding; the closing boundary must have been seen."""

        self._parser.finalize()
        if not self._finished:
            raise DecodeError("Multipart body ended before the closing boundary")
        return self._upload

    # Parser callbacks

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._part_kind = _DISCARD
        self._part_name = ""
        self._part_filename = None
        self._part_mime_type = None
        self._part_buffer = bytearray()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field.extend(data[start:end])

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value.extend(data[start:end])

    def _on_header_end(self) -> None:
        self._headers[bytes(self._header_field).strip().lower()] = bytes(self._header_value).strip()
        self._header_field.clear()
        self._header_value.clear()

    def _on_headers_finished(self) -> None:
        disposition = self._headers.get(b"content-disposition")
        if not disposition:
            logger.debug("Skipping multipart part without Content-Disposition")
            return

        _, options = parse_options_header(disposition)
        self._part_name = options.get(b"name", b"").decode("utf-8", errors="replace")

        if b"filename" not in options:
            self._part_kind = _FIELD
            return

        if self._file_claimed:
            logger.debug("Discarding extra file part name=%s", self._part_name)
            return

        self._file_claimed = True
        self._part_kind = _FILE
        self._part_filename = options[b"filename"].decode("utf-8", errors="replace") or None
        mime_type = self._headers.get(b"content-type")
        self._part_mime_type = mime_type.decode("latin-1") if mime_type else None

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._part_kind == _DISCARD:
            return

        self._part_buffer.extend(data[start:end])
        if (
            self._part_kind == _FILE
            and self._max_bytes is not None
            and len(self._part_buffer) > self._max_bytes
        ):
            raise UploadTooLargeError()

    def _on_part_end(self) -> None:
        if self._part_kind == _FIELD:
            self._upload.fields[self._part_name] = self._part_buffer.decode("utf-8", errors="replace")
        elif self._part_kind == _FILE:
            self._upload.audio = AudioAsset(
                filename=self._part_filename,
                mime_type=self._part_mime_type,
                data=bytes(self._part_buffer),
            )
        self._part_buffer = bytearray()

    def _on_end(self) -> None:
        self._finished = True


async def decode_upload(
    content_type: str | None,
    chunks: AsyncIterable[bytes],
    *,
    max_bytes: int | None = None,
) -> ParsedUpload:
    """Consume the whole body stream and return the decoded upload."""

    decoder = UploadDecoder(boundary_from_content_type(content_type), max_bytes=max_bytes)
    async for chunk in chunks:
        if chunk:
            decoder.feed(chunk)
    return decoder.close()


__all__ = [
    "AudioAsset",
    "ParsedUpload",
    "UploadDecoder",
    "boundary_from_content_type",
    "decode_upload",
]
