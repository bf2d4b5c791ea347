"""Unit tests for the streaming multipart decoder."""

from __future__ import annotations

import asyncio

import pytest

from conftest import BOUNDARY, MULTIPART_CONTENT_TYPE, build_multipart
from transcription_relay.errors import DecodeError, UploadTooLargeError
from transcription_relay.services.upload_decoder import (
    UploadDecoder,
    boundary_from_content_type,
    decode_upload,
)


async def _chunked(body: bytes, size: int):
    for start in range(0, len(body), size):
        yield body[start : start + size]


def _decode(body: bytes, *, chunk_size: int = 7, max_bytes: int | None = None):
    return asyncio.run(
        decode_upload(MULTIPART_CONTENT_TYPE, _chunked(body, chunk_size), max_bytes=max_bytes)
    )


def test_fields_and_file_are_decoded_across_small_chunks():
    body = build_multipart(
        {"model": "whisper-1", "prompt": "Names: Ada, Grace"},
        [("file", "clip.m4a", "audio/m4a", b"\x00\x01binary\r\ndata\xff")],
    )

    upload = _decode(body, chunk_size=3)

    assert upload.fields == {"model": "whisper-1", "prompt": "Names: Ada, Grace"}
    assert upload.has_audio
    assert upload.audio.filename == "clip.m4a"
    assert upload.audio.mime_type == "audio/m4a"
    assert upload.audio.data == b"\x00\x01binary\r\ndata\xff"


def test_repeated_field_keeps_last_value():
    body = (
        build_multipart({"model": "first"}, closed=False)
        + build_multipart({"model": "second"})
    )

    upload = _decode(body)

    assert upload.fields["model"] == "second"
    assert not upload.has_audio


def test_first_file_wins():
    body = build_multipart(
        files=[
            ("file", "one.m4a", "audio/m4a", b"one"),
            ("other", "two.wav", "audio/wav", b"two"),
        ]
    )

    upload = _decode(body)

    assert upload.audio.filename == "one.m4a"
    assert upload.audio.data == b"one"


def test_file_without_filename_or_type_keeps_none():
    upload = _decode(build_multipart(files=[("file", "", None, b"abc")]))

    assert upload.audio.filename is None
    assert upload.audio.mime_type is None
    assert upload.audio.data == b"abc"


def test_no_file_part_means_no_audio():
    upload = _decode(build_multipart({"model": "whisper-1"}))

    assert upload.audio is None
    assert not upload.has_audio


def test_empty_file_part_is_not_audio():
    upload = _decode(build_multipart(files=[("file", "empty.m4a", "audio/m4a", b"")]))

    assert upload.audio is not None
    assert not upload.has_audio


def test_truncated_body_raises():
    body = build_multipart(files=[("file", "a.m4a", "audio/m4a", b"abc")], closed=False)

    with pytest.raises(DecodeError):
        _decode(body)


def test_malformed_body_raises():
    decoder = UploadDecoder(BOUNDARY.encode())

    with pytest.raises(DecodeError):
        decoder.feed(b"this is not a multipart body at all\r\n")
        decoder.close()


def test_size_cap_applies_to_audio():
    body = build_multipart(files=[("file", "a.m4a", "audio/m4a", b"x" * 32)])

    with pytest.raises(UploadTooLargeError):
        _decode(body, max_bytes=16)


def test_size_cap_allows_audio_at_limit():
    body = build_multipart(files=[("file", "a.m4a", "audio/m4a", b"x" * 16)])

    upload = _decode(body, max_bytes=16)

    assert len(upload.audio.data) == 16


@pytest.mark.parametrize(
    "content_type",
    [
        None,
        "",
        "application/json",
        "multipart/form-data",
    ],
)
def test_unusable_content_type_raises(content_type):
    with pytest.raises(DecodeError):
        boundary_from_content_type(content_type)


def test_boundary_is_read_from_content_type():
    assert boundary_from_content_type('Multipart/Form-Data; boundary="abc123"') == b"abc123"


def test_preamble_before_first_boundary_is_skipped():
    body = b"This is a multi-part message in MIME format.\r\n" + build_multipart(
        {"model": "whisper-1"},
        [("file", "clip.m4a", "audio/m4a", b"audio")],
    )

    upload = _decode(body, chunk_size=5)

    assert upload.fields == {"model": "whisper-1"}
    assert upload.audio.filename == "clip.m4a"
    assert upload.audio.data == b"audio"


def test_body_without_any_boundary_raises():
    with pytest.raises(DecodeError):
        _decode(b"only a preamble, no parts\r\n" * 4)
