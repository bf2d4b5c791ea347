"""Service layer for the gate, decoder and upstream relay."""

from .request_gate import (
    Authorizer,
    GateDecision,
    RequestGate,
    allow_all,
    build_request_gate,
)
from .transcribe import (
    CredentialSource,
    TranscriptionRelay,
    TranscriptionResult,
    UpstreamRequest,
    build_transcription_relay,
    get_transcription_relay,
)
from .upload_decoder import AudioAsset, ParsedUpload, UploadDecoder, decode_upload

__all__ = [
    "Authorizer",
    "GateDecision",
    "RequestGate",
    "allow_all",
    "build_request_gate",
    "CredentialSource",
    "TranscriptionRelay",
    "TranscriptionResult",
    "UpstreamRequest",
    "build_transcription_relay",
    "get_transcription_relay",
    "AudioAsset",
    "ParsedUpload",
    "UploadDecoder",
    "decode_upload",
]
