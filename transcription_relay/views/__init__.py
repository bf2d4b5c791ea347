"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse
from .transcription import TranscriptionResponse

__all__ = [
    "ErrorResponse",
    "TranscriptionResponse",
]
