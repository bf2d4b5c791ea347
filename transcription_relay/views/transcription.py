"""Schema for transcription responses."""

from pydantic import BaseModel, Field


class TranscriptionResponse(BaseModel):
    """Successful transcription returned to the client."""

    text: str = Field(..., description="Transcribed text")
