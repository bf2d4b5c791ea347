"""Common response schemas."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Short human-readable failure reason")
