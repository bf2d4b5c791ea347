from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenAIConfig(BaseSettings):
    """Upstream transcription API configuration"""

    api_key: Optional[SecretStr] = None
    base_url: str = "https://api.openai.com/v1"
    default_model: str = "whisper-1"
    timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Upper bound on the whole upstream call, in seconds.",
    )

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class RelayConfig(BaseSettings):
    """Inbound endpoint configuration."""

    path: str = "/transcribeAudio"
    default_filename: str = "audio.m4a"
    default_mime_type: str = "audio/m4a"
    max_upload_bytes: Optional[int] = Field(
        default=None,
        ge=1,
        description="Reject audio larger than this many bytes. Unbounded when unset.",
    )
    caller_identity_header: str = "X-User-Id"

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Transcription Relay"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"

    # Upstream
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)

    # Endpoint
    relay: RelayConfig = Field(default_factory=RelayConfig)

    # CORS
    cors_allow_origin: str = "*"
    cors_allow_methods: str = "POST"
    cors_allow_headers: str = "Content-Type"
    cors_max_age: int = 3600

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
