"""
Mootie Backend - Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory, the request dependencies and the services.
When:  Loaded once at module import time; checked at startup and per request.

Required values:
    OPENAI_API_KEY   every endpoint that talks to the provider
    VECTOR_STORE_ID  the document endpoints (upload, delete, list)

Missing values never crash the import. The lifespan logs them at startup and
each request that needs them fails with ConfigurationError (HTTP 500).
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from mootie.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Provider ──────────────────────────────────────────────────────────
    openai_api_key: str = Field(
        default="",
        description="Bearer token for the OpenAI REST API",
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1")

    # Sends `OpenAI-Beta: assistants=v2` on vector-store calls. Older
    # deployments of the handlers disagreed on the API generation; this flag
    # is the single switch for it.
    openai_assistants_beta: bool = Field(default=True)

    vector_store_id: Optional[str] = Field(
        default=None,
        description="Vector store that indexes the uploaded case documents",
    )

    # ── Models ────────────────────────────────────────────────────────────
    chat_model: str = Field(default="gpt-4.1")
    tts_model: str = Field(default="gpt-4o-mini-tts")
    transcription_model: str = Field(default="whisper-1")
    tts_voice: str = Field(default="alloy")
    tts_format: str = Field(default="mp3")
    file_search_max_results: int = Field(default=4, ge=1, le=50)

    # ── Timeouts (seconds) ────────────────────────────────────────────────
    upstream_timeout: float = Field(default=15.0, gt=0, le=120)
    upload_timeout: float = Field(default=30.0, gt=0, le=300)
    verify_delete_timeout: float = Field(default=30.0, gt=0, le=120)
    verify_delete_poll_interval: float = Field(default=1.0, gt=0, le=30)

    # ── Retry (idempotent GETs only) ──────────────────────────────────────
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: float = Field(default=1.0, ge=0, le=30)
    retry_max_wait: float = Field(default=8.0, ge=0, le=120)
    retry_jitter: float = Field(default=1.0, ge=0, le=10)

    # ── Limits ────────────────────────────────────────────────────────────
    max_file_size: int = Field(default=20_971_520, ge=1_048_576, le=536_870_912)
    max_audio_size: int = Field(default=26_214_400, ge=1_048_576, le=104_857_600)
    max_text_length: int = Field(default=20_000, ge=100, le=1_000_000)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins; "*" allows any origin.
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)
    vercel_git_commit_sha: Optional[str] = Field(default=None)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    @field_validator("tts_format")
    @classmethod
    def validate_tts_format(cls, v: str) -> str:
        fmt = v.lower()
        if fmt not in AUDIO_FORMATS:
            raise ValueError(f"Invalid tts_format '{v}'. Must be one of: {sorted(AUDIO_FORMATS)}")
        return fmt

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def provider_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def vector_store_configured(self) -> bool:
        return bool(self.vector_store_id)

    def require_provider(self) -> None:
        """Raise ConfigurationError unless the provider API key is set."""
        if not self.provider_configured:
            raise ConfigurationError(
                message="OPENAI_API_KEY is not configured on the server.",
                context={"setting": "OPENAI_API_KEY"},
            )

    def require_vector_store(self) -> str:
        """Return the vector store id or raise ConfigurationError."""
        if not self.vector_store_id:
            raise ConfigurationError(
                message="VECTOR_STORE_ID is not configured on the server.",
                context={"setting": "VECTOR_STORE_ID"},
            )
        return self.vector_store_id

    def configuration_problems(self) -> List[str]:
        """
        List human-readable configuration problems for the startup log.

        An empty list means every provider-backed endpoint can serve requests.
        """
        problems = []
        if not self.provider_configured:
            problems.append("OPENAI_API_KEY is not set; provider-backed endpoints will return 500.")
        if not self.vector_store_configured:
            problems.append(
                "VECTOR_STORE_ID is not set; document endpoints are disabled "
                "and chat runs without file search."
            )
        return problems


# Audio container formats accepted by the speech endpoint, mapped to MIME types.
AUDIO_FORMATS = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "opus": "audio/opus",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "pcm": "audio/pcm",
}


settings = Settings()
