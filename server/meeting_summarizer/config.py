from dataclasses import dataclass
from typing import Optional

from pydantic_settings import BaseSettings

# Model identifiers each provider is known to serve. A configured model outside
# this table makes the provider bundle structurally invalid.
KNOWN_MODELS: dict[str, frozenset[str]] = {
    "gemini": frozenset({
        "gemini-2.5-flash",
        "gemini-2.5-flash-lite",
        "gemini-2.5-pro",
        "gemini-2.0-flash",
    }),
    "anthropic": frozenset({
        "claude-sonnet-4-20250514",
        "claude-opus-4-20250514",
        "claude-3-7-sonnet-latest",
        "claude-3-5-haiku-latest",
    }),
}


class Settings(BaseSettings):
    # Summarization provider: "gemini" or "anthropic"
    summarizer_provider: str = "gemini"

    # Provider credentials (the one matching summarizer_provider is used)
    gemini_api_key: str = ""
    anthropic_api_key: str = ""

    summarizer_model: str = "gemini-2.5-flash"
    # Empty means the SDK default endpoint
    summarizer_base_url: str = ""
    summarizer_timeout_secs: float = 300.0
    summarizer_max_retries: int = 3
    # Overall deadline for one summary request, across every retry
    summary_request_timeout_secs: float = 600.0

    # Request limits
    max_transcript_chars: int = 500_000
    min_summary_tokens: int = 1
    max_summary_tokens: int = 2048
    max_target_role_chars: int = 50

    # Transcription backend: "gemini" or "mock"
    transcription_backend: str = "gemini"
    transcription_model: str = "gemini-2.5-flash"
    max_upload_mb: int = 500

    # Speaker mapping session overrides expire after this much inactivity
    mapping_session_ttl_minutes: int = 120

    # App
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:3001",
    ]
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable bundle of everything backend selection looks at."""

    provider: str
    api_key: str
    model: str
    base_url: Optional[str] = None
    timeout_secs: float = 300.0
    max_retries: int = 3

    @classmethod
    def from_settings(cls, s: "Settings") -> "ProviderConfig":
        provider = s.summarizer_provider.strip().lower()
        api_key = s.anthropic_api_key if provider == "anthropic" else s.gemini_api_key
        return cls(
            provider=provider,
            api_key=api_key,
            model=s.summarizer_model.strip(),
            base_url=s.summarizer_base_url.strip() or None,
            timeout_secs=s.summarizer_timeout_secs,
            max_retries=s.summarizer_max_retries,
        )

    def is_valid(self) -> bool:
        """Structural check only: credential present and model known for provider."""
        if not self.api_key or not self.api_key.strip():
            return False
        return self.model in KNOWN_MODELS.get(self.provider, frozenset())

    def as_dict(self) -> dict:
        return {
            "provider": self.provider,
            "model": self.model,
            "has_api_key": bool(self.api_key),
            "base_url": self.base_url,
            "timeout_secs": self.timeout_secs,
            "max_retries": self.max_retries,
        }


settings = Settings()


def get_settings() -> Settings:
    return settings
