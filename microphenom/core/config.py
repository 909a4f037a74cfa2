"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """MicroPhenom application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        llm_provider: Which analysis backend to use (only "gemini" for now).
        gemini_api_key: Credential for the Gemini API. Checked at call time,
            not at startup, so the recorder stays usable without it.
        audio_sample_rate: Capture sample rate in Hz.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Analysis backend ---
    llm_provider: str = "gemini"

    # Gemini (Google GenAI) settings
    gemini_api_key: str = ""  # Required for any backend call
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.3
    gemini_timeout_seconds: float = 120.0

    # --- Audio capture ---
    audio_sample_rate: int = 16000
    audio_channels: int = 1  # Mono is enough for interview speech
    audio_device: str = ""  # Input device name substring; empty = system default

    # --- Application ---
    app_host: str = "127.0.0.1"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
