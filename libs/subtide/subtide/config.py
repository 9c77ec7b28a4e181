"""Configuration management using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from subtide.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")


class TranscribeConfig(BaseSettings):
    """Transcription (generate) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "gemini"
    model: str = ""  # empty -> provider default
    language: str = ""
    transcript_language: str = "native"
    prompt: str = ""
    chunk_duration_s: float = Field(default=60.0, gt=0)
    concurrency: int = Field(default=3, ge=1)
    timeout: float = 300.0  # per request (seconds)


class TranslateConfig(BaseSettings):
    """Translation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSLATE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "gemini"
    model: str = ""
    allow_custom_model: bool = False
    batch_size: int = Field(default=50, ge=1, description="Subtitle entries per API request.")
    concurrency: int = Field(default=3, ge=1)
    prompt: str = ""
    max_tokens: int | None = Field(default=None, ge=256)  # anthropic falls back to 4096
    temperature: float | None = None  # unset -> provider default


class AudioConfig(BaseSettings):
    """Audio extraction and chunking configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIO_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    sample_rate: int = 16000
    channels: int = 1
    bitrate: str = "64k"
    codec: str = "libmp3lame"
    extension: str = ".mp3"
    chunk_concurrency: int = Field(default=10, ge=1)


class ProviderKeys(BaseSettings):
    """API credentials, read from the conventional provider variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gemini_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    openai_base_url: str | None = None
    anthropic_base_url: str | None = None
    gemini_base_url: str | None = None


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


_KEY_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    log_dir: str = "./logs"

    transcribe: TranscribeConfig = TranscribeConfig()
    translate: TranslateConfig = TranslateConfig()
    audio: AudioConfig = AudioConfig()
    keys: ProviderKeys = ProviderKeys()

    # Logging
    logging: LoggingSettings = LoggingSettings()

    def api_key_for(self, provider: str) -> str:
        """Return the API key for a provider or raise naming the env var to set."""
        name = str(provider or "").strip().lower()
        env_var = _KEY_ENV_VARS.get(name)
        if env_var is None:
            raise ConfigurationError(f"Unknown provider: {provider!r}")
        key = str(getattr(self.keys, f"{name}_api_key") or "").strip()
        if not key:
            raise ConfigurationError(
                f"API key is required: use --api-key flag or set {env_var} environment variable"
            )
        return key

    def base_url_for(self, provider: str) -> str | None:
        name = str(provider or "").strip().lower()
        value = str(getattr(self.keys, f"{name}_base_url", None) or "").strip()
        return value or None
