from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ASSET_DIR = Path(__file__).parent.parent.parent / "assets" / "photos"


class Settings(BaseSettings):
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    llm_provider: str = Field(default="openai", validation_alias="LLM_PROVIDER")
    mood_model: str = Field(default="gpt-4o-mini", validation_alias="MOOD_MODEL")
    caption_model: str = Field(default="gpt-4o-mini", validation_alias="CAPTION_MODEL")
    mood_temperature: float = Field(default=0.2, validation_alias="MOOD_TEMPERATURE")
    mood_max_tokens: int = Field(default=10, validation_alias="MOOD_MAX_TOKENS")
    caption_temperature: float = Field(default=0.8, validation_alias="CAPTION_TEMPERATURE")
    caption_max_tokens: int = Field(default=60, validation_alias="CAPTION_MAX_TOKENS")
    caption_max_chars: int | None = Field(
        default=None,
        validation_alias="CAPTION_MAX_CHARS",
        description="Optional hard character budget for captions (trimmed at a word boundary)",
    )
    llm_timeout_seconds: float = Field(default=20.0, validation_alias="LLM_TIMEOUT_SECONDS")

    strava_access_token: str = Field(default="", validation_alias="STRAVA_ACCESS_TOKEN")
    strava_scopes: str = Field(
        default="",
        validation_alias="STRAVA_SCOPES",
        description="Comma-separated scopes granted at OAuth time (e.g. read,activity:read_all,activity:write)",
    )
    strava_timeout_seconds: float = Field(default=15.0, validation_alias="STRAVA_TIMEOUT_SECONDS")

    asset_dir: str = Field(default=str(DEFAULT_ASSET_DIR), validation_alias="ASSET_DIR")
    asset_base_url: str = Field(
        default="",
        validation_alias="ASSET_BASE_URL",
        description="Serve photos over HTTP instead of from ASSET_DIR",
    )
    jpeg_quality: int = Field(default=90, validation_alias="JPEG_QUALITY")
    font_path: str = Field(default="", validation_alias="FONT_PATH")
    bold_font_path: str = Field(default="", validation_alias="BOLD_FONT_PATH")

    auto_upload: bool = Field(default=False, validation_alias="AUTO_UPLOAD")
    upload_retry_once: bool = Field(
        default=False,
        validation_alias="UPLOAD_RETRY_ONCE",
        description="Retry the publish call once on network errors or 5xx responses",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str = Field(default="", validation_alias="LOG_FILE", description="Optional JSON-lines log file")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("jpeg_quality")
    @classmethod
    def validate_jpeg_quality(cls, value: int) -> int:
        """Clamp JPEG quality to Pillow's usable range."""
        if not 1 <= value <= 95:
            clamped = min(95, max(1, value))
            logger.warning(f"JPEG_QUALITY={value} is outside 1-95, using {clamped}")
            return clamped
        return value

    @field_validator("openai_api_key")
    @classmethod
    def validate_openai_key(cls, value: str) -> str:
        """Warn when no OpenAI key is configured.

        Mood classification degrades to 'default' without it, caption generation fails.
        """
        if not value:
            logger.warning(
                "OPENAI_API_KEY is not set. Caption generation will fail until it is configured in .env or the environment."
            )
        return value

    @property
    def granted_scopes(self) -> set[str]:
        return {scope.strip() for scope in self.strava_scopes.split(",") if scope.strip()}


settings = Settings()
