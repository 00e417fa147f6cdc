from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    gemini_api_key: SecretStr = Field(..., validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"))
    veo_model_id: str = Field("veo-2.0-generate-001", validation_alias="VEO_MODEL_ID")

    poll_interval_seconds: float = Field(10.0, validation_alias="POLL_INTERVAL_SECONDS")
    # 0 disables the cap and polls until the operation completes
    poll_max_consecutive_failures: int = Field(30, validation_alias="POLL_MAX_CONSECUTIVE_FAILURES")
    download_timeout_seconds: float = Field(120.0, validation_alias="DOWNLOAD_TIMEOUT_SECONDS")

    default_watermark: str = Field("@Astuces Digitales", validation_alias="DEFAULT_WATERMARK")

    output_local_dir: str = Field("videos", validation_alias="OUTPUT_LOCAL_DIR")
    job_history_limit: int = Field(50, ge=1, validation_alias="JOB_HISTORY_LIMIT")

    app_host: str = Field("127.0.0.1", validation_alias="APP_HOST")
    app_port: int = Field(8000, validation_alias="APP_PORT")

    prompt_char_limit: int = Field(2400, validation_alias="PROMPT_CHAR_LIMIT")

    @field_validator("poll_max_consecutive_failures")
    @classmethod
    def non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("POLL_MAX_CONSECUTIVE_FAILURES must be >= 0")
        return value

    @field_validator("output_local_dir", mode="before")
    @classmethod
    def ensure_local_dir(cls, value: str) -> str:
        value = value or "videos"
        Path(value).mkdir(parents=True, exist_ok=True)
        return value

    @property
    def api_key(self) -> str:
        return self.gemini_api_key.get_secret_value()


@lru_cache()
def get_settings() -> Settings:
    try:
        return Settings()
    except Exception as exc:
        raise RuntimeError("Failed to load application settings. Ensure GEMINI_API_KEY is set in your .env file.") from exc


settings = get_settings()
