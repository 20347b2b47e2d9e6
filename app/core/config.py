# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    DATABASE_URL: str = Field(default="sqlite:///./helpdesk.db")
    APP_NAME: str = "NLP HelpDesk"
    APP_DESC: str = "Help desk ticketing with queued category/priority prediction"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # CORS origins, comma separated
    CORS_ORIGINS: str | None = None

    # Product codes / ticket ids
    DEFAULT_PRODUCT_ID: str = "DEFAULT"
    PRODUCT_CODE_LENGTH: int = 7
    PRODUCT_CODE_MAX_RETRIES: int = 5
    PRODUCT_CODE_BACKOFF_SECONDS: float = 0.1

    # Attachments
    BLOB_DIR: str = "./blobs"
    BLOB_BASE_URL: str = "/files"
    BLOB_URL_TTL_SECONDS: int = 3600
    BLOB_SIGNING_KEY: str = "development-signing-key-change-in-production"
    MAX_FILE_SIZE: int = 8 * 1024 * 1024
    ALLOWED_FILE_EXTENSIONS: list[str] = [".jpeg", ".jpg", ".png", ".zip", ".txt", ".pdf"]

    # Prediction queue
    PREDICTION_QUEUE_NAME: str = "nlphelpdesk-ticket-prediction"
    RUN_PREDICTION_INLINE: bool = True

    # Pydantic v2 style config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
