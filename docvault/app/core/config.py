from __future__ import annotations

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DOCVAULT_", env_file=".env", extra="ignore")

    APP_NAME: str = "docvault"
    APP_VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8001
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    DATABASE_PATH: str = "data/catalog.db"

    BLOB_BACKEND: Literal["local", "s3"] = "local"
    UPLOAD_DIR: str = "data/blobs"
    BLOB_BUCKET: str = "documents"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_REGION: Optional[str] = None

    MAX_FILE_SIZE: int = 50 * 1024 * 1024

    PREVIEW_MAX_EDGE: int = 800
    PREVIEW_TIMEOUT_S: float = 60.0
    # Whole-render bound, covering in-process decoding as well as external tools.
    PREVIEW_RENDER_DEADLINE_S: float = 150.0
    PDF_RENDER_DPI: int = 100
    PDFTOPPM_PATH: Optional[str] = None
    SOFFICE_PATH: Optional[str] = None

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None


settings = Settings()
