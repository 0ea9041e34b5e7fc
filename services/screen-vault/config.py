"""Environment-based configuration for the screen vault service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Screen vault settings, loaded from environment variables."""

    # Server
    PORT: int = 5000

    # OCR service connection (empty = OCR unavailable, local dev default)
    OCR_SERVICE_URL: str = ""
    OCR_LANGUAGE: str = "spa"

    # OCR service timeouts and retry
    OCR_TIMEOUT_SECONDS: int = 120
    OCR_CONNECT_TIMEOUT: int = 10
    OCR_RETRY_ATTEMPTS: int = 3
    OCR_RETRY_DELAY: float = 1.0
    OCR_RETRY_BACKOFF: float = 2.0

    # Upload limits
    MAX_FILES: int = 50
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    ALLOWED_CONTENT_TYPES: list[str] = ["image/png", "image/jpeg", "image/jpg"]

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
