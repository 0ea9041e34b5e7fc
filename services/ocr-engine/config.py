"""Environment-based configuration for the OCR engine service."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """OCR engine settings, loaded from environment variables."""

    # Tesseract binary (empty = whatever is on PATH)
    TESSERACT_CMD: str = ""

    # Language packs, "+"-joined as tesseract expects (e.g. "spa+eng")
    DEFAULT_LANGUAGE: str = "spa"

    # OEM 3 = default engine, PSM 3 = automatic page segmentation
    TESSERACT_CONFIG: str = "--oem 3 --psm 3"

    # Server
    PORT: int = 8090

    model_config = {"env_prefix": "", "case_sensitive": True}


settings = Settings()
