"""Application settings."""

from pathlib import Path
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """CV builder configuration, read from CV_BUILDER_* env vars and .env."""

    store_backend: Literal["memory", "yaml"] = "memory"
    data_dir: Path = PACKAGE_DIR / "data"
    profiles_file: str = "profiles.yaml"
    template_dir: Path = PACKAGE_DIR / "templates"
    pdf_page_size: str = "A4"
    pdf_margin: str = "18px"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CV_BUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
