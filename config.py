import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "5001"))
    cors_origins: List[str] = field(
        default_factory=lambda: [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    )

    # Storage settings
    data_file: str = os.getenv("LIBRARY_DATA_FILE", os.path.join("data", "books.json"))
    seed_sample_data: bool = _env_flag("SEED_SAMPLE_DATA", "True")

    # Validation settings
    strict_isbn_checksum: bool = _env_flag("STRICT_ISBN_CHECKSUM", "False")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Library Catalog API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    debug: bool = _env_flag("DEBUG", "False")


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging once; later calls only adjust the level."""
    level_name = (level or settings.log_level or "INFO").upper()
    if settings.debug:
        level_name = "DEBUG"
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
