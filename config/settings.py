"""
Configuration settings for the Travelogues catalog
Centralized configuration management with environment variable support
"""

import logging
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _default_cors_origins() -> List[str]:
    return [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]


@dataclass
class TraveloguesConfig:
    """
    Main configuration class for the Travelogues catalog

    Attributes:
        database_path: Path to the SQLite database holding publications and travelers
        host: Interface the API server binds to
        port: Port the API server listens on
        log_level: Logging level name for the server and CLI
        cors_origins: Origins allowed to call the JSON API from a browser
        default_page_size: Page size used when a client pages the publications list
    """

    database_path: Path = Path("data/travelogues.db")
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=_default_cors_origins)
    default_page_size: int = 50

    def __post_init__(self) -> None:
        """Apply environment variable overrides"""
        if env_db_path := os.getenv("TRAVELOGUES_DATABASE_PATH"):
            self.database_path = Path(env_db_path)

        if env_host := os.getenv("TRAVELOGUES_HOST"):
            self.host = env_host

        if env_port := os.getenv("TRAVELOGUES_PORT") or os.getenv("PORT"):
            try:
                self.port = int(env_port)
            except ValueError:
                pass  # Keep default value

        if env_log_level := os.getenv("TRAVELOGUES_LOG_LEVEL"):
            # getLevelName returns the numeric level for known names only
            if isinstance(logging.getLevelName(env_log_level.upper()), int):
                self.log_level = env_log_level.upper()

        if env_origins := os.getenv("TRAVELOGUES_CORS_ORIGINS"):
            self.cors_origins = [origin.strip() for origin in env_origins.split(",") if origin.strip()]

        if env_page_size := os.getenv("TRAVELOGUES_DEFAULT_PAGE_SIZE"):
            try:
                self.default_page_size = int(env_page_size)
            except ValueError:
                pass  # Keep default value

        self.database_path = Path(self.database_path)

    @property
    def database_exists(self) -> bool:
        """Whether the configured database file is present"""
        return self.database_path.exists()


# Export only what's defined in this module
__all__ = ['TraveloguesConfig']
