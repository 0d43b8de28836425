"""
Configuration management for win11-readiness-hub
"""
import os
from typing import List
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Environment overrides from a local .env file
load_dotenv()


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DatabaseConfig:
    """Database configuration"""
    url: str
    echo: bool = False


@dataclass
class ReportConfig:
    """Report generation and history configuration"""
    fallback_path: str = "data/reports.json"
    max_upload_mb: int = 50


@dataclass
class AppConfig:
    """Application configuration"""
    debug: bool = False
    log_level: str = "INFO"

    # API server settings
    api_host: str = "0.0.0.0"
    api_port: int = 5400
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])


class Config:
    """Main configuration class"""

    def __init__(self):
        debug = os.getenv("DEBUG", "false").lower() == "true"

        self.database = DatabaseConfig(
            url=os.getenv("DATABASE_URL", "sqlite:///data/reports.db"),
            echo=debug,
        )

        self.reports = ReportConfig(
            fallback_path=os.getenv("REPORTS_FALLBACK_PATH", "data/reports.json"),
            max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "50")),
        )

        self.app = AppConfig(
            debug=debug,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            api_host=os.getenv("API_HOST", "0.0.0.0"),
            api_port=int(os.getenv("API_PORT", "5400")),
            cors_origins=[
                origin.strip()
                for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
                if origin.strip()
            ],
        )

    def validate(self) -> None:
        """Validate required configuration"""
        if not self.database.url:
            raise ValueError("DATABASE_URL is required")

        if self.app.api_port <= 0:
            raise ValueError("API_PORT must be a positive integer")

        if self.app.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")

        if self.reports.max_upload_mb <= 0:
            raise ValueError("MAX_UPLOAD_MB must be a positive integer")


def get_dsn() -> str:
    """Return the database URL for the report-history store"""
    return config.database.url


# Global config instance
config = Config()
