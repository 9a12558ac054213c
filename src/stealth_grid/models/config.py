"""Configuration data models."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Application configuration settings."""
    api_key: str
    download_directory: Path
    api_url: str = "https://api.grid.gg"
    request_timeout: float = 30.0
    page_size: int = 50  # Single page of search results
    log_level: str = "INFO"
