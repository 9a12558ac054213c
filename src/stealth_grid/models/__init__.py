"""Data models for the stealth-grid application."""

from .config import AppConfig
from .item import DEFAULT_TITLES, SelectableItem
from .series import FileListing, SeriesRow

__all__ = [
    "AppConfig",
    "DEFAULT_TITLES",
    "FileListing",
    "SelectableItem",
    "SeriesRow",
]
