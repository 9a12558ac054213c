"""Custom widgets for the series browser."""

from .item_list import ItemList
from .series_table import SeriesTable

__all__ = ["ItemList", "SeriesTable"]
