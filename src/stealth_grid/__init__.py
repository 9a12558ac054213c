"""Terminal browser for GRID series data and file downloads."""

__version__ = "0.1.0"
