"""CSV export of series rows."""

import csv
from collections.abc import Iterable
from pathlib import Path

import structlog

from ..models import SeriesRow
from .filesystem import FileSystemService

log = structlog.stdlib.get_logger()


EXPORT_HEADER = ["Start Time", "Serie ID", "Tournament", "Team One", "Team Two"]


def with_csv_suffix(path: Path) -> Path:
    """Append ``.csv`` unless the path already ends with it."""
    if path.suffix.lower() == ".csv":
        return path
    return path.with_name(path.name + ".csv")


class ExportService:
    """Writes series rows to a spreadsheet-compatible CSV file."""

    def __init__(self, filesystem: FileSystemService | None = None) -> None:
        self._filesystem = filesystem or FileSystemService()

    def export(self, rows: Iterable[SeriesRow], destination: Path) -> Path:
        """Write a header record and one record per row, in the order given.

        Args:
            rows: Rows to write
            destination: Target file; ``.csv`` is appended when missing

        Returns:
            The path actually written

        Raises:
            OSError: If the file cannot be created or written
        """
        path = with_csv_suffix(destination.expanduser())
        self._filesystem.ensure_directory(path.parent)

        # Write to a temporary file first so a failed export never leaves a truncated file
        temp_path = path.with_name(path.name + ".tmp")
        count = 0
        try:
            with open(temp_path, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(EXPORT_HEADER)
                for row in rows:
                    writer.writerow(row.as_record())
                    count += 1
            temp_path.replace(path)
        except OSError as e:
            log.error("Failed to export rows", path=str(path), error=str(e))
            self._filesystem.remove_partial(temp_path)
            raise

        log.info("Rows exported", path=str(path), rows=count)
        return path
