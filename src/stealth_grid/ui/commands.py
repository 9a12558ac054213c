"""Commands issued by the state machine and results delivered back to it.

Every asynchronous command carries the ``request_id`` it was issued with; the
matching result must echo it so stale results can be recognised.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from ..models import FileListing, SeriesRow


@dataclass(frozen=True)
class QuitApp:
    """Terminate the session."""


@dataclass(frozen=True)
class FetchSeries:
    """Search series for a title inside a time window."""
    request_id: int
    title_id: str
    start_time: datetime
    end_time: datetime


@dataclass(frozen=True)
class ListFiles:
    """List the downloadable files of a series."""
    request_id: int
    series_id: str


@dataclass(frozen=True)
class DownloadFile:
    """Ask for a destination directory, then download one file."""
    request_id: int
    series_id: str
    option_id: str


@dataclass(frozen=True)
class ExportRows:
    """Ask for a destination path, then write the rows as CSV."""
    rows: tuple[SeriesRow, ...]


Command = QuitApp | FetchSeries | ListFiles | DownloadFile | ExportRows


@dataclass(frozen=True)
class SeriesFetched:
    """Outcome of a ``FetchSeries`` command: a raw payload or an error text."""
    request_id: int
    payload: object = None
    error: str | None = None


@dataclass(frozen=True)
class FilesListed:
    """Outcome of a ``ListFiles`` command."""
    request_id: int
    listing: FileListing | None = None
    error: str | None = None


class DownloadOutcome(Enum):
    """How a download unit of work ended."""
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class DownloadFinished:
    """Outcome of a ``DownloadFile`` command."""
    request_id: int
    outcome: DownloadOutcome
    path: Path | None = None
    error: str | None = None


Result = SeriesFetched | FilesListed | DownloadFinished
