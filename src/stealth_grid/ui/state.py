"""State machine driving the series browser.

Each screen is its own frozen dataclass carrying only the data that screen
needs; ``BrowserState`` holds the current screen plus what the user has chosen
so far. ``BrowserStateMachine`` consumes key names and command results one at
a time and returns the commands the presentation layer has to run. It never
performs I/O itself.
"""

import string
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TypeVar

import structlog

from ..models import FileListing, SelectableItem, SeriesRow
from ..services.errors import ResponseShapeError
from ..services.grid_gateway import ARCHIVE_OPTION_ID
from ..services.series_decoder import decode_series_rows
from .commands import (
    Command,
    DownloadFile,
    DownloadFinished,
    DownloadOutcome,
    ExportRows,
    FetchSeries,
    FilesListed,
    ListFiles,
    QuitApp,
    Result,
    SeriesFetched,
)

log = structlog.stdlib.get_logger()


QUIT_KEYS = frozenset({"q", "ctrl+c"})
DIGIT_KEYS = frozenset(string.digits)
NAVIGATION_KEYS = frozenset({"up", "down"})

# Upper bound for either side of the date window (keeps datetimes in range)
MAX_WINDOW_DAYS = 36500


@dataclass(frozen=True)
class SelectGame:
    cursor: int = 0


@dataclass(frozen=True)
class EnterStartDays:
    digits: str = ""


@dataclass(frozen=True)
class EnterEndDays:
    start_digits: str = ""
    digits: str = ""


@dataclass(frozen=True)
class LoadingTable:
    request_id: int


@dataclass(frozen=True)
class ShowTable:
    cursor: int = 0


@dataclass(frozen=True)
class ListingFiles:
    series_id: str
    request_id: int
    origin: ShowTable


@dataclass(frozen=True)
class SelectDownloadOption:
    series_id: str
    options: tuple[SelectableItem, ...]
    origin: ShowTable
    cursor: int = 0


@dataclass(frozen=True)
class Downloading:
    series_id: str
    option_id: str
    request_id: int
    origin: SelectDownloadOption


Screen = (
    SelectGame
    | EnterStartDays
    | EnterEndDays
    | LoadingTable
    | ShowTable
    | ListingFiles
    | SelectDownloadOption
    | Downloading
)

LOADING_SCREENS = (LoadingTable, ListingFiles, Downloading)

PendingScreen = TypeVar("PendingScreen", LoadingTable, ListingFiles, Downloading)


def parse_days(text: str) -> int:
    """Parse a day count typed by the user; empty or non-numeric means 0."""
    if not text or any(c not in DIGIT_KEYS for c in text):
        return 0
    return min(int(text), MAX_WINDOW_DAYS)


def build_download_options(listing: FileListing) -> tuple[SelectableItem, ...]:
    """Turn a file listing into the download choices shown to the user.

    The archive comes first when present, then one entry per replay,
    numbered from 1.
    """
    options: list[SelectableItem] = []
    if listing.has_archive:
        options.append(SelectableItem(
            id=ARCHIVE_OPTION_ID,
            title="Download JSON",
            description="Compressed event archive (.zip)",
        ))
    for index in range(1, listing.replay_count + 1):
        options.append(SelectableItem(
            id=str(index),
            title=f"Download Game {index}",
            description=f"Replay of game {index} (.rofl)",
        ))
    return tuple(options)


def _move_cursor(cursor: int, key: str, size: int) -> int:
    if size <= 0:
        return 0
    if key == "up":
        return max(cursor - 1, 0)
    return min(cursor + 1, size - 1)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class BrowserState:
    """Mutable application state, touched only by ``BrowserStateMachine``."""
    screen: Screen = field(default_factory=SelectGame)
    selected_title_id: str | None = None
    rows: tuple[SeriesRow, ...] = ()
    selected_series_id: str | None = None
    download_option_id: str | None = None
    error_message: str = ""
    query_window: tuple[datetime, datetime] | None = None
    last_download: Path | None = None

    @property
    def loading(self) -> bool:
        return isinstance(self.screen, LOADING_SCREENS)

    @property
    def start_days_input(self) -> str:
        if isinstance(self.screen, EnterStartDays):
            return self.screen.digits
        if isinstance(self.screen, EnterEndDays):
            return self.screen.start_digits
        return ""

    @property
    def end_days_input(self) -> str:
        if isinstance(self.screen, EnterEndDays):
            return self.screen.digits
        return ""


class BrowserStateMachine:
    """Applies key presses and command results to a ``BrowserState``.

    Both entry points return the list of commands to execute. Results are
    only applied when the current screen is waiting for exactly that
    ``request_id``; anything else is discarded.
    """

    def __init__(
        self,
        games: Sequence[SelectableItem],
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the machine on the game selection screen.

        Args:
            games: Titles offered on the first screen
            clock: Source of the current time (aware datetimes)
        """
        self.games: tuple[SelectableItem, ...] = tuple(games)
        if not self.games:
            raise ValueError("At least one selectable game is required")
        self.state = BrowserState()
        self._clock = clock
        self._last_request_id = 0

    @property
    def download_options(self) -> tuple[SelectableItem, ...]:
        screen = self.state.screen
        if isinstance(screen, SelectDownloadOption):
            return screen.options
        if isinstance(screen, Downloading):
            return screen.origin.options
        return ()

    def handle_key(self, key: str) -> list[Command]:
        """Apply one key press.

        Args:
            key: Textual key name (``"enter"``, ``"up"``, ``"5"``, ``"ctrl+c"``...)

        Returns:
            Commands to execute, possibly empty
        """
        if key in QUIT_KEYS:
            log.info("Quit requested", screen=type(self.state.screen).__name__)
            return [QuitApp()]

        if self.state.loading:
            log.debug("Key ignored while loading", key=key)
            return []

        screen = self.state.screen
        if isinstance(screen, SelectGame):
            commands = self._on_select_game_key(screen, key)
        elif isinstance(screen, EnterStartDays):
            commands = self._on_start_days_key(screen, key)
        elif isinstance(screen, EnterEndDays):
            commands = self._on_end_days_key(screen, key)
        elif isinstance(screen, ShowTable):
            commands = self._on_table_key(screen, key)
        elif isinstance(screen, SelectDownloadOption):
            commands = self._on_option_key(screen, key)
        else:
            commands = []

        if self.state.screen != screen:
            self.state.error_message = ""
            log.debug(
                "Screen changed",
                from_screen=type(screen).__name__,
                to_screen=type(self.state.screen).__name__,
            )
        return commands

    def handle_result(self, result: Result) -> list[Command]:
        """Apply the result of an asynchronous command."""
        if isinstance(result, SeriesFetched):
            self._on_series_fetched(result)
        elif isinstance(result, FilesListed):
            self._on_files_listed(result)
        elif isinstance(result, DownloadFinished):
            self._on_download_finished(result)
        return []

    def report_error(self, message: str) -> None:
        """Surface an error raised outside the command results (e.g. export)."""
        self.state.error_message = message

    def _next_request_id(self) -> int:
        self._last_request_id += 1
        return self._last_request_id

    def _on_select_game_key(self, screen: SelectGame, key: str) -> list[Command]:
        if key in NAVIGATION_KEYS:
            self.state.screen = SelectGame(cursor=_move_cursor(screen.cursor, key, len(self.games)))
        elif key == "enter":
            item = self.games[min(screen.cursor, len(self.games) - 1)]
            self.state.selected_title_id = item.id
            self.state.screen = EnterStartDays()
            log.info("Game selected", title_id=item.id, title=item.title)
        return []

    def _on_start_days_key(self, screen: EnterStartDays, key: str) -> list[Command]:
        if key in DIGIT_KEYS:
            self.state.screen = EnterStartDays(digits=screen.digits + key)
        elif key == "backspace":
            self.state.screen = EnterStartDays(digits=screen.digits[:-1])
        elif key == "enter":
            self.state.screen = EnterEndDays(start_digits=screen.digits)
        return []

    def _on_end_days_key(self, screen: EnterEndDays, key: str) -> list[Command]:
        if key in DIGIT_KEYS:
            self.state.screen = EnterEndDays(start_digits=screen.start_digits, digits=screen.digits + key)
        elif key == "backspace":
            self.state.screen = EnterEndDays(start_digits=screen.start_digits, digits=screen.digits[:-1])
        elif key == "enter":
            start_days = parse_days(screen.start_digits)
            end_days = parse_days(screen.digits)
            now = self._clock()
            self.state.query_window = (
                now - timedelta(days=start_days),
                now + timedelta(days=end_days),
            )
            return self._issue_search()
        return []

    def _issue_search(self) -> list[Command]:
        if self.state.selected_title_id is None or self.state.query_window is None:
            return []
        start_time, end_time = self.state.query_window
        request_id = self._next_request_id()
        self.state.screen = LoadingTable(request_id=request_id)
        log.info(
            "Search dispatched",
            request_id=request_id,
            title_id=self.state.selected_title_id,
            start_time=start_time.isoformat(),
            end_time=end_time.isoformat(),
        )
        return [FetchSeries(
            request_id=request_id,
            title_id=self.state.selected_title_id,
            start_time=start_time,
            end_time=end_time,
        )]

    def _on_table_key(self, screen: ShowTable, key: str) -> list[Command]:
        rows = self.state.rows
        if key in NAVIGATION_KEYS:
            self.state.screen = ShowTable(cursor=_move_cursor(screen.cursor, key, len(rows)))
        elif key == "e":
            log.info("Export requested", rows=len(rows))
            return [ExportRows(rows=rows)]
        elif key == "enter":
            if not rows:
                # Nothing to pick; confirming again retries the last search
                return self._issue_search()
            row = rows[min(screen.cursor, len(rows) - 1)]
            request_id = self._next_request_id()
            self.state.selected_series_id = row.series_id
            self.state.screen = ListingFiles(series_id=row.series_id, request_id=request_id, origin=screen)
            log.info("Series selected", series_id=row.series_id, request_id=request_id)
            return [ListFiles(request_id=request_id, series_id=row.series_id)]
        return []

    def _on_option_key(self, screen: SelectDownloadOption, key: str) -> list[Command]:
        if key in NAVIGATION_KEYS:
            self.state.screen = SelectDownloadOption(
                series_id=screen.series_id,
                options=screen.options,
                origin=screen.origin,
                cursor=_move_cursor(screen.cursor, key, len(screen.options)),
            )
        elif key == "escape":
            self.state.screen = screen.origin
        elif key == "enter":
            option = screen.options[min(screen.cursor, len(screen.options) - 1)]
            request_id = self._next_request_id()
            self.state.download_option_id = option.id
            self.state.screen = Downloading(
                series_id=screen.series_id,
                option_id=option.id,
                request_id=request_id,
                origin=screen,
            )
            log.info(
                "Download dispatched",
                series_id=screen.series_id,
                option_id=option.id,
                request_id=request_id,
            )
            return [DownloadFile(request_id=request_id, series_id=screen.series_id, option_id=option.id)]
        return []

    def _awaiting(self, result: Result, expected: type[PendingScreen]) -> PendingScreen | None:
        """Return the current screen if it is waiting for this result, else None."""
        screen = self.state.screen
        if isinstance(screen, expected) and screen.request_id == result.request_id:
            return screen
        log.info(
            "Discarding stale result",
            result=type(result).__name__,
            request_id=result.request_id,
            screen=type(screen).__name__,
        )
        return None

    def _on_series_fetched(self, result: SeriesFetched) -> None:
        if self._awaiting(result, LoadingTable) is None:
            return

        self.state.screen = ShowTable()
        if result.error is not None:
            self.state.error_message = result.error
            return

        try:
            rows = decode_series_rows(result.payload)
        except ResponseShapeError as e:
            log.warning("Search response rejected", field=e.field, detail=e.detail)
            self.state.error_message = f"{e.message}: {e.detail}" if e.detail else e.message
            return

        self.state.rows = tuple(rows)
        self.state.error_message = ""
        log.info("Series loaded", request_id=result.request_id, rows=len(rows))

    def _on_files_listed(self, result: FilesListed) -> None:
        screen = self._awaiting(result, ListingFiles)
        if screen is None:
            return

        if result.error is not None or result.listing is None:
            self.state.error_message = result.error or "Error fetching game list"
            self.state.screen = screen.origin
            return

        options = build_download_options(result.listing)
        if not options:
            self.state.error_message = f"No downloadable files for series {screen.series_id}"
            self.state.screen = screen.origin
            return

        self.state.screen = SelectDownloadOption(
            series_id=screen.series_id,
            options=options,
            origin=screen.origin,
        )

    def _on_download_finished(self, result: DownloadFinished) -> None:
        screen = self._awaiting(result, Downloading)
        if screen is None:
            return

        if result.outcome is DownloadOutcome.CANCELLED:
            log.info("Download cancelled", series_id=screen.series_id)
            self.state.screen = screen.origin
            return

        self.state.screen = screen.origin.origin
        if result.outcome is DownloadOutcome.COMPLETE:
            self.state.last_download = result.path
            log.info("Download complete", series_id=screen.series_id, path=str(result.path))
        else:
            self.state.error_message = result.error or "Download failed"
