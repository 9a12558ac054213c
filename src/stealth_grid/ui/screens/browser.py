"""Series browser screen: renders the state machine and runs its commands."""

from pathlib import Path
from typing import ClassVar, override

import httpx
from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.widgets import Header, LoadingIndicator, Static

import structlog

from ...services.errors import AppError
from ..commands import (
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
from ..state import (
    BrowserState,
    Downloading,
    EnterEndDays,
    EnterStartDays,
    ListingFiles,
    LoadingTable,
    SelectDownloadOption,
    SelectGame,
    ShowTable,
)
from ..widgets import ItemList, SeriesTable
from .base import BaseScreen
from .path_prompt import PathPromptModal

log = structlog.stdlib.get_logger()


# Exceptions a unit of work turns into an error message instead of crashing the app
RECOVERABLE_ERRORS = (AppError, httpx.HTTPError, OSError, ValueError)

# Panel name -> id of the widget that renders it
PANEL_WIDGETS: dict[str, str] = {
    "error": "error-text",
    "games": "game-list",
    "prompt": "day-prompt",
    "loading": "loading-panel",
    "table": "series-table",
    "options": "option-list",
}

PANEL_HINTS: dict[str, str] = {
    "games": "up/down: move   enter: select   q: quit",
    "prompt": "0-9: type   backspace: delete   enter: confirm   q: quit",
    "loading": "q: quit",
    "table": "up/down: move   enter: list files   e: export CSV   q: quit",
    "empty-table": "enter: search again   e: export CSV   q: quit",
    "options": "up/down: move   enter: download   escape: back   q: quit",
}


def _screen_panel(state: BrowserState) -> str:
    screen = state.screen
    if isinstance(screen, SelectGame):
        return "games"
    if isinstance(screen, (EnterStartDays, EnterEndDays)):
        return "prompt"
    if state.loading:
        return "loading"
    if isinstance(screen, ShowTable):
        return "table"
    return "options"


def active_panel(state: BrowserState) -> str:
    """Name of the single panel to display; an error overrides everything."""
    if state.error_message:
        return "error"
    return _screen_panel(state)


def panel_title(state: BrowserState) -> str:
    screen = state.screen
    if isinstance(screen, SelectGame):
        return "Select a game"
    if isinstance(screen, (EnterStartDays, EnterEndDays)):
        return "Search window"
    if isinstance(screen, (SelectDownloadOption, Downloading)):
        return f"Downloads for series {screen.series_id}"
    return "Series"


def prompt_text(state: BrowserState) -> str:
    """Day prompt followed by the digits typed so far."""
    screen = state.screen
    if isinstance(screen, EnterStartDays):
        return f"Search from how many days ago? {screen.digits}"
    if isinstance(screen, EnterEndDays):
        return f"Search until how many days from now? {screen.digits}"
    return ""


def loading_text(state: BrowserState) -> str:
    screen = state.screen
    if isinstance(screen, LoadingTable):
        return "Fetching series..."
    if isinstance(screen, ListingFiles):
        return f"Listing files for series {screen.series_id}..."
    if isinstance(screen, Downloading):
        return f"Downloading from series {screen.series_id}..."
    return ""


def hint_text(state: BrowserState) -> str:
    panel = _screen_panel(state)
    if panel == "table" and not state.rows:
        panel = "empty-table"
    return PANEL_HINTS[panel]


class BrowserScreen(BaseScreen):
    """The single interactive screen of the application.

    Key presses are forwarded to the state machine; the commands it returns
    are executed here, asynchronous ones as workers that post exactly one
    ``ResultReady`` message back to this screen.
    """

    class ResultReady(Message):
        """Message carrying the result of a finished unit of work."""

        result: Result

        def __init__(self, result: Result) -> None:
            super().__init__()
            self.result = result

    SCREEN_TITLE: ClassVar[str] = "Series Browser"
    SCREEN_NAME: ClassVar[str] = "browser"

    CSS: ClassVar[str] = """
    #browser-body {
        height: 1fr;
        padding: 1 2;
    }

    #panel-title {
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }

    #error-text {
        color: $error;
        text-style: bold;
        padding: 1 2;
        border: solid $error;
    }

    #day-prompt {
        padding: 1 2;
        border: solid $primary-darken-2;
    }

    #loading-panel {
        height: 1fr;
    }

    #loading-text {
        text-align: center;
        color: $text-muted;
    }

    #hint {
        dock: bottom;
        height: 1;
        padding: 0 2;
        color: $text-muted;
        background: $panel;
    }
    """

    @override
    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="browser-body"):
            yield Static("", id="panel-title")
            yield Static("", id="error-text")
            yield ItemList(id="game-list")
            yield Static("", id="day-prompt")
            with Vertical(id="loading-panel"):
                yield LoadingIndicator()
                yield Static("", id="loading-text")
            yield SeriesTable(id="series-table")
            yield ItemList(id="option-list")
        yield Static("", id="hint")

    @override
    async def on_mount(self) -> None:
        await super().on_mount()
        self.refresh_view()

    def refresh_view(self) -> None:
        """Render the current state."""
        machine = self.grid_app.machine
        state = machine.state
        screen = state.screen
        panel = active_panel(state)

        for name, widget_id in PANEL_WIDGETS.items():
            self.query_one(f"#{widget_id}").display = name == panel

        self.query_one("#panel-title", Static).update(panel_title(state))
        self.query_one("#error-text", Static).update(state.error_message)
        self.query_one("#day-prompt", Static).update(prompt_text(state))
        self.query_one("#loading-text", Static).update(loading_text(state))
        self.query_one("#hint", Static).update(hint_text(state))

        game_list = self.query_one("#game-list", ItemList)
        game_list.set_items(machine.games)
        if isinstance(screen, SelectGame):
            game_list.set_cursor(screen.cursor)

        table = self.query_one("#series-table", SeriesTable)
        table.set_rows(state.rows)
        if isinstance(screen, ShowTable):
            table.set_cursor(screen.cursor)

        option_list = self.query_one("#option-list", ItemList)
        option_list.set_items(machine.download_options)
        if isinstance(screen, SelectDownloadOption):
            option_list.set_cursor(screen.cursor)

    def on_key(self, event: events.Key) -> None:
        event.stop()
        commands = self.grid_app.machine.handle_key(event.key)
        self.execute(commands)
        self.refresh_view()

    def on_browser_screen_result_ready(self, event: ResultReady) -> None:
        result = event.result
        commands = self.grid_app.machine.handle_result(result)
        self.execute(commands)
        self.refresh_view()

        if (
            isinstance(result, DownloadFinished)
            and result.outcome is DownloadOutcome.COMPLETE
            and self.grid_app.machine.state.last_download == result.path
        ):
            self.notify_success(f"Saved {result.path}")

    def execute(self, commands: list[Command]) -> None:
        """Run the commands returned by the state machine."""
        for command in commands:
            if isinstance(command, QuitApp):
                log.info("Exiting application")
                self.app.exit()
            elif isinstance(command, FetchSeries):
                _ = self.run_worker(self._fetch_series(command), name="fetch_series", exclusive=True)
            elif isinstance(command, ListFiles):
                _ = self.run_worker(self._list_files(command), name="list_files", exclusive=True)
            elif isinstance(command, DownloadFile):
                self._prompt_download_directory(command)
            elif isinstance(command, ExportRows):
                self._prompt_export_path(command)

    async def _fetch_series(self, command: FetchSeries) -> None:
        """Run a series search (executed in worker)."""
        try:
            payload = await self.grid_app.gateway.search(
                command.title_id,
                command.start_time,
                command.end_time,
            )
        except RECOVERABLE_ERRORS as e:
            message = self.describe_exception(e, "search series", {"title_id": command.title_id})
            result = SeriesFetched(request_id=command.request_id, error=message)
        else:
            result = SeriesFetched(request_id=command.request_id, payload=payload)
        _ = self.post_message(self.ResultReady(result))

    async def _list_files(self, command: ListFiles) -> None:
        """List the files of a series (executed in worker)."""
        try:
            listing = await self.grid_app.gateway.list_files(command.series_id)
        except RECOVERABLE_ERRORS as e:
            message = self.describe_exception(e, "list series files", {"series_id": command.series_id})
            result = FilesListed(request_id=command.request_id, error=message)
        else:
            result = FilesListed(request_id=command.request_id, listing=listing)
        _ = self.post_message(self.ResultReady(result))

    def _prompt_download_directory(self, command: DownloadFile) -> None:
        def on_directory(directory: Path | None) -> None:
            if directory is None:
                _ = self.post_message(self.ResultReady(DownloadFinished(
                    request_id=command.request_id,
                    outcome=DownloadOutcome.CANCELLED,
                )))
                return
            _ = self.run_worker(self._download(command, directory), name="download", exclusive=True)

        default = str(self.grid_app.config.download_directory)
        _ = self.app.push_screen(PathPromptModal("Download to which directory?", default), on_directory)

    async def _download(self, command: DownloadFile, directory: Path) -> None:
        """Download one file into a directory (executed in worker)."""
        try:
            path = await self.grid_app.gateway.download(command.series_id, command.option_id, directory)
        except RECOVERABLE_ERRORS as e:
            message = self.describe_exception(
                e,
                "download file",
                {"series_id": command.series_id, "option_id": command.option_id, "path": str(directory)},
            )
            result = DownloadFinished(
                request_id=command.request_id,
                outcome=DownloadOutcome.FAILED,
                error=message,
            )
        else:
            result = DownloadFinished(
                request_id=command.request_id,
                outcome=DownloadOutcome.COMPLETE,
                path=path,
            )
        _ = self.post_message(self.ResultReady(result))

    def _prompt_export_path(self, command: ExportRows) -> None:
        def on_path(path: Path | None) -> None:
            if path is None:
                log.info("Export cancelled")
                return
            self._export(command, path)

        default = str(self.grid_app.config.download_directory / "series.csv")
        _ = self.app.push_screen(PathPromptModal("Export table to which file?", default), on_path)

    def _export(self, command: ExportRows, path: Path) -> None:
        try:
            written = self.grid_app.exporter.export(command.rows, path)
        except OSError as e:
            self.grid_app.machine.report_error(
                self.describe_exception(e, "export rows", {"path": str(path)})
            )
        else:
            self.notify_success(f"Exported {len(command.rows)} rows to {written}")
        self.refresh_view()
