"""Main Textual application wiring the state machine to its collaborators."""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import ClassVar

from textual.app import App
from textual.binding import Binding, BindingType

import structlog

from ..models import DEFAULT_TITLES, AppConfig, SelectableItem
from ..services.export import ExportService
from ..services.grid_gateway import GridGatewayService
from .screens import BrowserScreen
from .state import BrowserStateMachine

log = structlog.stdlib.get_logger()


class StealthGridApp(App[None]):
    """Root Textual application for browsing and downloading GRID series.

    The application owns the state machine and the services its commands are
    executed against; the browser screen renders the state and runs the
    commands.
    """

    CSS: ClassVar[str] = """
    Screen {
        background: $surface;
    }
    """

    # Quit stays reachable even while a text input has focus
    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        gateway: GridGatewayService,
        exporter: ExportService,
        config: AppConfig,
        titles: Sequence[SelectableItem] = DEFAULT_TITLES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the application with injected services.

        Args:
            gateway: Gateway used for searches, file listings and downloads
            exporter: CSV export service
            config: Loaded application configuration
            titles: Game titles offered on the first screen
            clock: Optional time source for the search window
        """
        super().__init__()
        self.title = "Stealth GRID"  # type: ignore[assignment]
        self.sub_title = "GRID esports series browser"  # type: ignore[assignment]
        self._gateway = gateway
        self._exporter = exporter
        self._config = config
        if clock is None:
            self._machine = BrowserStateMachine(titles)
        else:
            self._machine = BrowserStateMachine(titles, clock=clock)

        log.info("StealthGridApp initialized", titles=len(self._machine.games))

    @property
    def machine(self) -> BrowserStateMachine:
        return self._machine

    @property
    def gateway(self) -> GridGatewayService:
        return self._gateway

    @property
    def exporter(self) -> ExportService:
        return self._exporter

    @property
    def config(self) -> AppConfig:
        return self._config

    async def on_mount(self) -> None:
        """Handle application mount event."""
        log.info("Application mounted")
        await self.push_screen(BrowserScreen())
