"""Modal dialog asking for a destination path."""

from pathlib import Path
from typing import ClassVar, override

from textual.app import ComposeResult
from textual.binding import Binding, BindingType
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Static

import structlog

log = structlog.stdlib.get_logger()


class PathPromptModal(ModalScreen[Path | None]):
    """Ask for a file or directory path.

    Dismisses with the entered path (user home expanded), or ``None`` when the
    user cancels or submits an empty value.
    """

    CSS: ClassVar[str] = """
    PathPromptModal {
        align: center middle;
    }

    #path-dialog {
        width: 80%;
        height: auto;
        padding: 1 2;
        border: thick $primary;
        background: $surface;
    }

    #path-title {
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }

    #path-hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("escape", "cancel", "Cancel", show=True),
    ]

    def __init__(self, title: str, default: str = "") -> None:
        """Initialize the dialog.

        Args:
            title: Question displayed above the input
            default: Initial input value
        """
        super().__init__()
        self._title = title
        self._default = default

    @override
    def compose(self) -> ComposeResult:
        with Vertical(id="path-dialog"):
            yield Static(self._title, id="path-title")
            yield Input(value=self._default, placeholder="Path", id="path-input")
            yield Static("enter: confirm  escape: cancel", id="path-hint")

    def on_mount(self) -> None:
        _ = self.query_one("#path-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        value = event.value.strip()
        if not value:
            log.info("Path prompt submitted empty", title=self._title)
            _ = self.dismiss(None)
            return
        _ = self.dismiss(Path(value).expanduser())

    def action_cancel(self) -> None:
        log.info("Path prompt cancelled", title=self._title)
        _ = self.dismiss(None)
