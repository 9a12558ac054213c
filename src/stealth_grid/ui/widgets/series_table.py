"""Table of series rows."""

from collections.abc import Sequence
from typing import ClassVar

from textual.widgets import DataTable

from ...models import SeriesRow
from ...services.export import EXPORT_HEADER


class SeriesTable(DataTable[str], can_focus=False):
    """Read-only series table; the row cursor mirrors the state machine."""

    DEFAULT_CSS: ClassVar[str] = """
    SeriesTable {
        height: 1fr;
        border: solid $primary-darken-2;
    }
    """

    _series_rows: tuple[SeriesRow, ...]

    def __init__(self, name: str | None = None, id: str | None = None) -> None:
        super().__init__(name=name, id=id, cursor_type="row", zebra_stripes=True)
        self._series_rows = ()

    def on_mount(self) -> None:
        self._ensure_columns()

    def _ensure_columns(self) -> None:
        if not self.columns:
            _ = self.add_columns(*EXPORT_HEADER)

    def set_rows(self, rows: Sequence[SeriesRow]) -> None:
        """Replace the table contents, skipping the redraw if nothing changed."""
        self._ensure_columns()
        rows = tuple(rows)
        if rows == self._series_rows:
            return
        self._series_rows = rows
        _ = self.clear()
        for row in rows:
            _ = self.add_row(*row.as_record())

    def set_cursor(self, index: int) -> None:
        if self.row_count == 0:
            return
        self.move_cursor(row=max(0, min(index, self.row_count - 1)), animate=False)
