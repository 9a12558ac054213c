"""Selection list of ``SelectableItem`` entries."""

from collections.abc import Sequence
from typing import ClassVar

from rich.text import Text
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from ...models import SelectableItem


class ItemList(OptionList, can_focus=False):
    """Option list whose highlight is driven by the state machine.

    The list never takes focus, so every key press reaches the screen and
    the state machine decides what it means.
    """

    DEFAULT_CSS: ClassVar[str] = """
    ItemList {
        height: auto;
        max-height: 100%;
        border: solid $primary-darken-2;
        background: $surface;
    }
    """

    _entries: tuple[SelectableItem, ...]

    def __init__(self, name: str | None = None, id: str | None = None) -> None:
        super().__init__(name=name, id=id)
        self._entries = ()

    def set_items(self, items: Sequence[SelectableItem]) -> None:
        """Replace the entries, keeping the widget untouched if they are unchanged."""
        items = tuple(items)
        if items == self._entries:
            return
        self._entries = items
        _ = self.clear_options()
        _ = self.add_options([
            Option(
                Text.assemble((item.title, "bold"), "\n", (item.description, "dim")),
                id=item.id,
            )
            for item in items
        ])

    def set_cursor(self, index: int) -> None:
        if not self._entries:
            self.highlighted = None
            return
        self.highlighted = max(0, min(index, len(self._entries) - 1))
