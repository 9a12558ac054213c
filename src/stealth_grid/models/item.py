"""Selectable list item models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SelectableItem:
    """An entry in one of the selection lists (game titles or download options)."""
    id: str
    title: str
    description: str = ""


# Titles offered on the first screen, keyed by their GRID title id
DEFAULT_TITLES: tuple[SelectableItem, ...] = (
    SelectableItem(id="3", title="League of Legends", description="ID: 3"),
    SelectableItem(id="6", title="Valorant", description="ID: 6"),
    SelectableItem(id="28", title="CS 2", description="ID: 28"),
)
