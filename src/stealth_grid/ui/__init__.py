"""Textual user interface for the series browser."""

from .app import StealthGridApp
from .state import BrowserState, BrowserStateMachine

__all__ = ["BrowserState", "BrowserStateMachine", "StealthGridApp"]
