"""Screen components for the series browser."""

from .base import BaseScreen
from .browser import BrowserScreen
from .path_prompt import PathPromptModal

__all__ = [
    "BaseScreen",
    "BrowserScreen",
    "PathPromptModal",
]
