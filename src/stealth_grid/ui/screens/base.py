"""Base screen class with common functionality for all screens."""

from typing import TYPE_CHECKING, Any, ClassVar

from textual.screen import Screen

import structlog

from ...services.errors import get_error_service, handle_error

if TYPE_CHECKING:
    from ..app import StealthGridApp

log = structlog.stdlib.get_logger()


class BaseScreen(Screen[None]):
    """Base screen class providing common functionality for application screens.

    This class provides:
    - Access to the parent application and its services
    - Logging integration
    - Notification and error message helpers
    """

    # Screen metadata - subclasses should override these
    SCREEN_TITLE: ClassVar[str] = "Screen"
    SCREEN_NAME: ClassVar[str] = "base"

    def __init__(self, name: str | None = None) -> None:
        """Initialize the base screen.

        Args:
            name: Optional name for the screen instance
        """
        super().__init__(name=name or self.SCREEN_NAME)

    @property
    def grid_app(self) -> "StealthGridApp":
        """Get the parent StealthGridApp instance.

        Raises:
            RuntimeError: If the screen is not attached to a StealthGridApp
        """
        from ..app import StealthGridApp

        if isinstance(self.app, StealthGridApp):
            return self.app
        raise RuntimeError("Screen is not attached to a StealthGridApp")

    async def on_mount(self) -> None:
        """Handle screen mount event."""
        log.info("Screen mounted", screen=self.SCREEN_NAME, title=self.SCREEN_TITLE)

    async def on_unmount(self) -> None:
        """Handle screen unmount event."""
        log.info("Screen unmounted", screen=self.SCREEN_NAME)

    def notify_error(self, message: str) -> None:
        self.notify(message, severity="error")
        log.error("User notification", message=message, screen=self.SCREEN_NAME)

    def notify_success(self, message: str) -> None:
        self.notify(message, severity="information")
        log.info("User notification", message=message, screen=self.SCREEN_NAME)

    def notify_warning(self, message: str) -> None:
        self.notify(message, severity="warning")
        log.warning("User notification", message=message, screen=self.SCREEN_NAME)

    def describe_exception(
        self,
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Convert an exception into the text shown to the user.

        The error is classified and logged through the shared error handling
        service before the message is produced.

        Args:
            error: The exception that occurred
            operation: Description of the operation that failed
            context: Additional context information

        Returns:
            User-facing message without suggested actions
        """
        user_error = handle_error(
            error=error,
            operation=operation,
            component=self.SCREEN_NAME,
            context=context,
        )
        return get_error_service().create_user_message(user_error, include_suggestions=False)
