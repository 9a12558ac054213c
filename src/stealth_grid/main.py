"""Main entry point for the stealth-grid application.

This module provides the application entry point with:
- Command-line argument parsing
- First-run API key bootstrap
- Application initialization and dependency injection
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from . import __version__
from .models import AppConfig
from .services.config import VALID_LOG_LEVELS, ConfigurationService
from .services.errors import ConfigurationError
from .services.export import ExportService
from .services.filesystem import FileSystemService
from .services.grid_gateway import GridGatewayService
from .services.http_client import HttpClientService
from .services.logging import DEFAULT_LOG_DIR, setup_logging


log = structlog.stdlib.get_logger()


class ApplicationContext:
    """Container for application services.

    This class manages the lifecycle of all application services
    and provides dependency injection for the UI components.
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the application context.

        Args:
            config_path: Path to configuration file
        """
        self._config_path: Path | None = config_path

        # Services (initialized lazily)
        self._config_service: ConfigurationService | None = None
        self._filesystem: FileSystemService | None = None
        self._http_client: HttpClientService | None = None
        self._gateway: GridGatewayService | None = None
        self._exporter: ExportService | None = None

        self._config: AppConfig | None = None

    @property
    def config_service(self) -> ConfigurationService:
        """Get the configuration service (lazy initialization)."""
        if self._config_service is None:
            self._config_service = ConfigurationService(config_path=self._config_path)
        return self._config_service

    @property
    def config(self) -> AppConfig:
        """Get the current application configuration."""
        if self._config is None:
            self._config = self.config_service.load_config()
        return self._config

    def bootstrap(self) -> AppConfig:
        """Load the configuration, prompting for the API key on first run.

        Raises:
            ConfigurationError: If no usable configuration can be produced
        """
        self._config = self.config_service.bootstrap()
        return self._config

    @property
    def filesystem(self) -> FileSystemService:
        """Get the file system service (lazy initialization)."""
        if self._filesystem is None:
            self._filesystem = FileSystemService()
        return self._filesystem

    @property
    def http_client(self) -> HttpClientService:
        """Get the HTTP client service (lazy initialization)."""
        if self._http_client is None:
            self._http_client = HttpClientService.from_config(self.config, self.filesystem)
        return self._http_client

    @property
    def gateway(self) -> GridGatewayService:
        """Get the GRID gateway service (lazy initialization)."""
        if self._gateway is None:
            self._gateway = GridGatewayService(
                http_client=self.http_client,
                filesystem=self.filesystem,
                page_size=self.config.page_size,
            )
        return self._gateway

    @property
    def exporter(self) -> ExportService:
        """Get the CSV export service (lazy initialization)."""
        if self._exporter is None:
            self._exporter = ExportService(filesystem=self.filesystem)
        return self._exporter

    async def cleanup(self) -> None:
        """Clean up resources and close connections."""
        log.info("Cleaning up application resources")

        if self._http_client is not None:
            await self._http_client.close()

        log.info("Application cleanup complete")


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        config: Path | None,
        log_level: str | None,
        log_dir: Path,
    ) -> None:
        self.config: Path | None = config
        self.log_level: str | None = log_level
        self.log_dir: Path = log_dir


def parse_arguments(argv: list[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to ``sys.argv[1:]``)

    Returns:
        Parsed arguments container
    """
    parser = argparse.ArgumentParser(
        prog="stealth-grid",
        description="Browse GRID esports series, export them to CSV and download their files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stealth-grid                          Start the interactive browser
  stealth-grid --log-level DEBUG        Start with debug logging
  stealth-grid --config ./config.yaml   Use a custom configuration file
        """
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ~/.config/stealth-grid-cli/config.yaml)"
    )

    _ = parser.add_argument(
        "--log-level",
        choices=list(VALID_LOG_LEVELS),
        default=None,
        help="Set the logging level (default: log_level from the configuration, else INFO)"
    )

    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=DEFAULT_LOG_DIR,
        help="Directory for log files (default: ~/.config/stealth-grid-cli/logs)"
    )

    ns = parser.parse_args(argv)

    # Extract typed values from namespace
    config_val: Path | None = ns.config
    log_level_val: str | None = ns.log_level
    log_dir_val: Path = ns.log_dir

    return ParsedArgs(
        config=config_val,
        log_level=log_level_val,
        log_dir=log_dir_val,
    )


async def run_tui(context: ApplicationContext) -> int:
    """Run the TUI application.

    Args:
        context: Application context with a loaded configuration

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    from .ui.app import StealthGridApp

    log.info("Starting TUI application")

    try:
        app = StealthGridApp(
            gateway=context.gateway,
            exporter=context.exporter,
            config=context.config,
        )

        await app.run_async()

        log.info("TUI application exited normally")
        return 0

    except Exception as e:
        log.error("TUI application error", error=str(e), exc_info=True)
        return 1
    finally:
        await context.cleanup()


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    # Logging never writes to the console once the TUI owns the terminal
    _ = setup_logging(
        log_level=args.log_level or "INFO",
        log_dir=args.log_dir,
        tui_mode=True,
    )

    log.info(
        "Starting stealth-grid",
        version=__version__,
        config_path=str(args.config) if args.config else "default",
    )

    context = ApplicationContext(config_path=args.config)

    try:
        try:
            config = context.bootstrap()
        except ConfigurationError as e:
            log.error("Configuration error", error=e.message, setting=e.setting)
            print(e.message)
            sys.exit(1)

        if args.log_level is None and config.log_level != "INFO":
            _ = setup_logging(log_level=config.log_level, log_dir=args.log_dir, tui_mode=True)

        exit_code = asyncio.run(run_tui(context))

    except KeyboardInterrupt:
        log.info("Application interrupted by user")
        exit_code = 130  # Standard exit code for SIGINT

    except Exception as e:
        log.error("Unhandled exception", error=str(e), exc_info=True)
        print(f"Fatal error: {e}", file=sys.stderr)
        exit_code = 1

    log.info("Application exiting", exit_code=exit_code)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
