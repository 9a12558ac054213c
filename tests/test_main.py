"""Tests for the command-line entry point and application context."""

import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from stealth_grid.main import ApplicationContext, main, parse_arguments
from stealth_grid.services.errors import ConfigurationError
from stealth_grid.services.export import ExportService
from stealth_grid.services.grid_gateway import GridGatewayService
from stealth_grid.services.logging import DEFAULT_LOG_DIR


class TestParseArguments:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        args = parse_arguments([])

        assert args.config is None
        assert args.log_level is None
        assert args.log_dir == DEFAULT_LOG_DIR

    def test_explicit_values(self) -> None:
        args = parse_arguments(["--config", "/tmp/c.yaml", "--log-level", "DEBUG", "--log-dir", "/tmp/logs"])

        assert args.config == Path("/tmp/c.yaml")
        assert args.log_level == "DEBUG"
        assert args.log_dir == Path("/tmp/logs")

    def test_invalid_log_level_is_rejected(self) -> None:
        with pytest.raises(SystemExit):
            parse_arguments(["--log-level", "LOUD"])


class TestApplicationContext:
    """Tests for lazy service construction."""

    @pytest.mark.asyncio
    async def test_services_are_built_from_config(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "config.yaml"
            path.write_text(yaml.safe_dump({"api_key": "abc", "page_size": 20}), encoding="utf-8")
            context = ApplicationContext(config_path=path)

            assert context.config.page_size == 20
            assert isinstance(context.gateway, GridGatewayService)
            assert isinstance(context.exporter, ExportService)
            assert context.gateway is context.gateway
            assert context.http_client.base_url == "https://api.grid.gg"

            await context.cleanup()


class TestMain:
    """Tests for process exit behaviour."""

    def test_configuration_error_prints_and_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        error = ConfigurationError("API key is not set up correctly. Please set up the API key.")

        with patch("stealth_grid.main.setup_logging"), \
                patch.object(ApplicationContext, "bootstrap", side_effect=error), \
                patch("stealth_grid.main.run_tui", new=AsyncMock(return_value=0)) as run_tui:
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert "API key is not set up correctly" in capsys.readouterr().out
        run_tui.assert_not_awaited()

    def test_normal_run_exits_with_tui_code(self) -> None:
        with patch("stealth_grid.main.setup_logging"), \
                patch.object(ApplicationContext, "bootstrap"), \
                patch("stealth_grid.main.run_tui", new=AsyncMock(return_value=0)):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 0

    def test_keyboard_interrupt_exits_130(self) -> None:
        with patch("stealth_grid.main.setup_logging"), \
                patch.object(ApplicationContext, "bootstrap", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 130
