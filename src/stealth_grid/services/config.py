"""Configuration service for the API credential file and settings."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog
import yaml

from ..models import AppConfig
from .errors import ConfigurationError

log = structlog.stdlib.get_logger()


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "stealth-grid-cli" / "config.yaml"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool, errors: list[str] | None = None) -> None:
        self.is_valid: bool = is_valid
        self.errors: list[str] = errors or []


class ConfigurationService:
    """Service for reading, bootstrapping and validating the YAML configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path: Path = config_path or DEFAULT_CONFIG_PATH
        log.info("Configuration service initialized", config_path=str(self.config_path))

    def bootstrap(
        self,
        prompt: Callable[[str], str] = input,
        echo: Callable[[str], None] = print,
    ) -> AppConfig:
        """Load the configuration, asking for the API key on first run.

        When the file is missing or holds an empty ``api_key`` the user is
        prompted once and the answer is persisted before loading.

        Raises:
            ConfigurationError: If the key is still empty or the file is unusable
        """
        if not self.has_api_key():
            echo("Configuration not found. Please set up the API key:")
            api_key = prompt("Enter the API key: ").strip()
            if not api_key:
                raise ConfigurationError(
                    "API key is not set up correctly. Please set up the API key.",
                    setting="api_key",
                    path=str(self.config_path),
                )
            self.save_api_key(api_key)
            echo("Configuration saved successfully.")

        return self.load_config()

    def has_api_key(self) -> bool:
        """Check whether the configuration file exists and holds a non-empty key."""
        if not self.config_path.exists():
            return False
        data = self._read_raw()
        api_key = data.get("api_key")
        return isinstance(api_key, str) and bool(api_key.strip())

    def load_config(self) -> AppConfig:
        """Load configuration from the YAML file.

        Raises:
            ConfigurationError: If the file is missing, unreadable, has no key,
                or holds invalid settings
        """
        if not self.config_path.exists():
            raise ConfigurationError(
                "Configuration file not found. Please set up the API key.",
                path=str(self.config_path),
            )

        data = self._read_raw()
        config = self._dict_to_config(data)

        validation_result = self.validate_config(config)
        if not validation_result.is_valid:
            log.error("Invalid configuration", errors=validation_result.errors)
            raise ConfigurationError(
                f"Invalid configuration: {', '.join(validation_result.errors)}",
                path=str(self.config_path),
            )

        log.info("Configuration loaded successfully", api_url=config.api_url)
        return config

    def save_api_key(self, api_key: str) -> None:
        """Persist the API key, keeping any other settings already in the file."""
        data: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                data = self._read_raw()
            except ConfigurationError:
                log.warning("Overwriting unreadable configuration file", path=str(self.config_path))
                data = {}
        data["api_key"] = api_key.strip()

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
        except OSError as e:
            log.error("Failed to save configuration", path=str(self.config_path), error=str(e))
            raise ConfigurationError(
                "Error saving configuration.",
                path=str(self.config_path),
                original_error=e,
            ) from e

        log.info("API key saved", path=str(self.config_path))

    def validate_config(self, config: AppConfig) -> ValidationResult:
        """Validate configuration settings."""
        errors = []

        if not config.api_key.strip():
            errors.append("api_key cannot be empty")

        if not config.api_url.startswith(("http://", "https://")):
            errors.append("api_url must be an http(s) URL")

        if not isinstance(config.download_directory, Path):
            errors.append("download_directory must be a Path object")

        if not isinstance(config.request_timeout, (int, float)) or config.request_timeout <= 0:
            errors.append("request_timeout must be a positive number")
        elif config.request_timeout > 600:
            errors.append("request_timeout should not exceed 600 seconds")

        if not isinstance(config.page_size, int) or config.page_size < 1:
            errors.append("page_size must be a positive integer")
        elif config.page_size > 50:
            errors.append("page_size should not exceed 50")

        if config.log_level not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}")

        return ValidationResult(len(errors) == 0, errors)

    def _read_raw(self) -> dict[str, Any]:
        """Read the YAML document as a mapping."""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            log.error("Failed to read configuration", path=str(self.config_path), error=str(e))
            raise ConfigurationError(
                "Error reading configuration file.",
                path=str(self.config_path),
                original_error=e,
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Configuration file must contain a YAML mapping.",
                path=str(self.config_path),
            )
        return data

    def _dict_to_config(self, data: dict[str, Any]) -> AppConfig:
        """Convert the raw YAML mapping to AppConfig."""
        api_key_raw = data.get("api_key")
        api_key = api_key_raw.strip() if isinstance(api_key_raw, str) else ""
        if not api_key:
            raise ConfigurationError(
                "API key is not set up correctly. Please set up the API key.",
                setting="api_key",
                path=str(self.config_path),
            )

        download_raw = data.get("download_directory")
        download_directory = (
            Path(str(download_raw)).expanduser() if download_raw else Path.home() / "Downloads"
        )

        timeout_raw = data.get("request_timeout", 30.0)
        page_size_raw = data.get("page_size", 50)
        log_level_raw = data.get("log_level", "INFO")

        return AppConfig(
            api_key=api_key,
            download_directory=download_directory,
            api_url=str(data.get("api_url") or "https://api.grid.gg").rstrip("/"),
            request_timeout=float(timeout_raw) if isinstance(timeout_raw, (int, float)) else 30.0,
            page_size=page_size_raw if isinstance(page_size_raw, int) else 50,
            log_level=str(log_level_raw).upper() if isinstance(log_level_raw, str) else "INFO",
        )
