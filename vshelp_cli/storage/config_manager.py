"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from vshelp_cli.exceptions import ConfigurationError
from vshelp_cli.models.config import (
    DEFAULT_CATALOG_BASE_URL,
    DEFAULT_PACKAGES_BASE_URL,
    AppConfig,
)
from vshelp_cli.utils.path import default_cache_directory

log = logging.getLogger(__name__)


def _defaults() -> dict[str, Any]:
    return {
        "cache_directory": str(default_cache_directory()),
        "vs_version": "visualstudio11",
        "locale": "",
        "catalog_base_url": DEFAULT_CATALOG_BASE_URL,
        "packages_base_url": DEFAULT_PACKAGES_BASE_URL,
        "max_attempts": 3,
        "proxy_address": "",
        "proxy_login": "",
        "proxy_password": "",
        "proxy_domain": "",
    }


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: the defaults are used instead, so the
        tool works before 'init' has been run.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated AppConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_from_file = self._get_config_as_dict()
        else:
            log.debug(f"No configuration file at '{self.config_file_path}', using defaults.")
            config_from_file = _defaults()

        # Override with CLI options
        if cli_options:
            config_from_file.update(cli_options)

        try:
            config_dir = self.config_file_path.parent
            return AppConfig(**config_from_file, config_path=str(config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save; missing keys get defaults.

        Raises:
            ConfigurationError: If the settings are invalid or cannot be written.
        """
        values = _defaults()
        values.update({k: v for k, v in settings.items() if v is not None})
        try:
            AppConfig(**values, config_path=str(self.config_file_path.parent))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}
        for key in sorted(AppConfig.get_ini_keys()):
            config["DEFAULT"][key] = str(values.get(key, ""))

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        defaults = _defaults()
        try:
            max_attempts = section.getint("max_attempts", defaults["max_attempts"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid 'max_attempts' value: {e}") from e
        values = {
            key: section.get(key, default)
            for key, default in defaults.items()
            if key != "max_attempts"
        }
        values["max_attempts"] = max_attempts
        return values

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        needs_saving = False
        config_section = self._parser["DEFAULT"]

        for key, default_value in _defaults().items():
            if key not in config_section:
                config_section[key] = str(default_value)
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
