"""Handles loading configuration from YAML files."""

import yaml
import os
import logging
from typing import Optional
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36"
)

DEFAULT_CONFIG = {
    # Upstream service
    'base_url': "https://www.youtube.com",
    'user_agent': DESKTOP_USER_AGENT,
    'accept': "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    'accept_language': "en-US,en;q=0.9",
    'connect_timeout': 15.0,
    'read_timeout': 30.0,
    'innertube_client_name': "ANDROID",
    'innertube_client_version': "20.10.38",
    # Playback
    'loop_half_width': 5.0,
    'loop_shift_seconds': 10.0,
    # Output
    'log_dir': "logs",
    'log_file': "captionloop.log",
    'output_format': "text",
}

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: Optional[str]) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Values from the file are merged over DEFAULT_CONFIG, so a partial file
        (or no file at all, when config_path is None) is valid.

        Args:
            config_path: The path to the YAML configuration file, or None.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML or
                              if there are other reading errors.
        """
        config = dict(DEFAULT_CONFIG)
        if config_path is None:
            logger.info("No configuration file given, using defaults.")
            return config

        logger.info(f"Attempting to load configuration from: {config_path}")
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found at path: {config_path}")
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            logger.error(f"Configuration path is not a file: {config_path}")
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Invalid YAML format in {config_path}: {e}") from e
        except IOError as e:
            logger.error(f"Error reading configuration file {config_path}: {e}", exc_info=True)
            raise ConfigurationError(f"Could not read configuration file {config_path}: {e}") from e

        if loaded is None:
            # Empty file
            loaded = {}
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        unknown = sorted(set(loaded) - set(DEFAULT_CONFIG))
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys in {config_path}: {', '.join(unknown)}")
        config.update({key: value for key, value in loaded.items() if key in DEFAULT_CONFIG})
        self._validate(config, config_path)
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config

    def _validate(self, config: dict, config_path: str) -> None:
        for key in ('connect_timeout', 'read_timeout', 'loop_half_width', 'loop_shift_seconds'):
            value = config[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"'{key}' in {config_path} must be a positive number, got {value!r}")
        if str(config['output_format']).lower() not in ('text', 'srt'):
            raise ConfigurationError(f"Unsupported output format '{config['output_format']}' in {config_path}")
