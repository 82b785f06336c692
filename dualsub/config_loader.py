"""Handles loading configuration from YAML files."""

import copy
import logging
import os

import yaml

from .exceptions import ConfigurationError
from .models import SRTMode
from .overlay import OverlayLayout

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    'temp_dir': 'temp',
    'log_dir': 'logs',
    'log_file': 'dualsub.log',
    'ffmpeg_path': None,
    'ffprobe_path': None,
    'device': 'cuda',
    'whisper_model': 'medium',
    'whisper_fp16': True,
    'source_language': 'en',
    'translation_model': 'Helsinki-NLP/opus-mt-en-zh',
    'translation_batch_size': 16,
    'strict_intervals': False,
    'modes': ['source', 'target', 'bilingual'],
    'mode_suffixes': {'source': 'en', 'target': 'zh', 'bilingual': 'bilingual'},
    'burn_in_codec': 'libx264',
    'burn_in_audio_codec': 'aac',
    'burn_in_extension': 'mp4',
    'fonts': {'regular': None, 'bold': None},
    'overlay': {},
}

_MODE_NAMES = {mode.value for mode in SRTMode}

class ConfigLoader:
    """Loads configuration settings from a YAML file."""

    def load_config(self, config_path: str) -> dict:
        """
        Loads configuration from the specified YAML file path.

        Values from the file override DEFAULT_CONFIG; nested mappings
        (``mode_suffixes``, ``fonts``, ``overlay``) are merged key by key.

        Args:
            config_path: The path to the YAML configuration file.

        Returns:
            A dictionary containing the loaded configuration settings.

        Raises:
            FileNotFoundError: If the configuration file does not exist.
            ConfigurationError: If the file cannot be parsed as YAML, or
                                if values are invalid.
        """
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
            loaded = {}
        if not isinstance(loaded, dict):
            logger.error(f"Configuration file {config_path} did not load as a dictionary (root object).")
            raise ConfigurationError(f"Invalid YAML structure in {config_path}. Root must be a mapping (dictionary).")

        config = merge_config(loaded)
        validate_config(config)
        logger.info(f"Configuration loaded successfully from {config_path}")
        return config

def merge_config(overrides: dict) -> dict:
    """Returns DEFAULT_CONFIG updated with overrides, merging one level of nested mappings."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in overrides.items():
        if isinstance(config.get(key), dict) and isinstance(value, dict):
            config[key].update(value)
        else:
            config[key] = value
    return config

def validate_config(config: dict) -> None:
    """
    Checks the values the pipeline relies on.

    Raises:
        ConfigurationError: On the first invalid value.
    """
    modes = config.get('modes')
    if not isinstance(modes, list) or not modes:
        raise ConfigurationError("'modes' must be a non-empty list.")
    unknown = [m for m in modes if m not in _MODE_NAMES]
    if unknown:
        raise ConfigurationError(f"Unknown subtitle modes {unknown}; choose from {sorted(_MODE_NAMES)}.")

    suffixes = config.get('mode_suffixes')
    if not isinstance(suffixes, dict) or any(not suffixes.get(m) for m in _MODE_NAMES):
        raise ConfigurationError(f"'mode_suffixes' must name a suffix for each of {sorted(_MODE_NAMES)}.")

    for section in ('overlay', 'fonts'):
        if not isinstance(config.get(section), dict):
            raise ConfigurationError(f"'{section}' must be a mapping.")
    OverlayLayout.from_config(config['overlay'])

    if config.get('device') not in ('cuda', 'cpu'):
        raise ConfigurationError(f"'device' must be 'cuda' or 'cpu', got {config.get('device')!r}.")
    if not config.get('temp_dir'):
        raise ConfigurationError("Configuration missing 'temp_dir'.")

def mode_suffixes(config: dict) -> dict:
    """Maps each SRTMode to its filename suffix from the configuration."""
    return {mode: config['mode_suffixes'][mode.value] for mode in SRTMode}
