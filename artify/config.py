"""Configuration for the Artify application.

Settings are merged from the built-in defaults, an optional JSON file and
environment variables, in that order.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    'api_key': '',
    'model': 'gemini-2.0-flash-preview-image-generation',
    'api_base': 'https://generativelanguage.googleapis.com/v1beta',
    'request_timeout': 120.0,
    'collage_path': str(Path.home() / '.artify' / 'collage-data.json'),
    'max_collage_entries': 50,
    'front_camera_index': 0,
    'rear_camera_index': 1,
    'first_frame_timeout': 3.0,
    'switch_settle_delay': 0.3,
    'camera_idle_timeout': 30.0,
    'session_timeout': 3600.0,
    'log_level': 'INFO',
}

# Environment variable -> (config key, type)
ENV_OVERRIDES = {
    'GOOGLE_API_KEY': ('api_key', str),
    'GEMINI_API_KEY': ('api_key', str),
    'ARTIFY_MODEL': ('model', str),
    'ARTIFY_API_BASE': ('api_base', str),
    'ARTIFY_REQUEST_TIMEOUT': ('request_timeout', float),
    'ARTIFY_COLLAGE_PATH': ('collage_path', str),
    'ARTIFY_FRONT_CAMERA_INDEX': ('front_camera_index', int),
    'ARTIFY_REAR_CAMERA_INDEX': ('rear_camera_index', int),
    'ARTIFY_LOG_LEVEL': ('log_level', str),
}


def load_config(path: Optional[Union[str, Path]] = None,
                environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Load the application configuration.

    Args:
        path: Optional JSON config file. Defaults to $ARTIFY_CONFIG if set.
        environ: Environment mapping, defaults to os.environ

    Returns:
        Configuration dictionary

    Raises:
        ValueError: If the config file is not a JSON object or a value has the wrong type
    """
    environ = os.environ if environ is None else environ
    config = dict(DEFAULT_CONFIG)

    path = path or environ.get('ARTIFY_CONFIG')
    if path:
        config_path = Path(path)
        with open(config_path, 'r', encoding='utf-8') as f:
            file_config = json.load(f)
        if not isinstance(file_config, dict):
            raise ValueError(f"Config file {config_path} must contain a JSON object")
        unknown = set(file_config) - set(DEFAULT_CONFIG)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
        config.update({k: v for k, v in file_config.items() if k in DEFAULT_CONFIG})
        logger.debug(f"Loaded config from {config_path}")

    # Later entries win, so GEMINI_API_KEY beats GOOGLE_API_KEY
    for env_name, (key, cast) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == '':
            continue
        try:
            config[key] = cast(value)
        except ValueError:
            raise ValueError(f"Invalid value for {env_name}: {value!r}")

    return config
