# utils.py
"""
Utility functions for the application framework.

This module provides helpers, such as logging setup and configuration
loading, that are used across the application but do not belong to the
simulation itself.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

from constants import STUDENT_T_DOF

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys.
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Outputs: DEFAULT_CONFIG with every section overlaid by the file's
#     values. Unknown sections are kept as they are.
#   - Raises FileNotFoundError / json.JSONDecodeError after logging them.

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/regions.log",
    },
    "simulation": {
        "seed": None,
        "degrees_of_freedom": STUDENT_T_DOF,
        "settings_file": "regions.json",
        "watch_interval": 0.5,
    },
    "visualization": {
        "fullscreen": False,
        "width": 1080,
        "height": 1080,
        "fps": 60,
    },
    "run_control": {
        "max_frames": 0,
        "log_throttle_frames": 300,
        "profile": False,
    },
}


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', DEFAULT_CONFIG['logging']['format'])
    log_file_path = log_config.get('log_file', DEFAULT_CONFIG['logging']['log_file'])

    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def merge_config(overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Overlays a loaded configuration on DEFAULT_CONFIG, one section deep."""
    merged = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
    for section, values in overrides.items():
        if isinstance(values, dict) and section in merged:
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file and fills in missing values."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    if not isinstance(config, dict):
        raise ValueError(f"Configuration in {path} must be a JSON object.")
    return merge_config(config)
