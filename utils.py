# utils.py
"""
Utility functions for the snowfall application.

Logging setup and configuration loading live here because they are shared
by the entry point and the tests but belong to neither the simulation nor
the rendering.
"""
import copy
import json
import logging
import logging.handlers
import os
from typing import Any, Dict, List, Optional

from constants import DEFAULT_CONFIG

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs: config with an optional "logging" section holding "level",
#     "format" and "log_file". A null log_file disables file logging.
#   - Side Effects: Replaces the root logger's handlers with a console
#     handler and, when configured, a rotating file handler. Creates the log
#     directory if needed.
#
# load_config(path: str, defaults: Optional[Dict] = None) -> Dict[str, Any]:
#   - Outputs: the file's settings merged over DEFAULT_CONFIG (or defaults).
#     Neither input is mutated.
#   - Raises: FileNotFoundError, json.JSONDecodeError, ValueError if the top
#     level is not a JSON object.
#
# validate_config(config: Dict[str, Any]) -> None:
#   - Raises: ValueError naming the first invalid setting.

LOG_MAX_BYTES = 1024 * 1024
LOG_BACKUP_COUNT = 5


def _build_handlers(log_file_path: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        # Rotates when the log reaches 1MB, keeps 5 backup logs.
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        ))
    return handlers


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the root logger from the "logging" section of the config.
    """
    defaults = DEFAULT_CONFIG['logging']
    log_config = config.get('logging', {})
    log_level = str(log_config.get('level', defaults['level'])).upper()
    log_format = log_config.get('format', defaults['format'])
    log_file_path = log_config.get('log_file', defaults['log_file'])

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)
    for handler in _build_handlers(log_file_path):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path or 'disabled'}")


def merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Returns a copy of base with overrides applied, merging nested sections."""
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(path: str, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Loads a JSON configuration file and fills in missing settings."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            overrides = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise

    if not isinstance(overrides, dict):
        msg = f"Configuration in {path} must be a JSON object, got {type(overrides).__name__}."
        logging.error(msg)
        raise ValueError(msg)

    config = merge_config(DEFAULT_CONFIG if defaults is None else defaults, overrides)
    logging.info("Configuration loaded successfully.")
    return config


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> None:
    """
    Checks the settings the application cannot run without.

    Logs the problem at CRITICAL and raises ValueError on the first failure.
    """
    snow = config.get('snowfall', {})
    vis = config.get('visualization', {})
    run = config.get('run_control', {})

    checks = [
        (_is_int(snow.get('max_snowflakes')) and snow['max_snowflakes'] > 0,
         "snowfall.max_snowflakes must be a positive integer"),
        (isinstance(snow.get('spawn_probability'), (int, float))
         and not isinstance(snow.get('spawn_probability'), bool)
         and 0.0 <= snow['spawn_probability'] <= 1.0,
         "snowfall.spawn_probability must be a number in [0, 1]"),
        (snow.get('seed') is None or _is_int(snow.get('seed')),
         "snowfall.seed must be an integer or null"),
        (_is_int(vis.get('window_width')) and vis['window_width'] > 0
         and _is_int(vis.get('window_height')) and vis['window_height'] > 0,
         "visualization.window_width and window_height must be positive integers"),
        (_is_int(vis.get('frame_rate_cap')) and vis['frame_rate_cap'] >= 0,
         "visualization.frame_rate_cap must be a non-negative integer"),
        (_is_int(run.get('max_frames')) and run['max_frames'] >= 0,
         "run_control.max_frames must be a non-negative integer"),
        (_is_int(run.get('log_throttle_frames')) and run['log_throttle_frames'] > 0,
         "run_control.log_throttle_frames must be a positive integer"),
    ]
    for ok, problem in checks:
        if not ok:
            msg = f"Configuration error: {problem}."
            logging.critical(msg)
            raise ValueError(msg)

    logging.debug("Configuration validated.")
