"""Configuration file management for gameobservers.

This module handles loading and validation of per-project configuration files
from `.gameobservers/config.toml`. Configuration files are discovered by
searching upward from the current working directory until a `.git` directory
is found.

The only process-wide settings are the callback error policy and logging
verbosity. Everything else is passed to the observers directly.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# Check Python version for tomllib support (Python 3.11+)
if sys.version_info < (3, 11):
    raise RuntimeError(
        "gameobservers requires Python 3.11 or greater for tomllib support. "
        f"Current version: {sys.version_info.major}.{sys.version_info.minor}"
    )

import tomllib  # Python 3.11+ standard library

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".gameobservers"
CONFIG_FILE_NAME = "config.toml"
CONFIG_TABLE = "gameobservers"

# "raise": callback exceptions propagate out of signal delivery.
# "log": callback exceptions are logged and the observer keeps running.
CALLBACK_ERROR_POLICIES = ("raise", "log")

_callback_error_policy = "raise"

PACKAGE_LOGGER = "gameobservers"

# Handler installed by setup_logging(verbose=True), and the level it replaced
_console_handler: Optional[logging.Handler] = None
_saved_level = logging.NOTSET


def get_callback_error_policy() -> str:
    """Get the process-wide callback error policy ("raise" or "log")."""
    return _callback_error_policy


def set_callback_error_policy(policy: str) -> None:
    """Set the process-wide callback error policy.

    Args:
        policy: "raise" or "log"

    Raises:
        ConfigError: If the policy is not recognized
    """
    global _callback_error_policy
    if policy not in CALLBACK_ERROR_POLICIES:
        raise ConfigError(
            f"Invalid callback error policy '{policy}': "
            f"must be one of {', '.join(repr(p) for p in CALLBACK_ERROR_POLICIES)}"
        )
    _callback_error_policy = policy


def find_config_dir(cwd: Path) -> Optional[Path]:
    """Find .gameobservers directory by searching upward from cwd.

    Stops at the directory containing .git (project boundary) or the
    filesystem root.

    Args:
        cwd: Current working directory to start search from

    Returns:
        The .gameobservers directory path if found, None otherwise
    """
    current = Path(cwd).resolve()
    root = Path(current.anchor)

    while True:
        config_dir = current / CONFIG_DIR_NAME
        if config_dir.is_dir():
            return config_dir
        if (current / ".git").exists() or current == root:
            return None
        current = current.parent


def find_config_file(cwd: Path) -> Optional[Path]:
    """Find .gameobservers/config.toml by searching upward from cwd.

    Args:
        cwd: Current working directory to start search from

    Returns:
        Path to config file if found, None otherwise
    """
    config_dir = find_config_dir(cwd)
    if config_dir is None:
        return None

    config_file = config_dir / CONFIG_FILE_NAME
    if config_file.is_file():
        return config_file

    return None


def validate_config(config: Dict[str, Any], config_file: Path) -> Dict[str, Any]:
    """Validate configuration values and filter out unknown keys.

    Args:
        config: Dictionary of configuration values
        config_file: Path to config file (for error messages)

    Returns:
        Validated config dictionary with only known keys

    Raises:
        ConfigError: If any validation fails
    """
    known_keys = {"callback_errors", "verbose"}

    # Filter out unknown keys (forward compatibility)
    validated_config = {k: v for k, v in config.items() if k in known_keys}

    if "callback_errors" in validated_config:
        value = validated_config["callback_errors"]
        if not isinstance(value, str):
            raise ConfigError(
                f"Invalid value for 'callback_errors' in {config_file}: "
                f"expected string, got {type(value).__name__}"
            )
        if value not in CALLBACK_ERROR_POLICIES:
            raise ConfigError(
                f"Invalid value for 'callback_errors' in {config_file}: "
                f"must be one of 'raise', 'log', got '{value}'"
            )

    if "verbose" in validated_config:
        if not isinstance(validated_config["verbose"], bool):
            raise ConfigError(
                f"Invalid value for 'verbose' in {config_file}: "
                f"expected boolean, got {type(validated_config['verbose']).__name__}"
            )

    return validated_config


def load_config(cwd: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from .gameobservers/config.toml, returning empty dict if not found.

    Raises an exception if the config file exists but cannot be parsed, so users can fix errors.

    Args:
        cwd: Current working directory to start search from. If None, uses Path.cwd()

    Returns:
        Dictionary with configuration values, or empty dict if config file doesn't exist

    Raises:
        ConfigError: If config file exists but contains invalid TOML, values, or cannot be read
    """
    if cwd is None:
        cwd = Path.cwd()

    config_file = find_config_file(cwd)
    if config_file is None:
        return {}

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            f"Failed to parse {config_file}: Invalid TOML syntax - {e}"
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Failed to read {config_file}: {e}"
        ) from e

    config = data.get(CONFIG_TABLE, {})
    if not isinstance(config, dict):
        raise ConfigError(
            f"Invalid [{CONFIG_TABLE}] section in {config_file}: expected a table"
        )
    return validate_config(config, config_file)


def setup_logging(verbose: bool = False) -> None:
    """Attach or remove the library's own stderr handler.

    Only the "gameobservers" package logger is touched; handlers on the root
    logger belong to the host application and are left alone. In verbose
    mode, DEBUG-level records from the library are shown on stderr. Turning
    verbose off removes the handler and restores the previous level.
    """
    global _console_handler, _saved_level
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    if _console_handler is not None:
        package_logger.removeHandler(_console_handler)
        package_logger.setLevel(_saved_level)
        _console_handler = None

    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        _saved_level = package_logger.level
        package_logger.addHandler(console_handler)
        package_logger.setLevel(logging.DEBUG)
        _console_handler = console_handler


def apply_config(config: Dict[str, Any]) -> None:
    """Apply a loaded configuration to the process-wide settings.

    Args:
        config: Validated configuration, as returned by load_config()
    """
    if "callback_errors" in config:
        set_callback_error_policy(config["callback_errors"])
    if "verbose" in config:
        setup_logging(verbose=config["verbose"])
    logger.debug(f"Applied configuration: {config}")
