"""
Configuration loading for localbin.

Settings come from three layers: built-in defaults, an optional YAML file in
the platform config directory, and environment variables (which win).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs
import yaml
from rich.markup import escape

from localbin.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    CONFIG_KEYS,
    GITHUB_API_BASE,
    GITHUB_TOKEN_ENV_VAR,
)
from localbin.env_utils import default_bin_dir, get_bin_home_override, get_home_dir
from localbin.exceptions import ConfigurationError
from localbin.log_utils import logger


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings for one localbin invocation."""

    bin_dir: Path
    """Directory executables are installed into"""

    home: Path
    """Home directory holding the shell startup files"""

    api_base: str = GITHUB_API_BASE
    """Base URL of the GitHub REST API"""

    github_token: Optional[str] = None
    """Token sent with API requests, if any"""

    color: bool = True
    """Whether console output is colored"""


def get_config_file_path() -> Path:
    return Path(platformdirs.user_config_dir(APP_NAME)) / CONFIG_FILE_NAME


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the optional YAML configuration file.

    Parameters:
        path (Optional[Path]): Explicit file to read; defaults to `config.yaml` in the platform config directory.

    Returns:
        Dict[str, Any]: The recognized keys from the file, or an empty dict when no file exists.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML, or is not a mapping.
    """
    config_path = path or get_config_file_path()
    if not config_path.exists():
        logger.debug(f"No configuration file at {escape(str(config_path))}")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to load configuration from {config_path}", details=str(e)
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration in {config_path} must be a mapping",
            details=f"got {type(data).__name__}",
        )

    config: Dict[str, Any] = {}
    for key, value in data.items():
        if key in CONFIG_KEYS:
            config[key] = value
        else:
            logger.debug(
                f"Ignoring unknown configuration key: {escape(str(key))}"
            )
    return config


def get_effective_github_token(
    github_token: Optional[str], allow_env_token: bool = True
) -> Optional[str]:
    """
    Determine the GitHub token to use, preferring the explicit argument over the environment.

    Parameters:
        github_token (Optional[str]): Explicit token to use; leading and trailing whitespace are ignored.
        allow_env_token (bool): If True, fall back to the `GITHUB_TOKEN` environment variable when no explicit token is provided.

    Returns:
        Optional[str]: The chosen token with surrounding whitespace removed, or `None` if no token is available.
    """
    candidate = (github_token or "").strip()
    if candidate:
        return candidate
    if not allow_env_token:
        return None
    env_token = os.environ.get(GITHUB_TOKEN_ENV_VAR)
    return env_token.strip() if env_token and env_token.strip() else None


def load_settings(
    config: Optional[Dict[str, Any]] = None, color: bool = True
) -> Settings:
    """
    Build the Settings for this run.

    The install directory is taken from `XDG_BIN_HOME` when set, then from the
    `BIN_DIR` configuration key, and finally defaults to `~/.local/bin`.

    Parameters:
        config (Optional[Dict[str, Any]]): Already-loaded configuration; loaded from disk when omitted.
        color (bool): Whether colored output is enabled.

    Returns:
        Settings: The resolved settings.
    """
    if config is None:
        config = load_config()

    home = get_home_dir()
    override = get_bin_home_override()
    if override:
        bin_dir = Path(override).expanduser()
    elif config.get("BIN_DIR"):
        bin_dir = Path(str(config["BIN_DIR"])).expanduser()
    else:
        bin_dir = default_bin_dir(home)

    api_base = str(config.get("API_BASE") or GITHUB_API_BASE).rstrip("/")
    token = get_effective_github_token(
        config.get("GITHUB_TOKEN"),
        allow_env_token=bool(config.get("ALLOW_ENV_TOKEN", True)),
    )

    return Settings(
        bin_dir=bin_dir,
        home=home,
        api_base=api_base,
        github_token=token,
        color=color,
    )
