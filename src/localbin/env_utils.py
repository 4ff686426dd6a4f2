"""
Environment detection helpers.
"""

from __future__ import annotations

import os
import platform
from pathlib import Path

from localbin.constants import ARCH_PATTERNS, BIN_HOME_ENV_VAR, DEFAULT_BIN_SUBDIR
from localbin.exceptions import UnsupportedArchitectureError


def detect_arch_pattern(machine: str | None = None) -> str:
    """
    Map the host CPU identifier to the regex fragment used to match asset names.

    Parameters:
        machine (str | None): CPU identifier to map; defaults to `platform.machine()`.

    Returns:
        str: The architecture token, e.g. "(x86_64|amd64|linux64)".

    Raises:
        UnsupportedArchitectureError: If the identifier is not a supported architecture.
    """
    machine = machine if machine is not None else platform.machine()
    pattern = ARCH_PATTERNS.get(machine.lower())
    if pattern is None:
        raise UnsupportedArchitectureError(machine)
    return pattern


def get_home_dir() -> Path:
    return Path(os.environ.get("HOME") or Path.home())


def get_bin_home_override() -> str | None:
    """
    Return the XDG_BIN_HOME override, or None when it is unset or empty.
    """
    value = os.environ.get(BIN_HOME_ENV_VAR, "").strip()
    return value or None


def default_bin_dir(home: Path | None = None) -> Path:
    return (home or get_home_dir()).joinpath(*DEFAULT_BIN_SUBDIR)
