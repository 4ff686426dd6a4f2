"""
Locate the expected executable inside an extracted release archive.
"""

import os
import stat
from pathlib import Path
from typing import Mapping, Optional

from localbin.constants import EXECUTABLE_NAME_OVERRIDES
from localbin.exceptions import NotFoundError
from localbin.log_utils import logger

from .interfaces import Pathish

_EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def release_file_name(name: str, overrides: Optional[Mapping[str, str]] = None) -> str:
    """
    Map a command name to the file name its release actually ships.

    e.g. 'nnn' is published as 'nnn-musl-static'.
    """
    table = EXECUTABLE_NAME_OVERRIDES if overrides is None else overrides
    return table.get(name, name)


def _is_executable_file(path: str) -> bool:
    try:
        st = os.stat(path, follow_symlinks=False)
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and bool(st.st_mode & _EXECUTE_BITS)


def locate_executable(
    root: Pathish, name: str, overrides: Optional[Mapping[str, str]] = None
) -> Path:
    """
    Find the first executable regular file named `name` under `root`.

    Directories are walked top-down with entries sorted by name, so the
    result is deterministic for a given layout. The name is first passed
    through the override table.

    Parameters:
        root (Pathish): Extraction directory to search.
        name (str): Command name of the tool.
        overrides (Optional[Mapping[str, str]]): Override table; defaults to EXECUTABLE_NAME_OVERRIDES.

    Returns:
        Path: The matching file.

    Raises:
        NotFoundError: If no executable regular file with that name exists.
    """
    target = release_file_name(name, overrides)
    if target != name:
        logger.debug(f"Looking for '{target}' (release name of '{name}')")

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            if filename != target:
                continue
            candidate = os.path.join(dirpath, filename)
            if _is_executable_file(candidate):
                logger.debug(f"Found executable {candidate}")
                return Path(candidate)

    raise NotFoundError(target, str(root))
