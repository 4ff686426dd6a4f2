"""
Best-effort version detection for installed tools.

The release tag is the preferred source. Probing the installed binary with
common version flags is a fallback only; many tools print nothing useful,
and an empty result is not an error.
"""

import re
import subprocess
from typing import Optional, Sequence

from rich.markup import escape

from localbin.constants import VERSION_FLAGS, VERSION_PROBE_TIMEOUT, VERSION_TOKEN_PATTERN
from localbin.log_utils import logger

from .interfaces import Pathish

VERSION_TOKEN_RX = re.compile(VERSION_TOKEN_PATTERN)


def extract_version_token(text: Optional[str]) -> Optional[str]:
    """
    Return the first version-like token (e.g. "v1.2.3", "0.24") in `text`.

    Parameters:
        text (Optional[str]): Release tag or a line of program output.

    Returns:
        Optional[str]: The token, or None if `text` is empty or contains none.
    """
    if not text:
        return None
    match = VERSION_TOKEN_RX.search(text)
    return match.group(0) if match else None


def probe_executable_version(
    executable: Pathish,
    flags: Sequence[str] = VERSION_FLAGS,
    timeout: float = VERSION_PROBE_TIMEOUT,
) -> Optional[str]:
    """
    Run `executable` with each flag in turn and parse a version from the first output line.

    Output from stdout and stderr is considered together, whatever the exit
    status. The first flag whose first line contains a version token wins.

    Returns:
        Optional[str]: The version token, or None if no flag produced one.
    """
    for flag in flags:
        try:
            result = subprocess.run(
                [str(executable), flag],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                timeout=timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(
                f"Version probe {escape(str(executable))} {flag} failed: "
                f"{escape(str(e))}"
            )
            continue

        output = result.stdout.decode("utf-8", errors="replace").strip()
        if not output:
            continue
        first_line = output.splitlines()[0]
        version = extract_version_token(first_line)
        if version:
            logger.debug(
                f"Version probe {escape(str(executable))} {flag}: {escape(first_line)}"
            )
            return version
    return None


def determine_version(release_tag: Optional[str], executable: Pathish) -> Optional[str]:
    """
    Determine the installed version from the release tag, else by probing the binary.
    """
    version = extract_version_token(release_tag)
    if version:
        return version
    return probe_executable_version(executable)
