"""
Keep ~/.local/bin on PATH for future login and interactive shells.
"""

from pathlib import Path
from typing import List, Sequence

from rich.markup import escape

from localbin.constants import PATH_EXPORT_LINE, SHELL_RC_FILES
from localbin.log_utils import logger


def _has_line(path: Path, line: str) -> bool:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return any(existing.rstrip("\r\n") == line for existing in f)


def _append_line(path: Path, line: str) -> None:
    prefix = ""
    if path.exists() and path.stat().st_size > 0:
        with open(path, "rb") as f:
            f.seek(-1, 2)
            if f.read(1) != b"\n":
                prefix = "\n"
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")


def add_path_export(
    home: Path,
    rc_files: Sequence[str] = SHELL_RC_FILES,
    line: str = PATH_EXPORT_LINE,
) -> List[Path]:
    """
    Append the PATH export line to each existing shell startup file that lacks it.

    If no file was written and `~/.profile` does not exist, it is created
    holding just the line. Running this again changes nothing.

    Parameters:
        home (Path): Home directory containing the startup files.
        rc_files (Sequence[str]): Startup file names relative to `home`.
        line (str): The exact line to ensure is present.

    Returns:
        List[Path]: The files that were modified or created.
    """
    written: List[Path] = []
    for name in rc_files:
        rc_path = home / name
        if not rc_path.is_file():
            continue
        shown = escape(str(rc_path))
        try:
            if _has_line(rc_path, line):
                logger.debug(f"PATH export already present in {shown}")
                continue
            _append_line(rc_path, line)
        except OSError as e:
            logger.warning(f"Could not update {shown}: {escape(str(e))}")
            continue
        logger.info(f"Added PATH export to {shown}")
        written.append(rc_path)

    profile = home / ".profile"
    if not written and not profile.exists():
        try:
            profile.write_text(f"{line}\n", encoding="utf-8")
        except OSError as e:
            logger.warning(
                f"Could not create {escape(str(profile))}: {escape(str(e))}"
            )
        else:
            logger.info(f"Created {escape(str(profile))} with PATH export")
            written.append(profile)
    return written
