import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from localbin.constants import (
    LOG_DATE_FORMAT,
    LOG_LEVEL_ENV_VAR,
    LOGGER_NAME,
    NO_COLOR_ENV_VAR,
)

logger = logging.getLogger(LOGGER_NAME)

# Console handler is rebuilt when color or verbosity changes
_console_handler: Optional[RichHandler] = None
_color_enabled = True


def _build_console_handler(level: int, color: bool) -> RichHandler:
    """
    Create the stderr RichHandler used for progress and diagnostic output.

    Timestamps and level names are only rendered below INFO so that normal
    runs print clean one-line progress messages.

    Parameters:
        level (int): Logging level for the handler.
        color (bool): When False, the console is created without any color system.

    Returns:
        RichHandler: A configured console handler using a message-only formatter.
    """
    console = Console(
        stderr=True,
        color_system="auto" if color else None,
        highlight=False,
    )
    verbose = level < logging.INFO
    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=verbose,
        show_level=verbose,
        show_path=False,
        markup=True,
        log_time_format=LOG_DATE_FORMAT,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def _install_console_handler(level: int) -> None:
    global _console_handler
    if _console_handler is not None and _console_handler in logger.handlers:
        logger.removeHandler(_console_handler)
        _console_handler.close()
    _console_handler = _build_console_handler(level, _color_enabled)
    logger.addHandler(_console_handler)


def set_log_level(level_name: str) -> None:
    """
    Set the log level for the localbin logger and rebuild its console handler.

    If `level_name` is not a valid logging level name (e.g., "DEBUG", "INFO"), the function logs a warning and leaves the current configuration unchanged.

    Parameters:
        level_name (str): Case-insensitive name of the desired logging level (e.g., "debug", "INFO").
    """
    level = getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        logger.warning(
            f"Invalid log level name: {escape(level_name)}. Using current level."
        )
        return

    logger.setLevel(level)
    _install_console_handler(level)
    logger.debug(f"Log level set to {logging.getLevelName(level)}")


def set_color_enabled(enabled: bool) -> None:
    """
    Turn colored console output on or off.

    Rich markup in messages is still parsed when color is disabled; tags are
    stripped instead of rendered.
    """
    global _color_enabled
    _color_enabled = enabled
    _install_console_handler(logger.level or logging.INFO)


def is_color_enabled() -> bool:
    return _color_enabled


def color_supported(no_color_flag: bool = False) -> bool:
    """
    Decide whether colored output should be used for this run.

    Returns:
        bool: False when `--no-color` was given, `NO_COLOR` is set, or `TERM` is `dumb`; True otherwise.
    """
    if no_color_flag:
        return False
    if os.environ.get(NO_COLOR_ENV_VAR):
        return False
    return os.environ.get("TERM", "") != "dumb"


def _initialize_logger() -> None:
    """
    Initialize the localbin logger with a console RichHandler and an initial log level.

    This removes any existing handlers, disables propagation to the root logger, and attaches a RichHandler writing to stderr. The initial log level is read from the environment variable named by LOG_LEVEL_ENV_VAR (defaults to "INFO" if unset).
    """
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    default_log_level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    resolved = getattr(logging, default_log_level, None)
    invalid = not isinstance(resolved, int)
    if invalid:
        resolved = logging.INFO

    logger.setLevel(resolved)
    _install_console_handler(resolved)

    if invalid:
        logger.warning(
            f"Invalid {LOG_LEVEL_ENV_VAR}={default_log_level}; defaulting to INFO."
        )


_initialize_logger()
