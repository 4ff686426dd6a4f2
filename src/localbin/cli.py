# src/localbin/cli.py

import argparse
import os
import sys
from typing import List, Optional

from rich.markup import escape

from localbin import __version__, log_utils
from localbin.catalog import CATALOG, catalog_names
from localbin.config_utils import load_config, load_settings
from localbin.constants import ALL_TOOLS_KEYWORD, INSTALL_UMASK
from localbin.env_utils import detect_arch_pattern
from localbin.exceptions import (
    ConfigurationError,
    FetchBackendMissingError,
    UnsupportedArchitectureError,
)
from localbin.install import Fetcher, InstallOrchestrator, RunContext
from localbin.shell_profile import add_path_export


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localbin",
        description="Install curated command-line tools from GitHub Releases into ~/.local/bin",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug output (API URLs, selected assets, extraction commands)",
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable colored output and icons"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be installed without downloading or writing anything",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "tools",
        nargs="*",
        metavar="tool",
        help=f"Tool names to install, or '{ALL_TOOLS_KEYWORD}' for every tool",
    )
    return parser


def format_catalog() -> str:
    """
    Render the tool catalog as an aligned, one-tool-per-line listing.
    """
    width = max(len(tool.name) for tool in CATALOG)
    lines = ["Available tools:"]
    for tool in CATALOG:
        lines.append(f"  {tool.name:<{width}}  {tool.description} ({tool.repository})")
    return "\n".join(lines)


def _warn_unknown_tools(requested: List[str]) -> None:
    known = set(catalog_names()) | {ALL_TOOLS_KEYWORD}
    unknown = [name for name in requested if name not in known]
    if unknown:
        log_utils.logger.warning(
            f"Unknown tool(s) ignored: {escape(', '.join(unknown))}"
        )


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the localbin command-line interface.

    Parses arguments, resolves settings, detects the host architecture and
    runs the install pipeline for the requested tools. Exits 0 when at least
    one tool was installed or for any dry-run, and 1 otherwise or when the
    run cannot start (unsupported architecture, no HTTP backend, unreadable
    configuration).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    color = log_utils.color_supported(args.no_color)
    if not color:
        log_utils.set_color_enabled(False)
    if args.verbose:
        log_utils.set_log_level("DEBUG")

    if not args.tools and not args.dry_run:
        parser.print_usage()
        print()
        print(format_catalog())
        sys.exit(0)

    try:
        settings = load_settings(load_config(), color=color)
    except ConfigurationError as e:
        log_utils.logger.error(f"Failed to load configuration: {escape(str(e))}")
        sys.exit(1)

    try:
        arch_pattern = detect_arch_pattern()
        fetcher = Fetcher()
    except (UnsupportedArchitectureError, FetchBackendMissingError) as e:
        log_utils.logger.error(escape(str(e)))
        sys.exit(1)

    requested = list(args.tools)
    if requested:
        log_utils.logger.info(f"Requested tools: {escape(' '.join(requested))}")
        _warn_unknown_tools(requested)
    else:
        log_utils.logger.info("Requested tools: all (dry-run preview)")
    log_utils.logger.info(f"Installing to: {escape(str(settings.bin_dir))}")
    if args.dry_run:
        log_utils.logger.info("Dry-run mode: nothing will be downloaded or written")
    log_utils.logger.debug(f"Architecture pattern: {arch_pattern}")

    os.umask(INSTALL_UMASK)
    context = RunContext(settings=settings, arch_pattern=arch_pattern, dry_run=args.dry_run)
    try:
        summary = InstallOrchestrator(context, fetcher).run(
            requested, all_tools=args.dry_run and not requested
        )
    finally:
        fetcher.close()

    if not args.dry_run:
        add_path_export(settings.home)

    sys.exit(summary.exit_code)


if __name__ == "__main__":
    main()
