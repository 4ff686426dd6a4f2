"""
Install Pipeline Orchestrator

This module sequences the per-tool install steps (resolve, fetch, extract,
locate, place, version) for one localbin run and reports the outcome of
each tool.
"""

import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from rich.markup import escape

from localbin.catalog import CATALOG, ToolSpec, select_tools
from localbin.config_utils import Settings
from localbin.constants import ICON_DONE, ICON_FAIL, ICON_OK
from localbin.exceptions import LocalbinError
from localbin.log_utils import logger

from .files import DOWNLOAD_FILE_NAME, extract_archive, install_executable, install_workspace
from .github_source import GithubReleaseSource
from .http import Fetcher
from .interfaces import (
    ArchiveFormat,
    InstallOutcome,
    InstallStatus,
    ResolvedRelease,
    RunSummary,
)
from .locator import locate_executable
from .version import determine_version

# Literal "[dry-run]" prefix, escaped so rich does not read it as a style tag
DRY_RUN_TAG = escape("[dry-run]")


@dataclass(frozen=True)
class RunContext:
    """Everything the pipeline needs to know about the current run."""

    settings: Settings
    """Resolved settings (install dir, API base, token, color)"""

    arch_pattern: str
    """Architecture token for asset matching"""

    dry_run: bool = False
    """Resolve only; never download or write"""

    @property
    def icons(self) -> bool:
        return self.settings.color

    def icon(self, glyph: str) -> str:
        return f"{glyph} " if self.icons else ""


class InstallOrchestrator:
    """
    Orchestrates the install pipeline for the requested catalog tools.

    This class coordinates:
    - Release asset resolution through the GitHub API
    - Download into a per-tool workspace
    - Extraction and executable lookup
    - Atomic placement into the bin directory
    - Version detection and outcome reporting

    Tools are processed sequentially in catalog order. A failure in one tool
    is logged and recorded; it never stops the remaining tools.
    """

    def __init__(
        self,
        context: RunContext,
        fetcher: Fetcher,
        source: Optional[GithubReleaseSource] = None,
    ):
        """
        Create an orchestrator for one run.

        Parameters:
            context (RunContext): Settings, architecture token and dry-run flag for this run.
            fetcher (Fetcher): Fetcher shared by API queries and asset downloads.
            source (Optional[GithubReleaseSource]): Release resolver; built from `context` and `fetcher` when omitted.
        """
        self.context = context
        self.fetcher = fetcher
        self.source = source or GithubReleaseSource(
            fetcher,
            api_base=context.settings.api_base,
            github_token=context.settings.github_token,
        )

    def run(
        self,
        requested: Sequence[str],
        all_tools: bool = False,
        catalog: Optional[Iterable[ToolSpec]] = None,
    ) -> RunSummary:
        """
        Process every catalog tool, installing (or previewing) the requested ones.

        Parameters:
            requested (Sequence[str]): Tool names asked for on the command line.
            all_tools (bool): Treat every catalog tool as requested.
            catalog (Optional[Iterable[ToolSpec]]): Catalog to walk; defaults to CATALOG.

        Returns:
            RunSummary: One outcome per catalog tool, in catalog order.
        """
        tools: List[ToolSpec] = list(CATALOG if catalog is None else catalog)
        selected = {t.name for t in select_tools(requested, all_tools, tools)}
        summary = RunSummary(dry_run=self.context.dry_run)

        for tool in tools:
            if tool.name not in selected:
                logger.debug(f"skipping {tool.name} (not requested)")
                outcome = InstallOutcome(tool.name, InstallStatus.SKIPPED)
            else:
                outcome = self.install_tool(tool)
            summary = summary.with_outcome(outcome)

        self.log_summary(summary)
        return summary

    def install_tool(self, tool: ToolSpec) -> InstallOutcome:
        """
        Run the pipeline for one tool and return its outcome.

        Any LocalbinError, OS error or subprocess error raised by a step is
        logged with the tool name and turned into a failed outcome.
        """
        logger.info(f"Installing [bold blue]{escape(tool.name)}[/]...")
        logger.debug(f"=== Installing {tool.name} ({tool.repository} @ {tool.tag}) ===")
        resolved: Optional[ResolvedRelease] = None
        try:
            resolved = self.source.resolve(tool, self.context.arch_pattern)
            logger.debug(
                f"{tool.name}: selected {resolved.asset.file_name} (tier {resolved.tier})"
            )
            if self.context.dry_run:
                return self._preview(tool, resolved)
            return self._install(tool, resolved)
        except (LocalbinError, OSError, subprocess.SubprocessError) as e:
            logger.error(
                f"{self.context.icon(ICON_FAIL)}[red]{escape(tool.name)}[/] failed: {escape(str(e))}"
            )
            return InstallOutcome(
                tool.name,
                InstallStatus.FAILED,
                asset_url=resolved.asset_url if resolved else None,
                release_tag=resolved.tag if resolved else None,
                error_message=str(e),
            )

    def _preview(self, tool: ToolSpec, resolved: ResolvedRelease) -> InstallOutcome:
        bin_dir = self.context.settings.bin_dir
        archive_format = resolved.asset.archive_format
        logger.info(f"{DRY_RUN_TAG} would fetch: {escape(resolved.asset_url)}")
        logger.info(f"{DRY_RUN_TAG} release tag: {escape(resolved.tag or 'unknown')}")
        if archive_format is ArchiveFormat.BINARY:
            logger.info(
                f"{DRY_RUN_TAG} would install [yellow]binary[/] to {escape(str(bin_dir / tool.name))}"
            )
        else:
            logger.info(
                f"{DRY_RUN_TAG} would extract [green]{archive_format.value}[/] and install "
                f"{escape(tool.name)} to {escape(str(bin_dir / tool.name))}"
            )
        logger.info(f"{self.context.icon(ICON_OK)}[blue]{escape(tool.name)}[/] planned")
        return InstallOutcome(
            tool.name,
            InstallStatus.PLANNED,
            asset_url=resolved.asset_url,
            release_tag=resolved.tag,
        )

    def _install(self, tool: ToolSpec, resolved: ResolvedRelease) -> InstallOutcome:
        archive_format = resolved.asset.archive_format
        with install_workspace(tool.name) as workspace:
            download_path = workspace / DOWNLOAD_FILE_NAME
            self.fetcher.fetch(resolved.asset_url, download_path)

            if archive_format is ArchiveFormat.BINARY:
                logger.debug(f">>> Detected plain binary for {tool.name}")
                source = download_path
            else:
                extract_dir = extract_archive(download_path, archive_format, workspace)
                source = locate_executable(extract_dir, tool.name)

            installed = install_executable(
                source, self.context.settings.bin_dir, tool.name
            )

        version = determine_version(resolved.tag, installed)
        if version:
            logger.info(
                f"{self.context.icon(ICON_OK)}[green]{escape(tool.name)}[/] installed "
                f"([yellow]{escape(version)}[/])"
            )
        else:
            logger.info(
                f"{self.context.icon(ICON_OK)}[green]{escape(tool.name)}[/] installed"
            )
        return InstallOutcome(
            tool.name,
            InstallStatus.INSTALLED,
            version=version,
            asset_url=resolved.asset_url,
            release_tag=resolved.tag,
        )

    def log_summary(self, summary: RunSummary) -> None:
        """
        Log the final one-line summary of the run.
        """
        logger.info("")
        if summary.dry_run:
            if not summary.planned:
                logger.info("No tools would be installed (none requested or all skipped)")
            else:
                logger.info(
                    f"{self.context.icon(ICON_DONE)}Dry-run: would install "
                    f"{len(summary.planned)} tool(s)"
                )
            return

        if not summary.installed:
            logger.error(
                f"{self.context.icon(ICON_FAIL)}No tools were installed "
                "(none requested or all failed)"
            )
            return

        logger.info(
            f"{self.context.icon(ICON_DONE)}Done! Installed {len(summary.installed)} "
            f"of {summary.processed_count} requested tool(s)"
        )
        if summary.failed:
            logger.warning(f"Failed: {', '.join(summary.failed)}")
        logger.info(
            "If commands aren't found immediately, start a new shell or: source ~/.profile"
        )
