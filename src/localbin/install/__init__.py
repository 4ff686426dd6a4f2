"""
localbin Install Subsystem

This package turns a catalog entry into an executable in the bin directory.

Core Components:
- interfaces: Data structures shared by the pipeline stages
- http: Fetcher with pluggable requests/urllib3 backends
- github_source: Release lookup and three-tier asset selection
- files: Workspace, archive extraction and atomic placement
- locator: Executable lookup inside extracted archives
- version: Best-effort version detection
- orchestrator: Per-tool pipeline coordination
"""

from .files import extract_archive, install_executable, install_workspace
from .github_source import GithubReleaseSource, select_asset
from .http import Fetcher, HttpBackend, RequestsBackend, Urllib3Backend
from .interfaces import (
    ArchiveFormat,
    InstallOutcome,
    InstallStatus,
    ReleaseAsset,
    ResolvedRelease,
    RunSummary,
)
from .locator import locate_executable
from .orchestrator import InstallOrchestrator, RunContext
from .version import determine_version

__all__ = [
    # Interfaces
    "ArchiveFormat",
    "InstallStatus",
    "ReleaseAsset",
    "ResolvedRelease",
    "InstallOutcome",
    "RunSummary",
    # Fetching
    "Fetcher",
    "HttpBackend",
    "RequestsBackend",
    "Urllib3Backend",
    # Resolution
    "GithubReleaseSource",
    "select_asset",
    # Files
    "install_workspace",
    "extract_archive",
    "install_executable",
    "locate_executable",
    "determine_version",
    # Orchestration
    "InstallOrchestrator",
    "RunContext",
]
