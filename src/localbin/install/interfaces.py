"""
Core data structures for the localbin install pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

Pathish = Union[str, Path]


class ArchiveFormat(str, Enum):
    """Container format of a release asset, inferred from its URL."""

    TAR = "tar"
    ZIP = "zip"
    DEB = "deb"
    BINARY = "binary"


class InstallStatus(str, Enum):
    INSTALLED = "installed"
    PLANNED = "planned"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ReleaseAsset:
    """A downloadable file attached to a release."""

    download_url: str
    """The asset's `browser_download_url`"""

    archive_format: ArchiveFormat
    """How the asset will be unpacked"""

    @property
    def file_name(self) -> str:
        return self.download_url.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ResolvedRelease:
    """The asset chosen for a tool, plus the release it came from."""

    asset: ReleaseAsset
    """Selected asset"""

    tag: str = ""
    """Release tag_name (or name); empty if the API gave neither"""

    tier: int = 0
    """Selection tier that matched (1 = tar, 2 = zip, 3 = any)"""

    @property
    def asset_url(self) -> str:
        return self.asset.download_url


@dataclass
class InstallOutcome:
    """Result of processing one tool."""

    tool_name: str
    status: InstallStatus
    version: Optional[str] = None
    asset_url: Optional[str] = None
    release_tag: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class RunSummary:
    """All outcomes of one localbin run, in processing order."""

    dry_run: bool = False
    outcomes: List[InstallOutcome] = field(default_factory=list)

    def with_outcome(self, outcome: InstallOutcome) -> "RunSummary":
        """Return a new summary with `outcome` appended."""
        return RunSummary(
            dry_run=self.dry_run,
            outcomes=[*self.outcomes, outcome],
        )

    def _names(self, status: InstallStatus) -> List[str]:
        return [o.tool_name for o in self.outcomes if o.status is status]

    @property
    def installed(self) -> List[str]:
        return self._names(InstallStatus.INSTALLED)

    @property
    def planned(self) -> List[str]:
        return self._names(InstallStatus.PLANNED)

    @property
    def failed(self) -> List[str]:
        return self._names(InstallStatus.FAILED)

    @property
    def processed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status is not InstallStatus.SKIPPED)

    @property
    def exit_code(self) -> int:
        """0 for any dry-run or when at least one tool installed, else 1."""
        if self.dry_run:
            return 0
        return 0 if self.installed else 1
