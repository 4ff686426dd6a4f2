"""
GitHub Release Source

This module resolves a catalog tool to a single downloadable asset of its
latest (or pinned) GitHub release.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from localbin.catalog import ToolSpec
from localbin.constants import (
    DEB_EXTENSION,
    GITHUB_API_BASE,
    LATEST_RELEASE_ALIAS,
    TAR_SUFFIX_PATTERN,
    TAR_SUFFIXES,
    ZIP_EXTENSION,
    ZIP_SUFFIX_PATTERN,
)
from localbin.exceptions import ApiUnavailableError, FetchError, NoMatchingAssetError
from localbin.log_utils import logger
from localbin.utils import github_api_headers

from .http import Fetcher
from .interfaces import ArchiveFormat, ReleaseAsset, ResolvedRelease

# Suffix requirement per selection tier; None means any extension.
SELECTION_TIERS: Sequence[Tuple[int, Optional[str]]] = (
    (1, TAR_SUFFIX_PATTERN),
    (2, ZIP_SUFFIX_PATTERN),
    (3, None),
)


def infer_archive_format(url: str) -> ArchiveFormat:
    """
    Infer how an asset should be unpacked from its URL suffix.

    Parameters:
        url (str): Asset download URL or file name.

    Returns:
        ArchiveFormat: TAR, ZIP or DEB for known suffixes, BINARY otherwise.
    """
    lower = url.lower()
    if lower.endswith(TAR_SUFFIXES):
        return ArchiveFormat.TAR
    if lower.endswith(ZIP_EXTENSION):
        return ArchiveFormat.ZIP
    if lower.endswith(DEB_EXTENSION):
        return ArchiveFormat.DEB
    return ArchiveFormat.BINARY


def build_release_url(
    owner: str, repo: str, tag: Optional[str] = None, api_base: str = GITHUB_API_BASE
) -> str:
    """
    Build the GitHub API URL for a repository's latest or tagged release.
    """
    base = f"{api_base.rstrip('/')}/repos/{owner}/{repo}/releases"
    if not tag or tag == LATEST_RELEASE_ALIAS:
        return f"{base}/{LATEST_RELEASE_ALIAS}"
    return f"{base}/tags/{tag}"


def parse_release(release_data: Dict[str, Any]) -> Tuple[List[str], str]:
    """
    Extract asset download URLs and the release tag from GitHub API release data.

    Parameters:
        release_data (Dict[str, Any]): Decoded release object.

    Returns:
        Tuple[List[str], str]: Download URLs in API order, and `tag_name` (falling back to `name`, or "" when neither is a non-empty string).
    """
    urls: List[str] = []
    assets_data = release_data.get("assets")
    if isinstance(assets_data, list):
        for asset_data in assets_data:
            if not isinstance(asset_data, dict):
                logger.debug("Skipping malformed asset entry")
                continue
            url = asset_data.get("browser_download_url")
            if isinstance(url, str) and url.strip():
                urls.append(url.strip())

    tag = ""
    for key in ("tag_name", "name"):
        value = release_data.get(key)
        if isinstance(value, str) and value.strip():
            tag = value.strip()
            break

    return urls, tag


def select_asset(
    urls: Sequence[str], arch_pattern: str, name_pattern: str
) -> Optional[Tuple[str, int]]:
    """
    Pick the best asset URL using the three-tier preference order.

    Every tier requires both the architecture token and the tool's name
    pattern to match (case-insensitive search). Tier 1 additionally requires
    a `.tar.gz`/`.tar.xz` suffix, tier 2 a `.zip` suffix, tier 3 nothing
    more. Within a tier the first URL in API order wins.

    Parameters:
        urls (Sequence[str]): Candidate download URLs in API order.
        arch_pattern (str): Architecture regex fragment.
        name_pattern (str): Tool asset regex, already expanded for the architecture.

    Returns:
        Optional[Tuple[str, int]]: The chosen URL and its tier, or None if no tier matched.
    """
    arch_rx = re.compile(arch_pattern, re.IGNORECASE)
    name_rx = re.compile(name_pattern, re.IGNORECASE)
    candidates = [u for u in urls if arch_rx.search(u) and name_rx.search(u)]

    for tier, suffix_pattern in SELECTION_TIERS:
        if suffix_pattern is None:
            matches = candidates
        else:
            suffix_rx = re.compile(suffix_pattern, re.IGNORECASE)
            matches = [u for u in candidates if suffix_rx.search(u)]
        if matches:
            return matches[0], tier
    return None


class GithubReleaseSource:
    """
    Resolves catalog tools to release assets through the GitHub REST API.

    Usage:
        source = GithubReleaseSource(fetcher, github_token=token)
        resolved = source.resolve(tool, arch_pattern)
    """

    def __init__(
        self,
        fetcher: Fetcher,
        api_base: str = GITHUB_API_BASE,
        github_token: Optional[str] = None,
    ):
        """
        Initialize the GitHub release source.

        Parameters:
            fetcher (Fetcher): Fetcher used for API requests.
            api_base (str): Base URL of the GitHub REST API.
            github_token (Optional[str]): Token sent in the Authorization header.
        """
        self.fetcher = fetcher
        self.api_base = api_base
        self.github_token = github_token

    def fetch_release(
        self, owner: str, repo: str, tag: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Fetch and decode one release object.

        Raises:
            ApiUnavailableError: If the request fails or the body is not a JSON object.
        """
        repository = f"{owner}/{repo}"
        url = build_release_url(owner, repo, tag, self.api_base)
        try:
            body = self.fetcher.fetch_bytes(url, github_api_headers(self.github_token))
        except FetchError as e:
            raise ApiUnavailableError(
                f"GitHub API request failed for {repository}",
                repository=repository,
                details=str(e),
            ) from e

        try:
            release_data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ApiUnavailableError(
                f"Invalid JSON from GitHub API for {repository}",
                repository=repository,
                details=str(e),
            ) from e

        if not isinstance(release_data, dict):
            raise ApiUnavailableError(
                f"Unexpected GitHub API response for {repository}",
                repository=repository,
                details=f"expected object, got {type(release_data).__name__}",
            )
        return release_data

    def resolve(self, tool: ToolSpec, arch_pattern: str) -> ResolvedRelease:
        """
        Resolve a tool to the single best asset for this machine.

        Parameters:
            tool (ToolSpec): Catalog entry to resolve.
            arch_pattern (str): Architecture regex fragment for the host.

        Returns:
            ResolvedRelease: Selected asset, release tag and the tier that matched.

        Raises:
            ApiUnavailableError: If the release cannot be fetched or decoded.
            NoMatchingAssetError: If no asset matches in any tier.
        """
        release_data = self.fetch_release(tool.owner, tool.repo, tool.tag)
        urls, tag = parse_release(release_data)
        name_pattern = tool.asset_pattern(arch_pattern)
        logger.debug(
            f"{tool.repository}: {len(urls)} assets, release {tag or 'unknown'}, "
            f"pattern {name_pattern}"
        )
        if tool.encodes_extension():
            logger.debug(
                f"{tool.name}: pattern pins its own extension; the tar tier cannot match"
            )

        try:
            selection = select_asset(urls, arch_pattern, name_pattern)
        except re.error as e:
            raise NoMatchingAssetError(
                f"Invalid asset pattern for {tool.name}",
                repository=tool.repository,
                details=str(e),
            ) from e

        if selection is None:
            raise NoMatchingAssetError(
                f"could not resolve asset URL for {tool.repository} ({tool.name})",
                repository=tool.repository,
                details=f"no asset matched {name_pattern}",
            )

        url, tier = selection
        logger.debug(f"attempting {url} (tier {tier})")
        asset = ReleaseAsset(download_url=url, archive_format=infer_archive_format(url))
        return ResolvedRelease(asset=asset, tag=tag, tier=tier)
