# src/localbin/utils.py
import importlib.metadata
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from localbin.constants import GITHUB_ACCEPT_HEADER, GITHUB_API_VERSION
from localbin.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `localbin/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("localbin")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"localbin/{app_version}"

    return _USER_AGENT_CACHE


def github_api_headers(github_token: Optional[str] = None) -> Dict[str, str]:
    """
    Build the headers sent with GitHub REST API requests.

    Parameters:
        github_token (Optional[str]): Token for the Authorization header; omitted when None.

    Returns:
        Dict[str, str]: Accept, API version, User-Agent and (optionally) Authorization headers.
    """
    headers = {
        "Accept": GITHUB_ACCEPT_HEADER,
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": get_user_agent(),
    }
    if github_token:
        headers["Authorization"] = f"token {github_token}"
        logger.debug("Using GitHub token for API authentication")
    return headers


def _parse_rate_limit_header(header_value: Any) -> Optional[int]:
    try:
        return int(str(header_value).strip())
    except (TypeError, ValueError):
        return None


def describe_rate_limit(headers: Mapping[str, str]) -> Optional[str]:
    """
    Describe an exhausted GitHub API rate limit from response headers.

    Parameters:
        headers (Mapping[str, str]): Response headers of a 403 response.

    Returns:
        Optional[str]: A user-facing message naming the reset time, or None if the limit is not exhausted.
    """
    lowered = {str(k).lower(): v for k, v in headers.items()}
    remaining = _parse_rate_limit_header(lowered.get("x-ratelimit-remaining"))
    if remaining != 0:
        return None

    reset_time = lowered.get("x-ratelimit-reset")
    reset_time_str = "unknown"
    if reset_time:
        try:
            reset_time_str = datetime.fromtimestamp(
                int(reset_time), timezone.utc
            ).strftime("%Y-%m-%d %H:%M:%S UTC")
        except (ValueError, OverflowError, OSError):
            pass
    return (
        f"GitHub API rate limit exceeded. Resets at {reset_time_str}. "
        "Set GITHUB_TOKEN environment variable for higher rate limits."
    )
