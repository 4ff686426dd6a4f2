"""
Custom exceptions for the localbin application.

This module defines domain-specific exceptions for each stage of a tool
installation: release resolution, fetching, extraction and executable
location. Every error a single tool's install can raise derives from
LocalbinError so the orchestrator can record it without aborting the run.
"""

from enum import Enum


class LocalbinError(Exception):
    """
    Base exception for all localbin errors.

    All custom exceptions in localbin should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(LocalbinError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


class UnsupportedArchitectureError(LocalbinError):
    """
    Exception raised when the host CPU architecture has no asset token.

    This is fatal for the whole run: no tool could be matched.
    """

    def __init__(self, machine: str) -> None:
        super().__init__(f"Unsupported architecture: {machine}")
        self.machine = machine


# =============================================================================
# Resolution Errors
# =============================================================================


class ResolutionErrorKind(str, Enum):
    API_UNAVAILABLE = "api_unavailable"
    NO_MATCHING_ASSET = "no_matching_asset"


class ResolutionError(LocalbinError):
    """
    Base exception for release asset resolution failures.

    Attributes:
        kind: Which resolution step failed.
        repository: The "owner/repo" slug that was being resolved.
    """

    def __init__(
        self,
        message: str,
        kind: ResolutionErrorKind,
        repository: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.kind = kind
        self.repository = repository


class ApiUnavailableError(ResolutionError):
    """Exception raised when the release API cannot be queried or returns garbage."""

    def __init__(
        self, message: str, repository: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(
            message, ResolutionErrorKind.API_UNAVAILABLE, repository, details
        )


class NoMatchingAssetError(ResolutionError):
    """Exception raised when no release asset matches the tool and architecture."""

    def __init__(
        self, message: str, repository: str | None = None, details: str | None = None
    ) -> None:
        super().__init__(
            message, ResolutionErrorKind.NO_MATCHING_ASSET, repository, details
        )


# =============================================================================
# Fetch Errors
# =============================================================================


class FetchErrorKind(str, Enum):
    NETWORK = "network"
    HTTP = "http"
    NO_BACKEND = "no_backend"


class FetchError(LocalbinError):
    """
    Exception raised when a URL cannot be fetched.

    Attributes:
        kind: Category of the failure.
        url: The URL that was being fetched.
        status_code: The final HTTP status, when the server answered.
        retry_count: Number of retries made before giving up.
    """

    def __init__(
        self,
        message: str,
        kind: FetchErrorKind = FetchErrorKind.NETWORK,
        url: str | None = None,
        status_code: int | None = None,
        retry_count: int = 0,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.kind = kind
        self.url = url
        self.status_code = status_code
        self.retry_count = retry_count


class FetchBackendMissingError(FetchError):
    """Exception raised when neither HTTP client library can be imported."""

    def __init__(self) -> None:
        super().__init__(
            "No HTTP backend available",
            kind=FetchErrorKind.NO_BACKEND,
            details="install 'requests' or 'urllib3'",
        )


# =============================================================================
# Archive Errors
# =============================================================================


class ExtractionError(LocalbinError):
    """
    Exception raised when an archive cannot be extracted.

    Attributes:
        archive_path: Path to the problematic archive.
    """

    def __init__(
        self,
        message: str,
        archive_path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.archive_path = archive_path


class MissingDependencyError(ExtractionError):
    """Exception raised when the system tool needed for an archive format is absent."""

    def __init__(self, tool: str, archive_path: str | None = None) -> None:
        super().__init__(
            f"'{tool}' is required to extract this archive but was not found",
            archive_path=archive_path,
        )
        self.tool = tool


# =============================================================================
# Location Errors
# =============================================================================


class NotFoundError(LocalbinError):
    """Exception raised when the expected executable is missing after extraction."""

    def __init__(self, name: str, root: str) -> None:
        super().__init__(f"executable '{name}' not found under {root}")
        self.name = name
        self.root = root
