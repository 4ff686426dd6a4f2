"""
Constants and configuration values for localbin.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# GitHub API URLs
GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_ACCEPT_HEADER = "application/vnd.github+json"
LATEST_RELEASE_ALIAS = "latest"

# Network timeouts and retries (in seconds)
CONNECT_TIMEOUT = 15
READ_TIMEOUT = 60
FETCH_RETRIES = 3
FETCH_RETRY_DELAY = 2.0
RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
DEFAULT_CHUNK_SIZE = 8192

# Version probing
VERSION_FLAGS = ("--version", "-V", "version", "-v")
VERSION_PROBE_TIMEOUT = 5
VERSION_TOKEN_PATTERN = r"v?[0-9]+(?:\.[0-9]+){0,3}"

# CPU architecture -> regex fragment matched against asset file names
ARCH_PATTERNS = {
    "x86_64": "(x86_64|amd64|linux64)",
    "amd64": "(x86_64|amd64|linux64)",
    "aarch64": "(aarch64|arm64)",
    "arm64": "(aarch64|arm64)",
}

# Asset selection tiers, in order of preference
TAR_SUFFIX_PATTERN = r"tar\.(gz|xz)$"
ZIP_SUFFIX_PATTERN = r"\.zip$"

# Archive routing by (lower-cased) URL suffix
TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar.xz", ".txz", ".tar.bz2", ".tar")
ZIP_EXTENSION = ".zip"
DEB_EXTENSION = ".deb"
DPKG_DEB_COMMAND = "dpkg-deb"

# Release file names that differ from the command they provide
EXECUTABLE_NAME_OVERRIDES = {
    "nnn": "nnn-musl-static",
}

EXECUTABLE_PERMISSIONS = 0o755
INSTALL_UMASK = 0o022

# Install location
DEFAULT_BIN_SUBDIR = (".local", "bin")
PATH_EXPORT_LINE = 'export PATH="$HOME/.local/bin:$PATH"'
SHELL_RC_FILES = (".profile", ".bashrc", ".zshrc")

# Requests tokens with special meaning
ALL_TOOLS_KEYWORD = "all"

# Status icons (only shown when color is enabled)
ICON_OK = "✓"
ICON_FAIL = "❌"
ICON_DONE = "✅"

# Logging configuration
LOGGER_NAME = "localbin"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Configuration file
APP_NAME = "localbin"
CONFIG_FILE_NAME = "config.yaml"
CONFIG_KEYS = frozenset({"BIN_DIR", "API_BASE", "GITHUB_TOKEN", "ALLOW_ENV_TOKEN"})

# Environment variable names
LOG_LEVEL_ENV_VAR = "LOCALBIN_LOG_LEVEL"
BIN_HOME_ENV_VAR = "XDG_BIN_HOME"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
NO_COLOR_ENV_VAR = "NO_COLOR"
