"""
localbin - install curated command-line tools from GitHub Releases into ~/.local/bin.
"""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("localbin")
except importlib.metadata.PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]
