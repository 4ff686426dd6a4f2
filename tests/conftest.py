import json
import logging
import os
import time
from pathlib import Path

import platformdirs
import pytest
import requests
import urllib3

from localbin import log_utils

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock the Fetcher or its HttpBackend."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used to group localbin tests.

    Parameters:
        config: pytest.Config
            The pytest configuration object.
    """
    config.addinivalue_line("markers", "unit: fast, isolated tests of one module")
    config.addinivalue_line(
        "markers", "integration: tests that run several pipeline stages together"
    )
    config.addinivalue_line("markers", "cli: tests of the command-line entry point")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point HOME and the XDG directories at a fresh temporary tree for every test.

    XDG_BIN_HOME, NO_COLOR, GITHUB_TOKEN and LOCALBIN_LOG_LEVEL are removed so
    the defaults apply, and platformdirs is patched so the config file lookup
    never touches the real user configuration.
    """
    base = tmp_path_factory.mktemp("localbin")
    home_dir = base / "home"
    config_dir = base / "config"
    for path in (home_dir, config_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("TERM", "xterm-256color")
    for name in ("XDG_BIN_HOME", "NO_COLOR", "GITHUB_TOKEN", "LOCALBIN_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )


@pytest.fixture(autouse=True)
def _reset_logger():
    """
    Restore the default console handler after tests that change color or verbosity.
    """
    yield
    log_utils._color_enabled = True
    log_utils.logger.setLevel(logging.INFO)
    log_utils._install_console_handler(logging.INFO)


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.request = _block_network
    requests.Session.request = _block_network
    urllib3.PoolManager.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent retry delays.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


@pytest.fixture
def home_dir() -> Path:
    return Path(os.environ["HOME"])


@pytest.fixture
def bin_dir(home_dir) -> Path:
    return home_dir / ".local" / "bin"


@pytest.fixture
def settings(home_dir, bin_dir):
    """Settings for a run installing into the isolated ~/.local/bin."""
    from localbin.config_utils import Settings

    return Settings(bin_dir=bin_dir, home=home_dir, color=False)


@pytest.fixture
def release_json():
    """
    Provide a factory that encodes a GitHub release object as API response bytes.

    Returns:
        factory (callable): `factory(urls, tag="v1.0.0")` returning the JSON body.
    """

    def _build(urls, tag="v1.0.0"):
        return json.dumps(
            {
                "tag_name": tag,
                "name": f"Release {tag}",
                "assets": [
                    {"name": url.rsplit("/", 1)[-1], "browser_download_url": url}
                    for url in urls
                ],
            }
        ).encode("utf-8")

    return _build
