"""Tests for settings resolution and the optional YAML config file."""

from pathlib import Path

import pytest
import yaml

from localbin.config_utils import (
    get_config_file_path,
    get_effective_github_token,
    load_config,
    load_settings,
)
from localbin.exceptions import ConfigurationError

pytestmark = [pytest.mark.unit]


def _write_config(data) -> Path:
    path = get_config_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(data if isinstance(data, str) else yaml.safe_dump(data))
    return path


class TestLoadConfig:
    def test_missing_file_is_empty(self):
        assert load_config() == {}

    def test_reads_known_keys_only(self):
        _write_config({"BIN_DIR": "/opt/tools", "SURPRISE": True})
        assert load_config() == {"BIN_DIR": "/opt/tools"}

    def test_empty_file(self):
        _write_config("")
        assert load_config() == {}

    def test_invalid_yaml(self):
        _write_config("BIN_DIR: [unclosed")
        with pytest.raises(ConfigurationError, match="Failed to load configuration"):
            load_config()

    def test_non_mapping(self):
        _write_config("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_config()

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "other.yaml"
        path.write_text("API_BASE: https://ghe.example/api/v3\n")
        assert load_config(path) == {"API_BASE": "https://ghe.example/api/v3"}


class TestGithubToken:
    def test_explicit_token_wins(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert get_effective_github_token("  cfg-token ") == "cfg-token"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert get_effective_github_token(None) == "env-token"

    def test_env_fallback_disabled(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert get_effective_github_token(None, allow_env_token=False) is None

    def test_no_token(self):
        assert get_effective_github_token("") is None


class TestLoadSettings:
    def test_defaults(self, home_dir):
        settings = load_settings()
        assert settings.bin_dir == home_dir / ".local" / "bin"
        assert settings.home == home_dir
        assert settings.api_base == "https://api.github.com"
        assert settings.github_token is None
        assert settings.color is True

    def test_config_bin_dir(self, tmp_path):
        settings = load_settings({"BIN_DIR": str(tmp_path / "tools")})
        assert settings.bin_dir == tmp_path / "tools"

    def test_xdg_bin_home_beats_config(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_BIN_HOME", str(tmp_path / "xdg"))
        settings = load_settings({"BIN_DIR": str(tmp_path / "tools")})
        assert settings.bin_dir == tmp_path / "xdg"

    def test_api_base_trailing_slash_removed(self):
        settings = load_settings({"API_BASE": "https://ghe.example/api/v3/"})
        assert settings.api_base == "https://ghe.example/api/v3"

    def test_token_from_config_and_env_opt_out(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert load_settings({}).github_token == "env-token"
        assert load_settings({"ALLOW_ENV_TOKEN": False}).github_token is None
        assert load_settings({"GITHUB_TOKEN": "cfg"}).github_token == "cfg"

    def test_reads_config_file_when_not_given(self, tmp_path):
        _write_config({"BIN_DIR": str(tmp_path / "from-file")})
        assert load_settings(color=False).bin_dir == tmp_path / "from-file"
