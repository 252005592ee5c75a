"""Tests for configuration loading and Constants overrides."""

import json

import pytest

from cli_config import ConfigError, apply_config, core_breakpoints, load_config, plugin_breakpoints
from constants import Constants
from updates.breakpoints import CORE_BREAKPOINTS


@pytest.fixture(autouse=True)
def _restore_constants(monkeypatch):
    monkeypatch.delenv(Constants.ENV_REGISTRY_URL, raising=False)
    for attr in ("REGISTRY_URL_PACKAGIST", "METADATA_CACHE_TTL_SEC", "REQUEST_TIMEOUT", "HTTP_RETRY_MAX",
                 "MAX_CONCURRENCY", "RESOLUTION_TIMEOUT_SEC", "CORE_PACKAGE"):
        monkeypatch.setattr(Constants, attr, getattr(Constants, attr))


class TestLoadConfig:
    """Test reading config files."""

    def test_no_path(self):
        """Test a missing path means an empty config."""
        assert load_config(None) == {}

    def test_yaml(self, tmp_path):
        """Test a YAML config file."""
        path = tmp_path / "upgate.yml"
        path.write_text("http:\n  timeout: 5\n", encoding="utf-8")

        assert load_config(str(path)) == {"http": {"timeout": 5}}

    def test_json(self, tmp_path):
        """Test a JSON config file."""
        path = tmp_path / "upgate.json"
        path.write_text(json.dumps({"resolution": {"max_concurrency": 2}}), encoding="utf-8")

        assert load_config(str(path)) == {"resolution": {"max_concurrency": 2}}

    def test_empty_file(self, tmp_path):
        """Test an empty YAML file is an empty config."""
        path = tmp_path / "upgate.yml"
        path.write_text("", encoding="utf-8")

        assert load_config(str(path)) == {}

    def test_missing_file(self, tmp_path):
        """Test a non-existent file is rejected."""
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "missing.yml"))

    @pytest.mark.parametrize("content", ["- a\n- b\n", "key: [unclosed\n"])
    def test_invalid_content(self, tmp_path, content):
        """Test non-mapping and unparsable files are rejected."""
        path = tmp_path / "upgate.yml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config(str(path))


class TestApplyConfig:
    """Test Constants overrides."""

    def test_overrides(self):
        """Test recognised keys are cast and applied."""
        apply_config({
            "registry": {"url": "https://mirror.test/p2/", "cache_ttl": "120"},
            "http": {"timeout": "7.5", "retries": 5},
            "resolution": {"max_concurrency": 2, "timeout": 10},
            "core": {"package": "acme/app"},
        })

        assert Constants.REGISTRY_URL_PACKAGIST == "https://mirror.test/p2/"
        assert Constants.METADATA_CACHE_TTL_SEC == 120
        assert Constants.REQUEST_TIMEOUT == 7.5
        assert Constants.HTTP_RETRY_MAX == 5
        assert Constants.MAX_CONCURRENCY == 2
        assert Constants.RESOLUTION_TIMEOUT_SEC == 10.0
        assert Constants.CORE_PACKAGE == "acme/app"

    def test_unknown_keys_are_ignored(self):
        """Test unrecognised sections leave defaults alone."""
        before = Constants.HTTP_RETRY_MAX

        apply_config({"http": {"proxy": "x"}, "other": 1})

        assert Constants.HTTP_RETRY_MAX == before

    def test_invalid_value(self):
        """Test a value of the wrong type is rejected."""
        with pytest.raises(ConfigError):
            apply_config({"http": {"retries": "many"}})

    def test_env_registry_url_wins(self, monkeypatch):
        """Test the environment overrides the config file URL."""
        monkeypatch.setenv(Constants.ENV_REGISTRY_URL, " https://env.test/p2/ ")

        apply_config({"registry": {"url": "https://mirror.test/p2/"}})

        assert Constants.REGISTRY_URL_PACKAGIST == "https://env.test/p2/"


class TestBreakpointConfig:
    """Test breakpoint tables from config."""

    def test_default_core_table(self):
        """Test the built-in table is used without a breakpoints section."""
        assert core_breakpoints({}) is CORE_BREAKPOINTS

    def test_configured_core_table(self):
        """Test a configured table replaces the built-in one."""
        table = core_breakpoints({"breakpoints": [{"range": "[1.0,2.0)", "target": "2.0"}]})

        assert len(table) == 1
        assert table.classify("3.0.10") is None

    def test_empty_core_table(self):
        """Test an empty list disables core breakpoints."""
        assert len(core_breakpoints({"breakpoints": []})) == 0

    def test_invalid_core_table(self):
        """Test malformed entries are reported as config errors."""
        with pytest.raises(ConfigError):
            core_breakpoints({"breakpoints": [{"range": "1.0,2.0", "target": "2.0"}]})

    def test_plugin_tables(self):
        """Test per-package tables."""
        tables = plugin_breakpoints({
            "plugin_breakpoints": {"vendor/plugin": [{"range": "[1.0.0,1.4.0)", "target": "1.4.0"}]},
        })

        assert list(tables) == ["vendor/plugin"]
        assert str(tables["vendor/plugin"].classify("1.2.0").target) == "1.4.0"
        assert plugin_breakpoints({}) == {}

    def test_invalid_plugin_tables(self):
        """Test a non-mapping plugin_breakpoints section is rejected."""
        with pytest.raises(ConfigError):
            plugin_breakpoints({"plugin_breakpoints": ["vendor/plugin"]})
