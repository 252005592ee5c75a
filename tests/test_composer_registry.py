"""Tests for the Composer (Packagist v2) registry client."""

from unittest.mock import patch

import pytest

from errors import RegistryUnavailable
from registry.composer import ComposerRegistry, expand_minified, github_raw_url

SOURCE_130 = {"type": "git", "url": "https://github.com/vendor/plugin.git", "reference": "abc123"}
SOURCE_121 = {"type": "git", "url": "https://github.com/vendor/plugin.git", "reference": "def456"}

METADATA = {
    "minified": "composer/2.0",
    "packages": {
        "vendor/plugin": [
            {
                "name": "vendor/plugin",
                "version": "1.3.0",
                "version_normalized": "1.3.0.0",
                "require": {"craftcms/cms": "^3.2", "php": ">=7.0"},
                "source": SOURCE_130,
            },
            {
                "version": "1.2.1",
                "version_normalized": "1.2.1.0",
                "require": {"craftcms/cms": "^3.0"},
                "source": SOURCE_121,
            },
            {"version": "1.2.0", "version_normalized": "1.2.0.0", "require": "__unset"},
            {"version": "dev-main", "version_normalized": "dev-main"},
        ]
    },
}


def _registry():
    return ComposerRegistry(base_url="https://repo.example.test/p2", github_token="")


class TestExpandMinified:
    """Test Composer v2 minified metadata expansion."""

    def test_inherits_and_unsets(self):
        """Test keys carry over and __unset removes them."""
        expanded = expand_minified(METADATA["packages"]["vendor/plugin"])

        assert expanded[1]["name"] == "vendor/plugin"
        assert expanded[1]["source"] == SOURCE_121
        assert "require" not in expanded[2]
        assert expanded[2]["source"] == SOURCE_121

    def test_does_not_mutate_input(self):
        """Test the input entries are left untouched."""
        entries = [{"version": "1.0.0", "require": {"a/b": "^1"}}, {"version": "1.1.0", "require": "__unset"}]

        expand_minified(entries)

        assert entries[1] == {"version": "1.1.0", "require": "__unset"}


class TestGithubRawUrl:
    """Test changelog URL construction."""

    @pytest.mark.parametrize("url", [
        "https://github.com/vendor/plugin.git",
        "https://github.com/vendor/plugin",
        "git@github.com:vendor/plugin.git",
    ])
    def test_github_sources(self, url):
        """Test HTTPS and SSH GitHub sources."""
        result = github_raw_url({"url": url, "reference": "abc123"})

        assert result == "https://raw.githubusercontent.com/vendor/plugin/abc123/CHANGELOG.md"

    def test_non_github_source(self):
        """Test other hosts yield no URL."""
        assert github_raw_url({"url": "https://gitlab.com/vendor/plugin.git", "reference": "abc"}) is None
        assert github_raw_url({"url": "https://github.com/vendor/plugin.git"}) is None
        assert github_raw_url({}) is None


class TestComposerRegistry:
    """Test ComposerRegistry lookups."""

    @patch("registry.composer.client.get_json")
    def test_list_versions_skips_branches(self, mock_get_json):
        """Test branch aliases such as dev-main are not versions."""
        mock_get_json.return_value = (200, {}, METADATA)

        versions = _registry().list_versions("vendor/plugin")

        assert [str(v) for v in versions] == ["1.3.0", "1.2.1", "1.2.0"]
        assert mock_get_json.call_args[0][0] == "https://repo.example.test/p2/vendor/plugin.json"

    @patch("registry.composer.client.get_json")
    def test_metadata_is_cached(self, mock_get_json):
        """Test repeated lookups reuse the fetched metadata."""
        mock_get_json.return_value = (200, {}, METADATA)
        registry = _registry()

        registry.list_versions("vendor/plugin")
        registry.requirements("vendor/plugin")

        assert mock_get_json.call_count == 1

    @pytest.mark.parametrize("host,expected", [("3.1.0", "1.2.1"), ("3.3.0", "1.3.0"), ("2.0.0", "1.2.0")])
    @patch("registry.composer.client.get_json")
    def test_latest_compatible(self, mock_get_json, host, expected):
        """Test host requirements from the require section."""
        mock_get_json.return_value = (200, {}, METADATA)

        assert str(_registry().latest_compatible("vendor/plugin", host)) == expected

    @patch("registry.composer.client.get_json")
    def test_unknown_package(self, mock_get_json):
        """Test a 404 means no versions."""
        mock_get_json.return_value = (404, {}, None)

        assert _registry().list_versions("vendor/missing") == []

    @pytest.mark.parametrize("response", [(403, {}, None), (200, {}, None), (200, {}, ["not", "a", "dict"])])
    @patch("registry.composer.client.get_json")
    def test_unexpected_response(self, mock_get_json, response):
        """Test unusable responses raise RegistryUnavailable."""
        mock_get_json.return_value = response

        with pytest.raises(RegistryUnavailable):
            _registry().list_versions("vendor/plugin")

    @patch("registry.composer.client.get_json")
    def test_transport_failure_propagates(self, mock_get_json):
        """Test transport failures surface unchanged."""
        mock_get_json.side_effect = RegistryUnavailable("boom")

        with pytest.raises(RegistryUnavailable):
            _registry().list_versions("vendor/plugin")

    @patch("registry.composer.client.robust_get")
    @patch("registry.composer.client.get_json")
    def test_changelog_for(self, mock_get_json, mock_robust_get):
        """Test the changelog is read at the release's source reference."""
        mock_get_json.return_value = (200, {}, METADATA)
        mock_robust_get.return_value = (200, {}, "## 1.3.0\n- New.\n")

        text = _registry().changelog_for("vendor/plugin", "1.3.0")

        assert text == "## 1.3.0\n- New.\n"
        assert mock_robust_get.call_args[0][0] == (
            "https://raw.githubusercontent.com/vendor/plugin/abc123/CHANGELOG.md"
        )
        assert mock_robust_get.call_args[1]["headers"] is None

    @patch("registry.composer.client.robust_get")
    @patch("registry.composer.client.get_json")
    def test_changelog_sends_token(self, mock_get_json, mock_robust_get):
        """Test a GitHub token is sent as an Authorization header."""
        mock_get_json.return_value = (200, {}, METADATA)
        mock_robust_get.return_value = (200, {}, "## 1.2.1\n")
        registry = ComposerRegistry(base_url="https://repo.example.test/p2", github_token="t0ken")

        registry.changelog_for("vendor/plugin", "1.2.1")

        assert mock_robust_get.call_args[1]["headers"] == {"Authorization": "token t0ken"}

    @patch("registry.composer.client.robust_get")
    @patch("registry.composer.client.get_json")
    def test_changelog_missing(self, mock_get_json, mock_robust_get):
        """Test a missing CHANGELOG.md or unknown version yields None."""
        mock_get_json.return_value = (200, {}, METADATA)
        mock_robust_get.return_value = (404, {}, "Not Found")
        registry = _registry()

        assert registry.changelog_for("vendor/plugin", "1.3.0") is None
        assert registry.changelog_for("vendor/plugin", "9.9.9") is None
