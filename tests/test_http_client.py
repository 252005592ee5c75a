"""Tests for the shared HTTP helpers."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from common import http_client
from common.http_client import get_json, robust_get
from constants import Constants
from errors import RegistryUnavailable


@pytest.fixture(autouse=True)
def _fresh_cache(monkeypatch):
    http_client.clear_cache()
    monkeypatch.setattr(Constants, "HTTP_RETRY_BASE_DELAY_SEC", 0)
    yield
    http_client.clear_cache()


def _response(status_code=200, text="", headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    return response


class TestRobustGet:
    """Test retries, caching and error mapping."""

    @patch("common.http_client.requests.get")
    def test_success(self, mock_get):
        """Test a successful response tuple and the default User-Agent."""
        mock_get.return_value = _response(200, "ok", {"Content-Type": "text/plain"})

        status, headers, text = robust_get("https://example.test/a")

        assert (status, headers, text) == (200, {"Content-Type": "text/plain"}, "ok")
        assert mock_get.call_args[1]["headers"]["User-Agent"] == Constants.USER_AGENT

    @patch("common.http_client.requests.get")
    def test_cache_hit(self, mock_get):
        """Test a repeated GET is answered from the cache."""
        mock_get.return_value = _response(200, "ok")

        robust_get("https://example.test/a")
        robust_get("https://example.test/a")

        assert mock_get.call_count == 1

    @patch("common.http_client.requests.get")
    def test_client_errors_are_returned(self, mock_get):
        """Test 4xx responses are returned for the caller to interpret."""
        mock_get.return_value = _response(404, "missing")

        assert robust_get("https://example.test/a")[0] == 404
        assert mock_get.call_count == 1

    @patch("common.http_client.requests.get")
    def test_retries_server_errors(self, mock_get):
        """Test a 5xx is retried."""
        mock_get.side_effect = [_response(503), _response(200, "ok")]

        assert robust_get("https://example.test/a")[2] == "ok"
        assert mock_get.call_count == 2

    @patch("common.http_client.requests.get")
    def test_timeouts_exhaust_retries(self, mock_get):
        """Test persistent timeouts raise RegistryUnavailable."""
        mock_get.side_effect = requests.Timeout()

        with pytest.raises(RegistryUnavailable):
            robust_get("https://example.test/a")

        assert mock_get.call_count == Constants.HTTP_RETRY_MAX

    @patch("common.http_client.requests.get")
    def test_connection_errors(self, mock_get):
        """Test connection failures raise RegistryUnavailable."""
        mock_get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(RegistryUnavailable):
            robust_get("https://example.test/a")


class TestGetJson:
    """Test JSON decoding."""

    @patch("common.http_client.requests.get")
    def test_parses_json(self, mock_get):
        """Test a JSON body is decoded."""
        mock_get.return_value = _response(200, '{"packages": {}}')

        assert get_json("https://example.test/a.json")[2] == {"packages": {}}

    @patch("common.http_client.requests.get")
    def test_invalid_json(self, mock_get):
        """Test an undecodable body yields None."""
        mock_get.return_value = _response(200, "<html>")

        status, _, data = get_json("https://example.test/a.json")

        assert status == 200
        assert data is None

    @patch("common.http_client.requests.get")
    def test_non_200(self, mock_get):
        """Test non-200 responses are not decoded."""
        mock_get.return_value = _response(404, '{"error": "x"}')

        assert get_json("https://example.test/a.json") == (404, {}, None)
