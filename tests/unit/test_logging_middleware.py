"""Tests for URL redaction."""

import pytest

from spotify_osc.middleware.logging_middleware import redact_sensitive_data


def test_redacts_oauth_callback():
    url = "http://127.0.0.1:8080/callback?code=AQBx123&state=abc"

    assert redact_sensitive_data(url) == "http://127.0.0.1:8080/callback?code=***REDACTED***&state=***REDACTED***"


def test_keeps_harmless_params():
    """Test non-secret parameters survive unchanged."""
    url = "https://api.spotify.com/v1/me/player/volume?volume_percent=40&device_id=device-1"

    assert redact_sensitive_data(url) == url


@pytest.mark.parametrize("url", ["https://accounts.spotify.com/api/token", "http://127.0.0.1:8080/health"])
def test_url_without_query(url):
    assert redact_sensitive_data(url) == url


def test_case_insensitive_names():
    assert "secret" not in redact_sensitive_data("http://x/cb?Refresh_Token=secret")
