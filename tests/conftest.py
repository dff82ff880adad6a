"""Pytest fixtures for Zaim CLI tests."""

import urllib.parse
from collections.abc import Callable, Iterator

import httpx
import pytest

from zaim_cli.config import Settings
from zaim_cli.models import AccessCredentials, ConsumerCredentials


@pytest.fixture
def settings() -> Settings:
    """Return a Settings object with the default Zaim endpoints.

    Returns:
        Settings object configured with test OAuth1 credentials.
    """
    return Settings(
        consumer_key="test_consumer_key",
        consumer_secret="test_consumer_secret",
        oauth_callback="oob",
    )


@pytest.fixture
def consumer() -> ConsumerCredentials:
    """Return test consumer credentials."""
    return ConsumerCredentials(
        consumer_key="test_consumer_key",
        consumer_secret="test_consumer_secret",
    )


@pytest.fixture
def access_credentials() -> AccessCredentials:
    """Return test access credentials."""
    return AccessCredentials(
        access_token="access_token_789",
        access_token_secret="access_secret_012",
    )


@pytest.fixture
def client() -> Iterator[httpx.Client]:
    """Create an HTTP client and close it after the test."""
    with httpx.Client() as http_client:
        yield http_client


@pytest.fixture
def parse_auth_header() -> Callable[[str], dict[str, str]]:
    """Return a parser for ``Authorization: OAuth ...`` header values."""

    def parse(header: str) -> dict[str, str]:
        assert header.startswith("OAuth ")
        fields = {}
        for item in header[len("OAuth ") :].split(", "):
            key, _, quoted = item.partition("=")
            assert quoted.startswith('"') and quoted.endswith('"')
            fields[urllib.parse.unquote(key)] = urllib.parse.unquote(quoted[1:-1])
        return fields

    return parse
