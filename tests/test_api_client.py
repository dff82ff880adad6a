"""Tests for the signed request executor."""

import logging
import urllib.parse

import httpx
import pytest
import respx
from httpx import Response

from zaim_cli.api_client import RequestExecutor
from zaim_cli.auth import sign_base_string
from zaim_cli.canonical import signature_base_string
from zaim_cli.exceptions import NetworkError
from zaim_cli.handshake import HandshakeController
from zaim_cli.models import AccessCredentials, ApiResponse, ConsumerCredentials
from zaim_cli.token_store import save_access_credentials

MONEY_URL = "https://api.zaim.net/v2/home/money"
VERIFY_URL = "https://api.zaim.net/v2/home/user/verify"


@pytest.fixture
def executor(consumer, client):
    """Create a RequestExecutor instance."""
    return RequestExecutor(consumer, client)


@respx.mock
def test_get_sends_query_and_authorization(
    executor, access_credentials, parse_auth_header
):
    """GET parameters go on the query string; the signature in the header."""
    route = respx.route(method="GET", host="api.zaim.net", path="/v2/home/money").mock(
        return_value=Response(200, json={"money": []})
    )

    result = executor.execute(
        "get", MONEY_URL, {"mapping": "1", "mode": "payment"}, access_credentials
    )

    assert isinstance(result, ApiResponse)
    assert result.status_code == 200
    assert result.is_success

    request = route.calls.last.request
    assert dict(request.url.params) == {"mapping": "1", "mode": "payment"}

    fields = parse_auth_header(request.headers["Authorization"])
    assert fields["oauth_token"] == "access_token_789"
    assert "mapping" not in fields


@respx.mock
def test_get_signature_known_value(client, parse_auth_header, monkeypatch):
    """The header carries the signature over query, URI and oauth parameters."""
    monkeypatch.setattr("zaim_cli.auth.generate_nonce", lambda: "n0nce")
    monkeypatch.setattr("zaim_cli.auth.generate_timestamp", lambda: "1718193989")
    route = respx.route(method="GET", host="api.zaim.net", path="/v2/home/money").mock(
        return_value=Response(200)
    )
    executor = RequestExecutor(
        ConsumerCredentials(consumer_key="ck", consumer_secret="cs"), client
    )
    executor.execute(
        "GET",
        f"{MONEY_URL}?mapping=1",
        {"mode": "payment", "start_date": "2024-06-17", "comment": "a b+c"},
        AccessCredentials(access_token="tok", access_token_secret="ts"),
    )

    request = route.calls.last.request
    fields = parse_auth_header(request.headers["Authorization"])
    assert fields["oauth_signature"] == "4jAthmB9LpPBtWE4TWCpED7kL0c="
    assert dict(request.url.params) == {
        "mapping": "1",
        "mode": "payment",
        "start_date": "2024-06-17",
        "comment": "a b+c",
    }


@respx.mock
def test_signature_matches_encoded_path(
    executor, access_credentials, parse_auth_header
):
    """A path with spaces or non-ASCII text is signed as it goes on the wire."""
    route = respx.route(method="GET", host="example.com").mock(
        return_value=Response(200)
    )

    executor.execute(
        "GET", "https://example.com/a b/ü", credentials=access_credentials
    )

    request = route.calls.last.request
    assert request.url.raw_path == b"/a%20b/%C3%BC"

    fields = parse_auth_header(request.headers["Authorization"])
    signature = fields.pop("oauth_signature")
    base_string = signature_base_string("GET", str(request.url), fields)
    assert signature == sign_base_string(
        base_string, "test_consumer_secret", "access_secret_012"
    )


@respx.mock
def test_post_sends_form_body(executor, access_credentials):
    """POST parameters are form-encoded in the body."""
    route = respx.post("https://api.zaim.net/v2/home/money/payment").mock(
        return_value=Response(200, json={"stamp": 1})
    )

    executor.execute(
        "POST",
        "https://api.zaim.net/v2/home/money/payment",
        {"amount": "100", "date": "2024-06-17"},
        access_credentials,
    )

    request = route.calls.last.request
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert urllib.parse.parse_qs(request.content.decode()) == {
        "amount": ["100"],
        "date": ["2024-06-17"],
    }
    assert request.url.query == b""


@respx.mock
def test_non_success_returned_unchanged(executor, access_credentials):
    """Error statuses are returned, not raised."""
    respx.get(VERIFY_URL).mock(return_value=Response(404, content=b"not found"))

    result = executor.execute("GET", VERIFY_URL, credentials=access_credentials)

    assert result.status_code == 404
    assert result.body == b"not found"
    assert not result.is_success


@respx.mock
def test_body_bytes_unchanged(executor, access_credentials):
    """Binary bodies pass through byte for byte."""
    payload = b'\x00\xff{"me": "\xe3\x81\x82"}'
    respx.get(VERIFY_URL).mock(return_value=Response(200, content=payload))

    result = executor.execute("GET", VERIFY_URL, credentials=access_credentials)

    assert result.body == payload


@respx.mock
def test_unauthenticated_request(executor, parse_auth_header):
    """Without access credentials only the consumer signs."""
    route = respx.get(VERIFY_URL).mock(return_value=Response(200))

    executor.execute("GET", VERIFY_URL)

    fields = parse_auth_header(route.calls.last.request.headers["Authorization"])
    assert "oauth_token" not in fields
    assert fields["oauth_consumer_key"] == "test_consumer_key"


def test_unsupported_method(executor):
    with pytest.raises(ValueError, match="Unsupported HTTP method"):
        executor.execute("TRACE", VERIFY_URL)


@respx.mock
def test_network_error(executor, access_credentials):
    respx.get(VERIFY_URL).mock(side_effect=httpx.ConnectError("Connection refused"))

    with pytest.raises(NetworkError) as exc_info:
        executor.execute("GET", VERIFY_URL, credentials=access_credentials)

    assert exc_info.value.step == "api request"
    assert "Connection refused" in str(exc_info.value)


@respx.mock
def test_handshake_then_request(settings, consumer, client):
    """Full flow: handshake with verifier 123456, then a GET with the new tokens."""
    respx.post(settings.oauth_request_token_url).mock(
        return_value=Response(200, text="oauth_token=T1&oauth_token_secret=S1")
    )
    respx.post(settings.oauth_access_token_url).mock(
        return_value=Response(200, text="oauth_token=A1&oauth_token_secret=AS1")
    )
    api_route = respx.get(VERIFY_URL).mock(
        return_value=Response(200, content=b'{"me": {"id": 1}}')
    )
    saved = []

    credentials = HandshakeController(settings, consumer, client).authenticate(
        lambda url: "123456", saved.append
    )
    result = RequestExecutor(consumer, client).execute(
        "GET", VERIFY_URL, credentials=credentials
    )

    assert saved == [credentials]
    assert credentials.access_token == "A1"
    assert result.status_code == 200
    assert result.body == b'{"me": {"id": 1}}'
    assert 'oauth_token="A1"' in api_route.calls.last.request.headers["Authorization"]


@respx.mock
def test_debug_logs_exclude_secrets(settings, client, tmp_path, caplog):
    """Signing, handshake and request logs never carry a secret."""
    caplog.set_level(logging.DEBUG)
    consumer = ConsumerCredentials(
        consumer_key="ck", consumer_secret="consumer-secret-xyz"
    )
    respx.post(settings.oauth_request_token_url).mock(
        return_value=Response(
            200, text="oauth_token=T1&oauth_token_secret=temp-secret-xyz"
        )
    )
    respx.post(settings.oauth_access_token_url).mock(
        return_value=Response(
            200, text="oauth_token=A1&oauth_token_secret=access-secret-xyz"
        )
    )
    respx.get(VERIFY_URL).mock(return_value=Response(200, content=b"{}"))

    credentials = HandshakeController(settings, consumer, client).authenticate(
        lambda url: "123456",
        lambda c: save_access_credentials(tmp_path / "tokens.json", c),
    )
    RequestExecutor(consumer, client).execute(
        "GET", VERIFY_URL, {"mapping": "1"}, credentials
    )

    assert "Signing POST" in caplog.text
    assert "Signing GET" in caplog.text
    assert "Obtained access credentials" in caplog.text
    for secret in ("consumer-secret-xyz", "temp-secret-xyz", "access-secret-xyz"):
        assert secret not in caplog.text
