"""OAuth1 request signing (HMAC-SHA1)."""

import base64
import hashlib
import hmac
import logging
import secrets
import time
from collections.abc import Mapping

from .canonical import percent_encode, query_pairs, signature_base_string
from .models import ConsumerCredentials

logger = logging.getLogger(__name__)

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


def generate_nonce() -> str:
    """Generate a unique nonce for the request.

    Returns:
        A random 32-character hex string.
    """
    return secrets.token_hex(16)


def generate_timestamp() -> str:
    """Return the current Unix time in whole seconds."""
    return str(int(time.time()))


def sign_base_string(
    base_string: str, consumer_secret: str, token_secret: str = ""
) -> str:
    """Compute the HMAC-SHA1 signature of a base string.

    Args:
        base_string: The signature base string.
        consumer_secret: The consumer secret.
        token_secret: The token secret; empty when no token has been issued yet.

    Returns:
        Base64-encoded HMAC-SHA1 signature.
    """
    signing_key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    hashed = hmac.new(
        signing_key.encode("utf-8"),
        base_string.encode("utf-8"),
        hashlib.sha1,
    )
    return base64.b64encode(hashed.digest()).decode("utf-8")


def authorization_header(signed_params: Mapping[str, str]) -> str:
    """Build an ``Authorization: OAuth ...`` header value.

    Only the ``oauth_*`` entries are included, sorted by name, with each value
    percent-encoded and double-quoted.
    """
    fields = sorted(
        (key, value) for key, value in signed_params.items() if key.startswith("oauth_")
    )
    return "OAuth " + ", ".join(
        f'{percent_encode(key)}="{percent_encode(value)}"' for key, value in fields
    )


class OAuth1Signer:
    """Signs requests using OAuth1 HMAC-SHA1.

    Without a token this signs with the consumer credentials only (the
    temporary-credential request); with a token it signs on behalf of a user.
    """

    def __init__(
        self,
        consumer: ConsumerCredentials,
        token: str | None = None,
        token_secret: str | None = None,
    ) -> None:
        """Initialize the OAuth1 signer.

        Args:
            consumer: Consumer key and secret.
            token: Optional request or access token.
            token_secret: Secret matching ``token``.
        """
        self._consumer = consumer
        self._token = token
        self._token_secret = token_secret or ""

    def sign_request(
        self,
        url: str,
        method: str = "GET",
        params: Mapping[str, str] | None = None,
        oauth_params: Mapping[str, str] | None = None,
        nonce: str | None = None,
        timestamp: str | None = None,
    ) -> dict[str, str]:
        """Generate OAuth1 signed parameters for a request.

        Args:
            url: The request URL. Parameters in its query string are signed too.
            method: HTTP method.
            params: Query or form parameters sent with the request.
            oauth_params: Extra protocol parameters such as ``oauth_callback``
                or ``oauth_verifier``.
            nonce: Fixed nonce; generated when omitted.
            timestamp: Fixed timestamp; the current time when omitted.

        Returns:
            Dictionary of request parameters followed by the OAuth parameters,
            ending with ``oauth_signature``.
        """
        params = dict(params or {})

        oauth = {
            "oauth_consumer_key": self._consumer.consumer_key,
            "oauth_nonce": nonce or generate_nonce(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": timestamp or generate_timestamp(),
            "oauth_version": OAUTH_VERSION,
        }
        if self._token:
            oauth["oauth_token"] = self._token
        oauth.update(oauth_params or {})

        pairs = query_pairs(url) + list(params.items()) + list(oauth.items())
        base_string = signature_base_string(method, url, pairs)
        logger.debug("Signing %s %s", method.upper(), url)

        oauth["oauth_signature"] = sign_base_string(
            base_string,
            self._consumer.consumer_secret.get_secret_value(),
            self._token_secret,
        )
        return {**params, **oauth}
