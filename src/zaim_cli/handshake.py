"""OAuth 1.0a 3-legged flow for the Zaim API."""

import logging
import urllib.parse
from collections.abc import Callable, Mapping

import httpx

from .auth import OAuth1Signer, authorization_header
from .config import Settings
from .exceptions import (
    AccessTokenExchangeFailed,
    MalformedCredentialResponse,
    NetworkError,
    OAuthFlowError,
    TokenRequestFailed,
)
from .models import AccessCredentials, ConsumerCredentials, TemporaryCredentials

logger = logging.getLogger(__name__)

VerifierPrompt = Callable[[str], str]
CredentialSink = Callable[[AccessCredentials], None]


def parse_credential_response(body: str) -> dict[str, str]:
    """Parse a form-encoded token response.

    Args:
        body: Response text, e.g. ``oauth_token=xxx&oauth_token_secret=yyy``.

    Returns:
        Mapping of field name to value; ``oauth_token`` and
        ``oauth_token_secret`` are guaranteed present and non-empty.

    Raises:
        MalformedCredentialResponse: If the body cannot be parsed or lacks a token.
    """
    try:
        fields = dict(urllib.parse.parse_qsl(body.strip(), strict_parsing=True))
    except ValueError as e:
        raise MalformedCredentialResponse(f"Unexpected response format: {body!r}") from e

    if not fields.get("oauth_token") or not fields.get("oauth_token_secret"):
        raise MalformedCredentialResponse(f"Response is not complete: {body!r}")

    confirmed = fields.get("oauth_callback_confirmed")
    if confirmed is not None and confirmed not in ("true", "false"):
        raise MalformedCredentialResponse(
            f"Unexpected value of 'oauth_callback_confirmed': {confirmed!r}"
        )
    return fields


class HandshakeController:
    """Runs the OAuth 1.0a 3-legged authentication flow.

    This implements the three-step OAuth handshake:
    1. Get temporary credentials (a request token)
    2. Generate an authorization URL for the user to visit
    3. Exchange the verifier code for access credentials

    Each step is independent; a failure means starting over from step 1.
    """

    def __init__(
        self,
        settings: Settings,
        consumer: ConsumerCredentials,
        client: httpx.Client,
    ) -> None:
        """Initialize the handshake controller.

        Args:
            settings: Application settings with OAuth endpoints.
            consumer: Consumer credentials used to sign every step.
            client: HTTP client used for the token requests.
        """
        self._settings = settings
        self._consumer = consumer
        self._client = client

    def _post(
        self, url: str, signer: OAuth1Signer, oauth_params: Mapping[str, str], step: str
    ) -> httpx.Response:
        signed = signer.sign_request(url, "POST", oauth_params=oauth_params)
        try:
            return self._client.post(
                url, headers={"Authorization": authorization_header(signed)}
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Failed to get {step}: {e}", step=step) from e

    def request_temporary_credentials(
        self, callback: str | None = None
    ) -> TemporaryCredentials:
        """Step 1: Get temporary credentials from the provider.

        Args:
            callback: Callback URL or "oob" for out-of-band (CLI apps).
                Defaults to the configured callback.

        Returns:
            Temporary credentials for the authorization step.

        Raises:
            TokenRequestFailed: On a non-2xx status or an unparsable body.
            NetworkError: If the request could not be sent.
        """
        url = self._settings.oauth_request_token_url
        signer = OAuth1Signer(self._consumer)
        logger.debug("Requesting temporary credentials from %s", url)

        response = self._post(
            url,
            signer,
            {"oauth_callback": callback or self._settings.oauth_callback},
            step="request token",
        )
        if not response.is_success:
            raise TokenRequestFailed(
                f"Failed to get request token: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            fields = parse_credential_response(response.text)
        except MalformedCredentialResponse as e:
            raise TokenRequestFailed(
                f"Invalid response from request token endpoint: {e}",
                status_code=response.status_code,
            ) from e

        confirmed = fields.get("oauth_callback_confirmed")
        return TemporaryCredentials(
            token=fields["oauth_token"],
            token_secret=fields["oauth_token_secret"],
            callback_confirmed=None if confirmed is None else confirmed == "true",
        )

    def get_authorization_url(self, temporary: TemporaryCredentials) -> str:
        """Step 2: Generate the authorization URL for the user.

        Args:
            temporary: The temporary credentials from step 1.

        Returns:
            URL for the user to visit to authorize the application.
        """
        return (
            f"{self._settings.oauth_authorize_url}"
            f"?oauth_token={urllib.parse.quote(temporary.token, safe='')}"
        )

    def exchange_for_access_token(
        self, temporary: TemporaryCredentials, verifier: str
    ) -> AccessCredentials:
        """Step 3: Exchange the verifier for access credentials.

        Args:
            temporary: The temporary credentials from step 1.
            verifier: The verification code shown to the user after authorization.

        Returns:
            Access credentials for authenticated API calls.

        Raises:
            AccessTokenExchangeFailed: On a non-2xx status or an unparsable body.
            NetworkError: If the request could not be sent.
        """
        url = self._settings.oauth_access_token_url
        signer = OAuth1Signer(
            self._consumer,
            token=temporary.token,
            token_secret=temporary.token_secret.get_secret_value(),
        )
        logger.debug("Exchanging verifier for access credentials at %s", url)

        response = self._post(
            url, signer, {"oauth_verifier": verifier}, step="access token"
        )
        if not response.is_success:
            raise AccessTokenExchangeFailed(
                f"Failed to exchange for access token: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            fields = parse_credential_response(response.text)
        except MalformedCredentialResponse as e:
            raise AccessTokenExchangeFailed(
                f"Invalid response from access token endpoint: {e}",
                status_code=response.status_code,
            ) from e

        return AccessCredentials(
            access_token=fields["oauth_token"],
            access_token_secret=fields["oauth_token_secret"],
        )

    def authenticate(
        self,
        prompt: VerifierPrompt,
        sink: CredentialSink | None = None,
        callback: str | None = None,
    ) -> AccessCredentials:
        """Run the full handshake.

        Args:
            prompt: Called with the authorization URL; blocks until it returns
                the verifier code entered by the user.
            sink: Called once with the new access credentials, only on success.
            callback: Optional callback overriding the configured one.

        Returns:
            The new access credentials.

        Raises:
            OAuthFlowError: If no verifier code was entered.
        """
        temporary = self.request_temporary_credentials(callback)
        verifier = prompt(self.get_authorization_url(temporary)).strip()
        if not verifier:
            raise OAuthFlowError(
                "Authorization failed: no verifier code entered", step="authorization"
            )
        credentials = self.exchange_for_access_token(temporary, verifier)
        logger.info("Obtained access credentials")

        if sink is not None:
            sink(credentials)
        return credentials
