"""Signed request execution against the Zaim REST API."""

import logging
from collections.abc import Mapping

import httpx

from .auth import OAuth1Signer, authorization_header
from .exceptions import NetworkError
from .models import AccessCredentials, ApiResponse, ConsumerCredentials

logger = logging.getLogger(__name__)

# Methods whose parameters go on the query string; the rest send a form body.
QUERY_METHODS = frozenset({"GET", "DELETE", "HEAD", "OPTIONS"})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
HTTP_METHODS = QUERY_METHODS | BODY_METHODS


class RequestExecutor:
    """Signs a single request with OAuth1 and sends it.

    The response payload is returned as-is; interpreting it is up to the caller.
    """

    def __init__(self, consumer: ConsumerCredentials, client: httpx.Client) -> None:
        """Initialize the request executor.

        Args:
            consumer: Consumer credentials used for signing.
            client: HTTP client used to send the request.
        """
        self._consumer = consumer
        self._client = client

    def _signer(self, credentials: AccessCredentials | None) -> OAuth1Signer:
        if credentials is None:
            return OAuth1Signer(self._consumer)
        return OAuth1Signer(
            self._consumer,
            token=credentials.access_token,
            token_secret=credentials.access_token_secret.get_secret_value(),
        )

    def execute(
        self,
        method: str,
        uri: str,
        query: Mapping[str, str] | None = None,
        credentials: AccessCredentials | None = None,
    ) -> ApiResponse:
        """Sign and send a request.

        Args:
            method: HTTP method.
            uri: Target URI.
            query: Optional request parameters (string values).
            credentials: Access credentials; ``None`` signs with the consumer only.

        Returns:
            The status code and raw body of the response.

        Raises:
            ValueError: If the method is not a supported HTTP verb.
            NetworkError: If the request could not be sent.
        """
        method = method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        params = {key: str(value) for key, value in (query or {}).items()}
        signed = self._signer(credentials).sign_request(uri, method, params)
        headers = {"Authorization": authorization_header(signed)}

        request_kwargs: dict = {"headers": headers}
        if params:
            if method in QUERY_METHODS:
                request_kwargs["params"] = params
            else:
                request_kwargs["data"] = params

        logger.debug("Sending %s %s", method, uri)
        try:
            response = self._client.request(method, uri, **request_kwargs)
        except httpx.RequestError as e:
            raise NetworkError(
                f"Failed to request to rest api: {e}", step="api request"
            ) from e

        logger.debug("Received HTTP %s from %s", response.status_code, uri)
        return ApiResponse(status_code=response.status_code, body=response.content)
