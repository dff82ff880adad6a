"""Custom exceptions for Zaim CLI."""


class ZaimError(Exception):
    """Base exception for Zaim CLI errors."""

    pass


class ConfigurationError(ZaimError):
    """Raised when configuration is invalid or missing."""

    pass


class InvalidURIError(ZaimError, ValueError):
    """Raised when a request URI cannot be parsed or normalized."""

    pass


class EncodingError(ZaimError, ValueError):
    """Raised when a parameter cannot be encoded as UTF-8."""

    pass


class MalformedCredentialResponse(ZaimError):
    """Raised when credential data (a response body or a file) cannot be parsed."""

    pass


class StepError(ZaimError):
    """An error tied to one step of the OAuth flow or the final API call."""

    def __init__(
        self, message: str, step: str, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.step = step
        self.status_code = status_code


class OAuthFlowError(StepError):
    """Raised when the OAuth handshake fails."""

    pass


class TokenRequestFailed(OAuthFlowError):
    """Raised when the temporary-credential request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, step="request token", status_code=status_code)


class AccessTokenExchangeFailed(OAuthFlowError):
    """Raised when exchanging the verifier for access credentials fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, step="access token", status_code=status_code)


class NetworkError(StepError):
    """Raised on transport failures (DNS, connection, timeout)."""

    pass
