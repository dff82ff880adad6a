"""
Pydantic models for OAuth credentials and API responses.
"""

from pydantic import BaseModel, ConfigDict, SecretStr

# ============================================================================
# Credential Models
# ============================================================================


class ConsumerCredentials(BaseModel):
    """Application key/secret identifying this client to the provider."""

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: SecretStr


class TemporaryCredentials(BaseModel):
    """Request token obtained in the first step of the OAuth flow."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_secret: SecretStr
    callback_confirmed: bool | None = None


class AccessCredentials(BaseModel):
    """Long-lived access token authorizing API calls on behalf of the user."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    access_token_secret: SecretStr

    def to_storage(self) -> dict[str, str]:
        """Return the JSON-serializable form written to the access-token file."""
        return {
            "access_token": self.access_token,
            "access_token_secret": self.access_token_secret.get_secret_value(),
        }


# ============================================================================
# Response Models
# ============================================================================


class ApiResponse(BaseModel):
    """Raw result of a signed API request."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        """Whether the status code is 2xx."""
        return 200 <= self.status_code < 300
