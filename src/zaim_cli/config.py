"""Configuration management using pydantic-settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ConsumerCredentials


class Settings(BaseSettings):
    """Zaim CLI settings."""

    model_config = SettingsConfigDict(
        env_prefix="ZAIM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OAuth1 consumer credentials (optional; usually read from --consumer-info)
    consumer_key: str | None = None
    consumer_secret: SecretStr | None = None

    # OAuth 1.0a 3-legged authentication endpoints
    oauth_request_token_url: str = "https://api.zaim.net/v2/auth/request"
    oauth_authorize_url: str = "https://auth.zaim.net/users/auth"
    oauth_access_token_url: str = "https://api.zaim.net/v2/auth/access"
    oauth_callback: str = "oob"

    # HTTP timeout in seconds
    timeout: float = 30.0

    # Where newly obtained access tokens are written
    access_token_path: str = "access_tokens.json"

    def consumer_credentials(self) -> ConsumerCredentials | None:
        """Return consumer credentials from the environment, if both are set."""
        if not self.consumer_key or self.consumer_secret is None:
            return None
        secret = self.consumer_secret.get_secret_value()
        if not secret:
            return None
        return ConsumerCredentials(
            consumer_key=self.consumer_key,
            consumer_secret=secret,
        )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
