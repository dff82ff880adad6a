"""File-based storage for credentials and API responses."""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from .exceptions import MalformedCredentialResponse
from .models import AccessCredentials, ApiResponse, ConsumerCredentials

logger = logging.getLogger(__name__)


def _expand(path: str | os.PathLike) -> Path:
    return Path(os.path.expanduser(path))


def _read_json(path: Path) -> dict:
    """Read a JSON object from disk.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedCredentialResponse: If the content is not a JSON object.
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedCredentialResponse(
                f"Failed to parse {path} as JSON: {e}"
            ) from e
    if not isinstance(data, dict):
        raise MalformedCredentialResponse(f"{path} does not contain a JSON object")
    return data


def _write_atomic(path: Path, content: bytes, mode: int | None = None) -> None:
    """Write content to a file via a temp file and rename.

    Args:
        path: Destination path.
        content: Bytes to write.
        mode: Optional permission bits applied before the rename.
    """
    if not path.parent.exists():
        path.parent.mkdir(parents=True, mode=0o700)

    temp_path = path.with_name(path.name + ".tmp")
    with open(temp_path, "wb") as f:
        f.write(content)

    if mode is not None:
        os.chmod(temp_path, mode)

    temp_path.replace(path)


def load_consumer_credentials(path: str | os.PathLike) -> ConsumerCredentials:
    """Load consumer credentials from a JSON file.

    The file holds ``{"consumer_key": ..., "consumer_secret": ...}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedCredentialResponse: If the file cannot be parsed.
    """
    file_path = _expand(path)
    data = _read_json(file_path)
    try:
        return ConsumerCredentials(
            consumer_key=data["consumer_key"],
            consumer_secret=data["consumer_secret"],
        )
    except (KeyError, ValidationError) as e:
        raise MalformedCredentialResponse(
            f"{file_path} is missing consumer_key or consumer_secret"
        ) from e


def load_access_credentials(path: str | os.PathLike) -> AccessCredentials:
    """Load previously saved access credentials.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedCredentialResponse: If the file is malformed or a field is empty.
    """
    file_path = _expand(path)
    data = _read_json(file_path)

    token = data.get("access_token")
    secret = data.get("access_token_secret")
    if not isinstance(token, str) or not isinstance(secret, str) or not token or not secret:
        raise MalformedCredentialResponse(
            f"{file_path} is missing access_token or access_token_secret"
        )
    return AccessCredentials(access_token=token, access_token_secret=secret)


def save_access_credentials(
    path: str | os.PathLike, credentials: AccessCredentials
) -> None:
    """Save access credentials as JSON, readable by the owner only."""
    file_path = _expand(path)
    content = json.dumps(credentials.to_storage(), indent=2).encode("utf-8")
    _write_atomic(file_path, content, mode=0o600)
    logger.info("Saved access credentials to %s", file_path)


def save_response(path: str | os.PathLike, response: ApiResponse) -> None:
    """Write the raw response body to a file."""
    file_path = _expand(path)
    _write_atomic(file_path, response.body)
    logger.info("Saved HTTP %s response to %s", response.status_code, file_path)
