"""CLI entry point for Zaim CLI."""

import json
import logging
import sys
from typing import NoReturn

import click
import httpx

from . import __version__
from .api_client import HTTP_METHODS, RequestExecutor
from .config import Settings, get_settings
from .exceptions import (
    ConfigurationError,
    MalformedCredentialResponse,
    OAuthFlowError,
    ZaimError,
)
from .handshake import HandshakeController
from .models import AccessCredentials, ConsumerCredentials
from .token_store import (
    load_access_credentials,
    load_consumer_credentials,
    save_access_credentials,
    save_response,
)

# Logger for CLI
logger = logging.getLogger(__name__)


def _fail(message: str) -> NoReturn:
    """Print an error message to stderr and exit with status 1."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def prompt_for_verifier(url: str) -> str:
    """Show the authorization URL and read the verifier code from the terminal."""
    click.echo("Please open the following URL in your web browser.")
    click.echo(f"  {url}")
    try:
        return click.prompt("When you get the verifier code, enter it here")
    except (click.Abort, EOFError) as e:
        raise OAuthFlowError(
            "Authorization failed: verifier prompt was cancelled", step="authorization"
        ) from e


def _parse_query(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> dict[str, str] | None:
    """Parse --query as a JSON object of string values."""
    if value is None:
        return None
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"failed to parse as JSON: {e}") from e
    if not isinstance(data, dict) or not all(
        isinstance(v, str) for v in data.values()
    ):
        raise click.BadParameter("must be a JSON object with string values")
    return data


def _load_consumer(
    consumer_info: str | None, settings: Settings
) -> ConsumerCredentials:
    if consumer_info:
        return load_consumer_credentials(consumer_info)
    consumer = settings.consumer_credentials()
    if consumer is None:
        raise ConfigurationError(
            "No consumer credentials. Pass --consumer-info or set "
            "ZAIM_CONSUMER_KEY and ZAIM_CONSUMER_SECRET."
        )
    return consumer


def _load_stored_access(access_token: str | None) -> AccessCredentials | None:
    """Load stored access tokens, or None to run the handshake."""
    if access_token is None:
        return None
    try:
        return load_access_credentials(access_token)
    except MalformedCredentialResponse as e:
        logger.warning("%s; starting a new authorization", e)
        return None


@click.command()
@click.option(
    "--consumer-info",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with consumer_key and consumer_secret",
)
@click.option(
    "--access-token",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with access_token and access_token_secret",
)
@click.option("--uri", required=True, help="REST API URI")
@click.option(
    "--method",
    required=True,
    type=click.Choice(sorted(HTTP_METHODS), case_sensitive=False),
    help="HTTP method for the REST API",
)
@click.option(
    "--query",
    callback=_parse_query,
    metavar="JSON",
    help='Query parameters as a JSON object, e.g. \'{"mapping": "1"}\'',
)
@click.option(
    "--save",
    required=True,
    type=click.Path(dir_okay=False),
    help="File to save the response body",
)
@click.option(
    "--access-token-out",
    type=click.Path(dir_okay=False),
    help="Where to write newly obtained access tokens",
)
@click.option("--callback", help="OAuth callback (default: oob)")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.version_option(version=__version__)
def main(
    consumer_info: str | None,
    access_token: str | None,
    uri: str,
    method: str,
    query: dict[str, str] | None,
    save: str,
    access_token_out: str | None,
    callback: str | None,
    verbose: bool,
) -> None:
    """Authorize with OAuth 1.0a and send one signed request to the Zaim API."""
    # Configure logging based on verbosity
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        settings = get_settings()
        consumer = _load_consumer(consumer_info, settings)
        token_out = access_token_out or settings.access_token_path

        with httpx.Client(timeout=settings.timeout) as client:
            credentials = _load_stored_access(access_token)
            if credentials is None:
                controller = HandshakeController(settings, consumer, client)
                credentials = controller.authenticate(
                    prompt_for_verifier,
                    sink=lambda c: save_access_credentials(token_out, c),
                    callback=callback,
                )

            response = RequestExecutor(consumer, client).execute(
                method, uri, query, credentials
            )
    except ZaimError as e:
        _fail(str(e))
    except OSError as e:
        _fail(f"failed to read or write a file: {e}")

    if not response.is_success:
        _fail(f"failed to request to rest api: HTTP {response.status_code}")

    try:
        save_response(save, response)
    except OSError as e:
        _fail(f"failed to save api response: {e}")


if __name__ == "__main__":
    main()
