"""OAuth1 signature base string construction (RFC 5849 section 3.4.1)."""

import urllib.parse
from collections.abc import Iterable, Mapping

from .exceptions import EncodingError, InvalidURIError

ParamPairs = Iterable[tuple[str, str]]

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters left as-is in a path; existing %XX escapes are kept.
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"


def percent_encode(value: str | bytes) -> str:
    """Percent-encode a value according to OAuth1 spec.

    Only the RFC 3986 unreserved characters (``A-Za-z0-9-._~``) are left as-is;
    a space becomes ``%20``, never ``+``.

    Args:
        value: The value to encode. Bytes must be valid UTF-8.

    Returns:
        Percent-encoded string.

    Raises:
        EncodingError: If the value cannot be represented as UTF-8.
    """
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Parameter is not valid UTF-8: {value!r}") from e
    try:
        return urllib.parse.quote(str(value), safe="")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Parameter is not valid UTF-8: {value!r}") from e


def normalize_uri(uri: str) -> str:
    """Normalize a request URI for the signature base string.

    Lowercases scheme and host, drops the default port, the query string
    and the fragment, and percent-encodes the path the way it is sent.

    Raises:
        InvalidURIError: If the URI cannot be parsed or is not http(s).
    """
    try:
        parts = urllib.parse.urlsplit(uri)
        port = parts.port
    except ValueError as e:
        raise InvalidURIError(f"Invalid URI {uri!r}: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise InvalidURIError(f"Invalid URI {uri!r}: scheme must be http or https")

    host = parts.hostname
    if not host:
        raise InvalidURIError(f"Invalid URI {uri!r}: missing host")
    if ":" in host:
        # IPv6 literal
        host = f"[{host}]"

    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"

    try:
        path = urllib.parse.quote(parts.path or "/", safe=_PATH_SAFE)
    except UnicodeEncodeError as e:
        raise InvalidURIError(f"Invalid URI {uri!r}: {e}") from e
    return f"{scheme}://{netloc}{path}"


def query_pairs(uri: str) -> list[tuple[str, str]]:
    """Return the query-string parameters embedded in a URI."""
    try:
        query = urllib.parse.urlsplit(uri).query
    except ValueError as e:
        raise InvalidURIError(f"Invalid URI {uri!r}: {e}") from e
    return urllib.parse.parse_qsl(query, keep_blank_values=True)


def as_pairs(params: Mapping[str, str] | ParamPairs | None) -> list[tuple[str, str]]:
    """Coerce a mapping or an iterable of pairs into a list of pairs."""
    if params is None:
        return []
    if isinstance(params, Mapping):
        return list(params.items())
    return list(params)


def normalize_parameters(params: Mapping[str, str] | ParamPairs) -> str:
    """Build the normalized parameter string.

    Every key and value is percent-encoded, then pairs are sorted by encoded
    key and, for repeated keys, by encoded value.
    """
    encoded = sorted(
        (percent_encode(key), percent_encode(value)) for key, value in as_pairs(params)
    )
    return "&".join(f"{key}={value}" for key, value in encoded)


def signature_base_string(
    method: str,
    uri: str,
    params: Mapping[str, str] | ParamPairs,
) -> str:
    """Create the OAuth1 signature base string.

    Args:
        method: HTTP method.
        uri: The request URI. Any query string is ignored here; callers
            include those parameters in ``params``.
        params: All parameters to sign (query, body and oauth_*).

    Returns:
        ``METHOD&encoded-uri&encoded-parameter-string``.
    """
    return "&".join(
        [
            method.upper(),
            percent_encode(normalize_uri(uri)),
            percent_encode(normalize_parameters(params)),
        ]
    )
