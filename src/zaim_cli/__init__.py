"""Zaim CLI - sign and send OAuth 1.0a requests to the Zaim REST API."""

__version__ = "0.1.0"
