"""Authentication module for loading relay credentials.

This module handles loading the Foundry REST relay credentials from
environment variables using python-dotenv. It validates that the API key is
present and raises appropriate errors if it is missing.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_RELAY_URL = "https://foundryvtt-rest-api-relay.fly.dev"


class Credentials(NamedTuple):
    """Relay API credentials."""
    relay_url: str
    api_key: str
    client_id: Optional[str] = None


class Authenticator:
    """Loads and validates relay credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Environment variables:
        FOUNDRY_API_KEY: Relay API key (required)
        FOUNDRY_RELAY_URL: Relay base URL (defaults to the public relay)
        FOUNDRY_CLIENT_ID: Connected Foundry client to target (optional)

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.relay_url}")
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get relay credentials from environment variables.

        Returns:
            Credentials: A named tuple containing relay_url, api_key and client_id

        Raises:
            InvalidCredentialsError: If the API key is missing or the URL is malformed
        """
        relay_url = os.getenv('FOUNDRY_RELAY_URL') or DEFAULT_RELAY_URL
        api_key = os.getenv('FOUNDRY_API_KEY')
        client_id = os.getenv('FOUNDRY_CLIENT_ID') or None

        if not api_key:
            raise InvalidCredentialsError(
                endpoint=relay_url,
                reason="FOUNDRY_API_KEY is not set"
            )

        if not relay_url.startswith(('http://', 'https://')):
            raise InvalidCredentialsError(
                endpoint=relay_url,
                reason="FOUNDRY_RELAY_URL must start with http:// or https://"
            )

        return Credentials(
            relay_url=relay_url.rstrip('/'),
            api_key=api_key,
            client_id=client_id
        )
