"""Unit tests for relay_client.auth module."""

import pytest
from unittest.mock import patch

from src.relay_client.auth import DEFAULT_RELAY_URL, Authenticator, Credentials
from src.relay_client.errors import InvalidCredentialsError


def env(values):
    """Build an os.getenv side effect from a dict."""
    def getenv_side_effect(key, default=None):
        return values.get(key, default)
    return getenv_side_effect


class TestCredentials:
    """Test cases for Credentials NamedTuple."""

    def test_client_id_defaults_to_none(self):
        """Credentials can be created without a client id."""
        creds = Credentials(relay_url="https://relay.test", api_key="key")
        assert creds.client_id is None

    def test_credentials_are_immutable(self):
        """Credentials fields cannot be modified after creation."""
        creds = Credentials(relay_url="https://relay.test", api_key="key")
        with pytest.raises(AttributeError):
            creds.api_key = "other"


class TestAuthenticator:
    """Test cases for Authenticator class."""

    @patch('src.relay_client.auth.load_dotenv')
    def test_init_loads_dotenv(self, mock_load_dotenv):
        """Authenticator __init__ should call load_dotenv()."""
        Authenticator()
        mock_load_dotenv.assert_called_once()

    @patch('src.relay_client.auth.load_dotenv')
    @patch('os.getenv')
    def test_get_credentials_success(self, mock_getenv, mock_load_dotenv):
        """get_credentials should return Credentials when all env vars are set."""
        mock_getenv.side_effect = env({
            'FOUNDRY_RELAY_URL': 'https://relay.example.com/',
            'FOUNDRY_API_KEY': 'secret-key',
            'FOUNDRY_CLIENT_ID': 'client-42',
        })

        creds = Authenticator().get_credentials()

        assert creds.relay_url == 'https://relay.example.com'
        assert creds.api_key == 'secret-key'
        assert creds.client_id == 'client-42'

    @patch('src.relay_client.auth.load_dotenv')
    @patch('os.getenv')
    def test_relay_url_defaults_to_public_relay(self, mock_getenv, mock_load_dotenv):
        """A missing FOUNDRY_RELAY_URL falls back to the public relay."""
        mock_getenv.side_effect = env({'FOUNDRY_API_KEY': 'secret-key'})

        creds = Authenticator().get_credentials()

        assert creds.relay_url == DEFAULT_RELAY_URL
        assert creds.client_id is None

    @patch('src.relay_client.auth.load_dotenv')
    @patch('os.getenv')
    def test_missing_api_key_raises(self, mock_getenv, mock_load_dotenv):
        """get_credentials should raise when FOUNDRY_API_KEY is not set."""
        mock_getenv.side_effect = env({'FOUNDRY_RELAY_URL': 'https://relay.test'})

        with pytest.raises(InvalidCredentialsError) as exc_info:
            Authenticator().get_credentials()

        assert "FOUNDRY_API_KEY" in str(exc_info.value)
        assert exc_info.value.endpoint == 'https://relay.test'

    @patch('src.relay_client.auth.load_dotenv')
    @patch('os.getenv')
    def test_malformed_url_raises(self, mock_getenv, mock_load_dotenv):
        """A relay URL without http(s) scheme is rejected."""
        mock_getenv.side_effect = env({
            'FOUNDRY_RELAY_URL': 'relay.test',
            'FOUNDRY_API_KEY': 'secret-key',
        })

        with pytest.raises(InvalidCredentialsError) as exc_info:
            Authenticator().get_credentials()

        assert "http://" in exc_info.value.reason
