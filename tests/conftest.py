"""Root pytest configuration for all tests."""

import pytest

from src.page_sync.session import SyncSession
from src.vault.models import SyncSettings
from src.vault.vault_store import VaultStore
from tests.helpers.fake_relay import FakeRelay


@pytest.fixture
def vault_dir(tmp_path):
    """Empty vault directory."""
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def settings(vault_dir):
    return SyncSettings(vault_path=str(vault_dir), vault_name="TestVault")


@pytest.fixture
def fake_relay():
    return FakeRelay()


@pytest.fixture
def store(vault_dir):
    return VaultStore(str(vault_dir))


@pytest.fixture
def session(settings, fake_relay, store):
    """SyncSession wired to the fake relay, not yet opened."""
    return SyncSession(settings, api=fake_relay, store=store)
