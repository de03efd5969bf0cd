"""Pytest configuration and fixtures for integration tests.

Integration tests drive the CLI commands end to end against an on-disk
vault and the in-memory relay. Pandoc is replaced by the test stub.
"""

from unittest.mock import patch

import pytest

from src.cli.init_command import InitCommand
from tests.helpers.fake_relay import FakeRelay
from tests.helpers.pandoc_stub import stub_pandoc


@pytest.fixture(autouse=True)
def pandoc():
    with stub_pandoc():
        yield


@pytest.fixture
def world():
    """Foundry world with an existing top-level 'Exports' folder."""
    relay = FakeRelay()
    relay.add_folder("Exports")
    return relay


@pytest.fixture
def relay_env(world):
    """Route every session the CLI builds to the in-memory world."""
    with patch("src.page_sync.session.Authenticator"), \
            patch("src.page_sync.session.RelayAPI", return_value=world):
        yield world


@pytest.fixture
def config_path(tmp_path, vault_dir):
    path = tmp_path / ".foundry-sync" / "config.yaml"
    InitCommand(str(path)).run(
        str(vault_dir), default_folder="Exports/Sessions", default_collection="Table1"
    )
    return str(path)
