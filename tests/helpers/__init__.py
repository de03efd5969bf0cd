"""Test helper modules for export testing.

This package provides doubles for the external collaborators:
- fake_relay: In-memory Foundry world answering RelayAPI calls
- pandoc_stub: Markdown to HTML without a Pandoc binary
"""

from .fake_relay import FakeRelay, RelayWithoutKey
from .pandoc_stub import stub_pandoc

__all__ = [
    'FakeRelay',
    'RelayWithoutKey',
    'stub_pandoc',
]
