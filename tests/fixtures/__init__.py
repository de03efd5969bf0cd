"""Test fixtures for vault export tests.

This module provides builders for small on-disk vaults:
- Notes with YAML frontmatter
- Image files with fixed PNG content
- Frontmatter read-back for write-back assertions
"""

from .vault_fixtures import PNG_BYTES, read_frontmatter, write_image, write_note

__all__ = [
    "PNG_BYTES",
    "read_frontmatter",
    "write_image",
    "write_note",
]
