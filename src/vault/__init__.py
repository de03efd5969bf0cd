"""Local Markdown vault access: notes, frontmatter, identities and settings."""

from .config_loader import ConfigLoader
from .errors import (
    VaultError,
    FilesystemError,
    ConfigError,
    FrontmatterError,
    DocumentNotFoundError,
)
from .frontmatter_handler import FrontmatterHandler
from .identity_resolver import IdentityResolver
from .models import LocalDocument, SyncSettings
from .vault_store import VaultStore

__all__ = [
    "ConfigLoader",
    "VaultError",
    "FilesystemError",
    "ConfigError",
    "FrontmatterError",
    "DocumentNotFoundError",
    "FrontmatterHandler",
    "IdentityResolver",
    "LocalDocument",
    "SyncSettings",
    "VaultStore",
]
