"""Typed exception hierarchy for vault errors.

This module defines all custom exceptions raised while reading and writing
the local Markdown vault and its configuration. All exceptions inherit from
VaultError base class for easy catching and include descriptive messages
with context to help with debugging.
"""

from typing import Optional

from src.relay_client.errors import SyncError


class VaultError(SyncError):
    """Base exception for all vault errors."""
    pass


class FilesystemError(VaultError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(VaultError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class FrontmatterError(VaultError):
    """Raised when YAML frontmatter parsing or validation fails."""

    def __init__(self, file_path: str, message: str):
        super().__init__(
            f"Frontmatter error in {file_path}: {message}"
        )
        self.file_path = file_path
        self.message = message


class DocumentNotFoundError(VaultError):
    """Raised when a vault-relative path does not name an existing document."""

    def __init__(self, document_path: str, vault_root: str):
        super().__init__(f"Document {document_path} not found in vault {vault_root}")
        self.document_path = document_path
        self.vault_root = vault_root
