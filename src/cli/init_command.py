"""InitCommand for configuration initialization.

This module implements the --init command that creates the export
configuration for a vault.
"""

import logging
import os
from typing import Optional

from src.vault.config_loader import ConfigLoader
from src.vault.errors import FilesystemError
from src.vault.models import SyncSettings
from .errors import InitError

logger = logging.getLogger(__name__)


class InitCommand:
    """Handles initialization of export configuration.

    Example:
        >>> init = InitCommand()
        >>> init.run(vault_path="./vault", default_folder="Exports")
    """

    DEFAULT_CONFIG_PATH = ConfigLoader.DEFAULT_CONFIG_PATH

    def __init__(self, config_path: Optional[str] = None):
        """Initialize the init command.

        Args:
            config_path: Optional config file path (defaults to .foundry-sync/config.yaml)
        """
        self.config_path = config_path or self.DEFAULT_CONFIG_PATH

    def run(
        self,
        vault_path: str,
        default_folder: Optional[str] = None,
        default_collection: Optional[str] = None,
        force: bool = False,
    ) -> SyncSettings:
        """Write a new configuration file.

        Args:
            vault_path: Root directory of the Markdown vault
            default_folder: Folder path for notes that name none
            default_collection: Collection name for notes that name none
            force: Overwrite an existing configuration

        Returns:
            The settings that were written

        Raises:
            InitError: If the vault does not exist, the config already exists,
                or the file cannot be written
        """
        if not vault_path or not vault_path.strip():
            raise InitError("Vault path cannot be empty")
        if not os.path.isdir(vault_path):
            raise InitError(f"Vault directory does not exist: {vault_path}")
        if os.path.exists(self.config_path) and not force:
            raise InitError(
                f"Configuration already exists at {self.config_path}\n"
                "Edit it directly or remove it before running --init again."
            )

        settings = SyncSettings(vault_path=vault_path)
        if default_folder is not None:
            settings.default_folder = default_folder.strip().strip("/")
        if default_collection is not None:
            if not default_collection.strip():
                raise InitError("Default collection cannot be empty")
            settings.default_collection = default_collection.strip()

        try:
            ConfigLoader.save(self.config_path, settings)
        except FilesystemError as e:
            raise InitError(f"Failed to write configuration: {e}")

        logger.info(f"Wrote configuration to {self.config_path}")
        return settings
