"""YAML configuration loading and validation.

This module handles loading and saving export settings from
``.foundry-sync/config.yaml``. Only ``vault_path`` is required; every other
field falls back to a default.
"""

import os
from typing import Any, Dict

import yaml

from .errors import ConfigError, FilesystemError
from .models import SyncSettings


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        vault_path: "./vault"
        default_folder: "Obsidian Export"
        default_collection: "ObsidianExport"
        picture_path: "assets/pictures"
        read_metadata: true
        write_back_metadata: true
        refresh_metadata: false
        run_link_pass: true
        link_pass_mode: "local"
        page_ownership: -1
        client_id: null
    """

    DEFAULT_CONFIG_PATH = '.foundry-sync/config.yaml'

    REQUIRED_FIELDS = {'vault_path'}

    STRING_FIELDS = ('vault_name', 'default_folder', 'default_collection', 'picture_path')

    BOOL_FIELDS = (
        'read_metadata',
        'write_back_metadata',
        'refresh_metadata',
        'run_link_pass',
    )

    LINK_PASS_MODES = ('local', 'remote')

    @classmethod
    def load(cls, config_path: str) -> SyncSettings:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncSettings with defaults applied

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            raise ConfigError("Configuration file is empty")

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, settings: SyncSettings) -> None:
        """Save configuration to a YAML file.

        Raises:
            FilesystemError: If file cannot be written
        """
        config_dict = {
            'vault_path': settings.vault_path,
            'vault_name': settings.vault_name,
            'default_folder': settings.default_folder,
            'default_collection': settings.default_collection,
            'picture_path': settings.picture_path,
            'read_metadata': settings.read_metadata,
            'write_back_metadata': settings.write_back_metadata,
            'refresh_metadata': settings.refresh_metadata,
            'run_link_pass': settings.run_link_pass,
            'link_pass_mode': settings.link_pass_mode,
            'page_ownership': settings.page_ownership,
            'client_id': settings.client_id,
            'exclude_dirs': list(settings.exclude_dirs),
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(config_dir, 'create_directory', str(e))

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncSettings:
        """Parse and validate configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        missing_fields = cls.REQUIRED_FIELDS - set(config_dict.keys())
        if missing_fields:
            raise ConfigError(
                f"Missing required fields: {', '.join(sorted(missing_fields))}"
            )

        vault_path = config_dict['vault_path']
        if not isinstance(vault_path, str) or not vault_path.strip():
            raise ConfigError("Field 'vault_path' must be a non-empty string", 'vault_path')

        settings = SyncSettings(vault_path=vault_path)

        for name in cls.STRING_FIELDS:
            if config_dict.get(name) is None:
                continue
            value = config_dict[name]
            if not isinstance(value, str):
                raise ConfigError(f"Field '{name}' must be a string", name)
            setattr(settings, name, value.strip())

        for name in cls.BOOL_FIELDS:
            if name not in config_dict:
                continue
            value = config_dict[name]
            if not isinstance(value, bool):
                raise ConfigError(f"Field '{name}' must be true or false", name)
            setattr(settings, name, value)

        mode = config_dict.get('link_pass_mode', settings.link_pass_mode)
        if mode not in cls.LINK_PASS_MODES:
            raise ConfigError(
                f"Field 'link_pass_mode' must be one of {', '.join(cls.LINK_PASS_MODES)}, got {mode!r}",
                'link_pass_mode'
            )
        settings.link_pass_mode = mode

        ownership = config_dict.get('page_ownership', settings.page_ownership)
        if isinstance(ownership, bool) or not isinstance(ownership, int) or not -1 <= ownership <= 3:
            raise ConfigError("Field 'page_ownership' must be an integer from -1 to 3", 'page_ownership')
        settings.page_ownership = ownership

        client_id = config_dict.get('client_id')
        if client_id is not None:
            settings.client_id = str(client_id).strip() or None

        exclude_dirs = config_dict.get('exclude_dirs')
        if exclude_dirs is not None:
            if not isinstance(exclude_dirs, list):
                raise ConfigError("Field 'exclude_dirs' must be a list", 'exclude_dirs')
            settings.exclude_dirs = [str(d) for d in exclude_dirs]

        settings.picture_path = settings.picture_path.strip('/') or 'assets/pictures'
        settings.default_folder = settings.default_folder.strip('/')
        if not settings.default_collection:
            raise ConfigError("Field 'default_collection' cannot be empty", 'default_collection')

        return settings
