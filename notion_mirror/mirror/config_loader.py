"""YAML configuration loading and validation.

This module handles loading and saving mirror configuration from YAML files.
The configuration file is optional: without one, every setting takes its
default and workspaces are discovered from the environment.
"""

import os
from dataclasses import replace
from typing import Any, Dict, List
import yaml

from .errors import ConfigError, FilesystemError
from .models import MirrorConfig, WorkspaceConfig
from .title_resolver import sanitize_name


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        storage_root: "storage"
        concurrency: 4
        tree_concurrency: 4
        max_depth: 50
        base_url: "https://api.notion.com/v1"
        notion_version: "2022-06-28"
        timeout: 30
        cleanup: true
        workspaces:
          - name: "team"
            token_env: "TEAM_INTEGRATION_NOTION"
    """

    DEFAULT_CONFIG_PATH = '.notion-mirror/config.yaml'

    # Positive integer settings
    INT_FIELDS = ('concurrency', 'tree_concurrency', 'max_depth')

    # Non-empty string settings
    STR_FIELDS = ('storage_root', 'base_url', 'notion_version')

    REQUIRED_WORKSPACE_FIELDS = {'name', 'token_env'}

    @classmethod
    def load(cls, config_path: str) -> MirrorConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            MirrorConfig object with parsed configuration

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(
                config_path,
                'read',
                'Configuration file not found'
            )
        except PermissionError:
            raise FilesystemError(
                config_path,
                'read',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'read',
                str(e)
            )

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Invalid YAML syntax: {str(e)}"
            )

        # An empty file means "all defaults"
        if config_dict is None:
            return MirrorConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def load_optional(cls, config_path: str) -> MirrorConfig:
        """Load configuration, falling back to defaults when the file is absent.

        Raises:
            FilesystemError: If the file exists but cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        if not os.path.exists(config_path):
            return MirrorConfig()
        return cls.load(config_path)

    @classmethod
    def save(cls, config_path: str, config: MirrorConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            FilesystemError: If file cannot be written
        """
        config_dict: Dict[str, Any] = {
            'storage_root': config.storage_root,
            'concurrency': config.concurrency,
            'tree_concurrency': config.tree_concurrency,
            'max_depth': config.max_depth,
            'base_url': config.base_url,
            'notion_version': config.notion_version,
            'timeout': config.timeout,
            'cleanup': config.cleanup,
        }
        if config.workspaces:
            config_dict['workspaces'] = [
                {'name': ws.name, 'token_env': ws.token_env}
                for ws in config.workspaces
            ]

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
                raise FilesystemError(
                    config_dir,
                    'create_directory',
                    str(e)
                )

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(
                config_path,
                'write',
                'Permission denied'
            )
        except OSError as e:
            raise FilesystemError(
                config_path,
                'write',
                str(e)
            )

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> MirrorConfig:
        """Parse and validate configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        values: Dict[str, Any] = {}

        for name in cls.INT_FIELDS:
            if name not in config_dict:
                continue
            value = config_dict[name]
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"Field '{name}' must be an integer", name)
            if value < 1:
                raise ConfigError(f"Field '{name}' must be at least 1, got {value}", name)
            values[name] = value

        for name in cls.STR_FIELDS:
            if name not in config_dict:
                continue
            value = config_dict[name]
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Field '{name}' must be a non-empty string", name)
            values[name] = value.strip()

        if 'timeout' in config_dict:
            timeout = config_dict['timeout']
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ConfigError("Field 'timeout' must be a positive number", 'timeout')
            values['timeout'] = timeout

        if 'cleanup' in config_dict:
            cleanup = config_dict['cleanup']
            if not isinstance(cleanup, bool):
                raise ConfigError("Field 'cleanup' must be true or false", 'cleanup')
            values['cleanup'] = cleanup

        values['workspaces'] = cls._parse_workspaces(config_dict.get('workspaces'))

        return replace(MirrorConfig(), **values)

    @classmethod
    def _parse_workspaces(cls, workspaces_raw: Any) -> List[WorkspaceConfig]:
        """Parse the optional ``workspaces`` list.

        Raises:
            ConfigError: If an item is malformed, unsafe as a directory
                         name, or duplicated
        """
        if workspaces_raw is None:
            return []

        if not isinstance(workspaces_raw, list):
            raise ConfigError("Field 'workspaces' must be a list", 'workspaces')

        workspaces = []
        seen = set()
        for i, ws_dict in enumerate(workspaces_raw):
            if not isinstance(ws_dict, dict):
                raise ConfigError(
                    f"Workspace configuration at index {i} must be a dictionary",
                    f'workspaces[{i}]'
                )

            missing = cls.REQUIRED_WORKSPACE_FIELDS - set(ws_dict.keys())
            if missing:
                raise ConfigError(
                    f"Missing required fields in workspace {i}: {', '.join(sorted(missing))}",
                    f'workspaces[{i}]'
                )

            name = str(ws_dict['name']).strip()
            token_env = str(ws_dict['token_env']).strip()

            if not name or not token_env:
                raise ConfigError(
                    f"Fields 'name' and 'token_env' in workspace {i} cannot be empty",
                    f'workspaces[{i}]'
                )

            # The name becomes a directory under storage_root
            if sanitize_name(name) != name or name in ('.', '..'):
                raise ConfigError(
                    f"Workspace name '{name}' may only contain letters, digits, '.', '_' and '-'",
                    f'workspaces[{i}].name'
                )

            if name in seen:
                raise ConfigError(
                    f"Duplicate workspace name '{name}'",
                    f'workspaces[{i}].name'
                )
            seen.add(name)

            workspaces.append(WorkspaceConfig(name=name, token_env=token_env))

        return workspaces
