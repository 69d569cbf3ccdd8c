"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    'export': {
        'output_directory': './Evernote',
        'limit': 0,
        'localized_names': True,
        'write_json': True,
        'write_html': True,
        'json_include_data': False,
        'set_file_dates': True,
        'progress_bars': True
    },
    'logging': {
        'level': None,
        'file': None
    }
}

_BOOLEAN_EXPORT_KEYS = (
    'localized_names',
    'write_json',
    'write_html',
    'json_include_data',
    'set_file_dates',
    'progress_bars'
)

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def defaults(cls) -> Dict[str, Any]:
        """Return a fresh copy of the default configuration."""
        return copy.deepcopy(DEFAULT_CONFIG)

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values from the file are layered over :meth:`defaults`.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the document is not a mapping
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)

        return _deep_merge(cls.defaults(), config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        for section in ('export', 'logging'):
            value = config.get(section, {})
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"{section} must be a mapping")

        output_dir = get_nested(config, 'export.output_directory', './Evernote')
        if not isinstance(output_dir, str) or not output_dir.strip():
            raise ValueError("export.output_directory must be a non-empty path")
        if '${' in output_dir:
            match = cls.ENV_VAR_PATTERN.search(output_dir)
            var_name = match.group(1) if match else output_dir
            raise ValueError(
                f"export.output_directory contains unsubstituted environment variable: {output_dir}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        limit = get_nested(config, 'export.limit', 0)
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValueError("export.limit must be a non-negative integer")

        for key in _BOOLEAN_EXPORT_KEYS:
            value = get_nested(config, f'export.{key}', True)
            if not isinstance(value, bool):
                raise ValueError(f"export.{key} must be a boolean")

        level = get_nested(config, 'logging.level')
        if level is not None and (not isinstance(level, str) or level.upper() not in _LOG_LEVELS):
            raise ValueError(f"logging.level must be one of: {list(_LOG_LEVELS)}")

        log_file = get_nested(config, 'logging.file')
        if log_file is not None and not isinstance(log_file, str):
            raise ValueError("logging.file must be a path")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)
        merged.setdefault('export', {})
        merged.setdefault('logging', {})

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'limit', None) is not None:
            merged['export']['limit'] = args.limit

        if getattr(args, 'no_progress', False):
            merged['export']['progress_bars'] = False

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value; unknown variables are left as-is."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "export.output_directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
