"""
PyContentState Configuration Management

This module provides configuration management with JSON-only persistence
and environment variable overrides.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pycontentstate.utils.errors import ConfigError, handle_exception
from pycontentstate.utils.logging import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "PYCONTENTSTATE_"
ENV_NESTING = "__"

DEFAULT_CONFIG: Dict[str, Any] = {
    "storage": {
        "backend": "none",
        "directory": None,
    },
    "logging": {
        "level": "INFO",
    },
}


def _copy(value: Any) -> Any:
    return json.loads(json.dumps(value))


class ConfigManager:
    """
    Configuration management using only JSON.
    
    Values are resolved in this order: environment overrides, the
    configuration file, keyword defaults, then DEFAULT_CONFIG. Without a
    config file the configuration lives in memory only.
    
    Only values read from or written to the file are persisted; defaults
    and environment overrides stay in the resolved view.
    """
    
    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
        **default_config
    ):
        """
        Initialize configuration manager.
        
        Args:
            config_file: Path to configuration file
            environ: Environment mapping to read overrides from (os.environ by default)
            **default_config: Default configuration values
        """
        self.config_file = Path(config_file) if config_file else None
        self._environ = os.environ if environ is None else environ
        self._file_config: Dict[str, Any] = {}
        self._config: Dict[str, Any] = {}
        
        self._defaults = _copy(DEFAULT_CONFIG)
        self._deep_update(self._defaults, default_config)
        
        self._load_config()
        self._resolve()
        
        logger.debug(f"ConfigManager initialized (file={self.config_file})")
    
    @handle_exception
    def _load_config(self):
        """Load configuration from file."""
        if self.config_file is None:
            self._file_config = {}
            return
        
        if not self.config_file.exists():
            logger.info(f"Config file not found, creating: {self.config_file}")
            self._file_config = {}
            self._save_config()
            return
        
        try:
            with open(self.config_file, 'r') as f:
                loaded = json.load(f)
            logger.debug(f"Loaded configuration from {self.config_file}")
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(
                f"Failed to load configuration from {self.config_file}: {str(e)}",
                details={'config_file': str(self.config_file), 'error': str(e)}
            ) from e
        
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Configuration file must contain a JSON object: {self.config_file}",
                details={'config_file': str(self.config_file)}
            )
        self._file_config = loaded
    
    @handle_exception
    def _save_config(self):
        """Save the file-backed configuration values."""
        if self.config_file is None:
            return
        
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            
            # Write to temporary file first
            temp_file = self.config_file.with_suffix('.tmp')
            with open(temp_file, 'w') as f:
                json.dump(self._file_config, f, indent=2, sort_keys=True)
            
            # Atomic rename
            temp_file.replace(self.config_file)
            logger.debug(f"Saved configuration to {self.config_file}")
            
        except (IOError, OSError) as e:
            raise ConfigError(
                f"Failed to save configuration to {self.config_file}: {str(e)}",
                details={'config_file': str(self.config_file), 'error': str(e)}
            ) from e
    
    def _resolve(self):
        """Build the resolved view: defaults, then file values, then environment."""
        self._config = _copy(self._defaults)
        self._deep_update(self._config, _copy(self._file_config))
        self._apply_env_overrides(self._config)
    
    def _apply_env_overrides(self, target: Dict[str, Any]):
        """Apply PYCONTENTSTATE_* variables; '__' separates nested keys."""
        for name, raw in self._environ.items():
            if not name.startswith(ENV_PREFIX):
                continue
            
            parts = [part.lower() for part in name[len(ENV_PREFIX):].split(ENV_NESTING) if part]
            if not parts:
                continue
            
            config = target
            for part in parts[:-1]:
                if not isinstance(config.get(part), dict):
                    config[part] = {}
                config = config[part]
            config[parts[-1]] = raw
            logger.debug(f"Environment override: {'.'.join(parts)}")
    
    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value.
        
        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found
            
        Returns:
            Configuration value
        """
        try:
            value = self._config
            for part in key.split('.'):
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default
    
    def set(self, key: str, value: Any):
        """
        Set configuration value.
        
        Args:
            key: Configuration key (supports dot notation)
            value: Value to set (must be JSON serializable)
        """
        try:
            json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Configuration value must be JSON serializable: {str(e)}",
                details={'key': key, 'value_type': type(value).__name__}
            ) from e
        
        self._set_path(self._file_config, key, key.split('.'), _copy(value))
        self._resolve()

        self._save_config()
        logger.debug(f"Set configuration: {key} = {value}")
    
    def _set_path(self, config: Dict[str, Any], key: str, parts: List[str], value: Any):
        for part in parts[:-1]:
            if part not in config:
                config[part] = {}
            elif not isinstance(config[part], dict):
                raise ConfigError(
                    f"Cannot set nested key '{key}': parent is not a dict",
                    details={'key': key, 'parent_key': part}
                )
            config = config[part]
        
        config[parts[-1]] = value
    
    def delete(self, key: str) -> bool:
        """
        Delete configuration key.
        
        Returns:
            bool: True if key was deleted, False if not found
        """
        parts = key.split('.')
        deleted = self._delete_path(self._config, parts)
        if self._delete_path(self._file_config, parts):
            self._save_config()
        
        if deleted:
            logger.debug(f"Deleted configuration key: {key}")
        return deleted
    
    def _delete_path(self, config: Dict[str, Any], parts: List[str]) -> bool:
        try:
            for part in parts[:-1]:
                config = config[part]
            del config[parts[-1]]
            return True
        except (KeyError, TypeError):
            return False
    
    def has(self, key: str) -> bool:
        """Check if configuration key exists."""
        try:
            config = self._config
            for part in key.split('.'):
                config = config[part]
            return True
        except (KeyError, TypeError):
            return False
    
    def get_all(self) -> Dict[str, Any]:
        """Get all configuration as a dictionary."""
        return _copy(self._config)
    
    def update(self, config: Dict[str, Any]):
        """
        Update configuration with dictionary.
        
        Args:
            config: Dictionary of configuration values
        """
        try:
            json.dumps(config)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Configuration values must be JSON serializable: {str(e)}",
                details={'config_keys': list(config.keys())}
            ) from e
        
        self._deep_update(self._file_config, _copy(config))
        self._resolve()
        
        self._save_config()
        logger.debug(f"Updated configuration with {len(config)} keys")
    
    def _deep_update(self, target: Dict[str, Any], source: Dict[str, Any]):
        """Deep update dictionary."""
        for key, value in source.items():
            if (key in target and 
                isinstance(target[key], dict) and 
                isinstance(value, dict)):
                self._deep_update(target[key], value)
            else:
                target[key] = value
    
    def reload(self):
        """Reload configuration from file and re-apply environment overrides."""
        self._load_config()
        self._resolve()
        logger.info("Configuration reloaded from file")
    
    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access for getting values."""
        if not self.has(key):
            raise KeyError(key)
        return self.get(key)
    
    def __setitem__(self, key: str, value: Any):
        """Dictionary-style access for setting values."""
        self.set(key, value)
    
    def __contains__(self, key: str) -> bool:
        """Dictionary-style membership testing."""
        return self.has(key)
    
    def __repr__(self) -> str:
        return f"ConfigManager(file='{self.config_file}', keys={len(self._config)})"
