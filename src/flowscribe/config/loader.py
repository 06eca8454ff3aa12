"""
Config Loader - Load and merge configuration from multiple sources.

Reads an optional YAML file and ``.env`` file, then lets pydantic-settings
pick up FLOWSCRIBE__ environment variables on top.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

from flowscribe.config.settings import Settings
from flowscribe.exceptions import ConfigurationError

CONFIG_ENV_VAR = "FLOWSCRIBE_CONFIG"
ENV_FILES = (Path(".env"), Path(".env.local"))


class ConfigLoader:
    """
    Builds Settings from overrides, environment, a YAML file and defaults.
    
    Priority order (highest to lowest):
    1. Explicit overrides passed to load()
    2. Environment variables
    3. Config file
    4. Default values
    
    The config file is the explicit path if one was given, else the
    path in ``FLOWSCRIBE_CONFIG``, else the first default location
    that exists.
    """
    
    DEFAULT_CONFIG_PATHS: List[Path] = [
        Path("flowscribe.yaml"),
        Path("flowscribe.yml"),
        Path("config/flowscribe.yaml"),
        Path.home() / ".config" / "flowscribe" / "config.yaml",
    ]
    
    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self._file_config: Dict[str, Any] = {}
    
    @property
    def file_config(self) -> Dict[str, Any]:
        """Raw mapping read from the config file by the last load()."""
        return dict(self._file_config)
    
    def find_config_file(self) -> Optional[Path]:
        """
        Locate the config file.
        
        Raises:
            ConfigurationError: if an explicitly requested file is missing
        """
        requested = self.config_path
        if requested is None and os.environ.get(CONFIG_ENV_VAR):
            requested = Path(os.environ[CONFIG_ENV_VAR])
        
        if requested is not None:
            if requested.exists():
                return requested
            raise ConfigurationError("Config file not found", {"path": str(requested)})
        
        return next((p for p in self.DEFAULT_CONFIG_PATHS if p.exists()), None)
    
    def load_yaml_config(self, path: Path) -> Dict[str, Any]:
        """
        Parse a YAML config file; an empty file is an empty mapping.
        
        Raises:
            ConfigurationError: for invalid YAML or a non-mapping document
        """
        try:
            config = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}", {"error": str(e)}) from e
        
        if config is None:
            return {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return config
    
    def _load_env_file(self, env_file: Optional[Union[str, Path]]) -> None:
        if env_file:
            load_dotenv(env_file)
            return
        existing = next((p for p in ENV_FILES if p.exists()), None)
        if existing is not None:
            load_dotenv(existing)
    
    def load(
        self,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Settings:
        """
        Load settings from all sources.
        
        Args:
            env_file: .env file to read instead of the default locations
            overrides: Nested values applied last
        """
        self._load_env_file(env_file)
        
        config_file = self.find_config_file()
        self._file_config = self.load_yaml_config(config_file) if config_file else {}
        
        settings = Settings(**self._file_config)
        return settings.merge_with(overrides) if overrides else settings


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> Settings:
    """
    Convenience function to load configuration.
    
    Example:
        >>> settings = load_config(capture={"spatial_fallback_px": 350})
    """
    return ConfigLoader(config_path).load(env_file=env_file, overrides=overrides or None)
