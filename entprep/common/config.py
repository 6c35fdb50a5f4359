"""
Centralized Configuration

This module provides the configuration system for the exam-preparation core.
It handles configuration from environment variables, config files, and defaults,
with proper type checking and validation.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# Configure logging
logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ('memory', 'file', 'redis')


class RemoteConfig(BaseModel):
    """Remote data service configuration"""
    base_url: str = Field(default="http://localhost:8000")
    timeout_seconds: float = Field(default=10.0)
    headers: Dict[str, str] = Field(default_factory=lambda: {"Content-Type": "application/json"})

    @field_validator('timeout_seconds')
    @classmethod
    def validate_timeout(cls, v):
        """Validate the timeout budget is positive"""
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v):
        """Endpoint paths start with a slash"""
        return v.rstrip('/')


class StorageConfig(BaseModel):
    """Local key-value store configuration"""
    backend: str = Field(default="file")
    key_prefix: str = Field(default="entprep")
    file_directory: str = Field(default=".entprep")
    redis_url: str = Field(default="redis://localhost:6379/0")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v):
        """Validate storage backend name"""
        if v.lower() not in STORAGE_BACKENDS:
            raise ValueError(f"Invalid storage backend: {v}. Must be one of {list(STORAGE_BACKENDS)}")
        return v.lower()


class GatewayConfig(BaseModel):
    """Data gateway configuration"""
    cache_remote_reads: bool = Field(default=True)


class ExamConfig(BaseModel):
    """Exam session configuration"""
    time_limit_seconds: int = Field(default=120 * 60)
    tick_interval_seconds: float = Field(default=1.0)

    @field_validator('time_limit_seconds')
    @classmethod
    def validate_time_limit(cls, v):
        """Validate the time limit is positive"""
        if v <= 0:
            raise ValueError(f"Time limit must be positive, got {v}")
        return v


class DataConfig(BaseModel):
    """Static reference data (test catalog, user directory)"""
    reference_data_path: Optional[str] = Field(default=None)


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="INFO")
    use_json: bool = Field(default=False)
    file_path: Optional[str] = Field(default=None)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class EnvironmentConfig(BaseModel):
    """Environment configuration"""
    env: str = Field(default="development")

    @field_validator('env')
    @classmethod
    def validate_env(cls, v):
        """Validate environment"""
        valid_envs = ['development', 'testing', 'staging', 'production']
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()


class AppConfig(BaseSettings):
    """Main application configuration"""
    model_config = SettingsConfigDict(
        env_prefix="ENTPREP_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = Field(default="EntPrep")
    version: str = Field(default="0.1.0")
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    exam: ExamConfig = Field(default_factory=ExamConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment beats values read from the config file
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class ConfigLoader:
    """
    Configuration loader for the application.

    Loads configuration from:
    1. Default values
    2. Config file
    3. Environment variables (highest priority)
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the config loader.

        Args:
            config_path: Path to config file (YAML or JSON)
        """
        self.config_path = config_path or os.environ.get("CONFIG_PATH")
        self._config = None

    def load(self) -> AppConfig:
        """
        Load configuration from all sources.

        Returns:
            Loaded configuration
        """
        if self._config is not None:
            return self._config

        file_config = {}
        if self.config_path:
            file_config = self._load_from_file(self.config_path)

        self._config = AppConfig(**file_config)
        return self._config

    def _load_from_file(self, path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            path: Path to config file

        Returns:
            Loaded configuration dictionary
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Config file not found: {path}")
            return {}

        try:
            if path.suffix.lower() in ['.yaml', '.yml']:
                with open(path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
            elif path.suffix.lower() == '.json':
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            else:
                logger.warning(f"Unsupported config file format: {path.suffix}")
                return {}
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Error loading config file: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Config file {path} does not contain a mapping")
            return {}
        return data


_config_loader: Optional[ConfigLoader] = None


def get_config() -> AppConfig:
    """
    Get the loaded configuration, loading it on first use.

    Returns:
        Loaded configuration
    """
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader.load()


def reload_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Reload the configuration.

    Args:
        config_path: Path to config file

    Returns:
        Reloaded configuration
    """
    global _config_loader
    _config_loader = ConfigLoader(config_path)
    return _config_loader.load()
