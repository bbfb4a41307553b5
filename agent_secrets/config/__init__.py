"""Configuration loading and secrets-section validation."""

from agent_secrets.config.loader import load_config, read_config_file, resolve_config_path
from agent_secrets.config.schema import (
    EnvProviderConfig,
    FileProviderConfig,
    SecretDefaultsConfig,
    SecretsConfig,
    parse_secrets_config,
)

__all__ = [
    "EnvProviderConfig",
    "FileProviderConfig",
    "SecretDefaultsConfig",
    "SecretsConfig",
    "load_config",
    "parse_secrets_config",
    "read_config_file",
    "resolve_config_path",
]
