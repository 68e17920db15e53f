"""Environment driven configuration for grantflow."""

from grantflow.core.config.config import Config, config, reset_config
from grantflow.core.config.schema import ConfigSchema, EnvVarSpec
from grantflow.core.config.validation import ConfigError, load_env_var, validate_all

__all__ = [
    "Config",
    "ConfigError",
    "ConfigSchema",
    "EnvVarSpec",
    "config",
    "load_env_var",
    "reset_config",
    "validate_all",
]
