"""Declarative schema for environment variable configuration.

This module is the single source of truth for every environment variable
grantflow reads, including type coercion and validation rules.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EnvVarSpec:
    """Specification for a single environment variable.

    Attributes:
        name: Environment variable name (e.g., "GRANTFLOW_LOG_LEVEL")
        default: Default value if env var not set
        type_hint: Type for validation (int, str, float, bool)
        description: Human-readable description for docs
        validator: Optional custom validation function
        coerce: Optional function to convert string to target type
    """

    name: str
    default: Any
    type_hint: type
    description: str
    validator: Callable[[Any], bool] | None = None
    coerce: Callable[[str], Any] | None = None


class ConfigSchema:
    """Registry of all configuration environment variables."""

    # === Logging ===

    LOG_LEVEL = EnvVarSpec(
        name="GRANTFLOW_LOG_LEVEL",
        default="INFO",
        type_hint=str,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validator=lambda x: x.split()[0].upper() in _LOG_LEVELS,
    )

    # === Token endpoint ===

    HTTP_TIMEOUT = EnvVarSpec(
        name="GRANTFLOW_HTTP_TIMEOUT",
        default=30.0,
        type_hint=float,
        description="Timeout in seconds for the token exchange request",
        validator=lambda x: x > 0,
    )

    # === Loopback redirect capture ===

    CALLBACK_HOST = EnvVarSpec(
        name="GRANTFLOW_CALLBACK_HOST",
        default="localhost",
        type_hint=str,
        description="Host the loopback redirect listener binds to",
        validator=lambda x: bool(x.strip()),
    )

    CALLBACK_PORT = EnvVarSpec(
        name="GRANTFLOW_CALLBACK_PORT",
        default=1455,
        type_hint=int,
        description="Port the loopback redirect listener binds to (0 picks a free port)",
        validator=lambda x: x == 0 or 1024 <= x <= 65535,
    )

    OPEN_BROWSER = EnvVarSpec(
        name="GRANTFLOW_OPEN_BROWSER",
        default=True,
        type_hint=bool,
        description="Open the system browser for interactive grants",
    )

    @classmethod
    def all_specs(cls) -> dict[str, EnvVarSpec]:
        """Get all environment variable specifications.

        Returns:
            Dictionary mapping spec names to EnvVarSpec objects
        """
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if isinstance(getattr(cls, name), EnvVarSpec)
        }

    @classmethod
    def get_spec(cls, name: str) -> EnvVarSpec | None:
        """Get specification for a specific env var by name."""
        for spec in cls.all_specs().values():
            if spec.name == name:
                return spec
        return None
