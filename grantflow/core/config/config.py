"""Configuration singleton for grantflow.

Values are loaded once from environment variables (and a `.env` file, loaded
at package import) according to ConfigSchema.
"""

from grantflow.core.config.schema import ConfigSchema
from grantflow.core.config.validation import load_env_var


class Config:
    """Direct property access to validated configuration values."""

    def __init__(self) -> None:
        self._log_level: str = load_env_var(ConfigSchema.LOG_LEVEL)
        self._http_timeout: float = load_env_var(ConfigSchema.HTTP_TIMEOUT)
        self._callback_host: str = load_env_var(ConfigSchema.CALLBACK_HOST)
        self._callback_port: int = load_env_var(ConfigSchema.CALLBACK_PORT)
        self._open_browser: bool = load_env_var(ConfigSchema.OPEN_BROWSER)

    @property
    def log_level(self) -> str:
        # Extract just the first word to tolerate trailing comments in .env files
        return self._log_level.split()[0].upper()

    @property
    def http_timeout(self) -> float:
        return self._http_timeout

    @property
    def callback_host(self) -> str:
        return self._callback_host

    @property
    def callback_port(self) -> int:
        return self._callback_port

    @property
    def open_browser(self) -> bool:
        return self._open_browser


class _ConfigProxy:
    """Lazily builds the Config singleton on first attribute access."""

    _instance: Config | None = None

    def __getattr__(self, name: str) -> object:
        if _ConfigProxy._instance is None:
            _ConfigProxy._instance = Config()
        return getattr(_ConfigProxy._instance, name)


def reset_config() -> None:
    """Drop the cached Config so the next access re-reads the environment."""
    _ConfigProxy._instance = None


config = _ConfigProxy()
