"""Tests for environment driven configuration."""

import pytest

from grantflow.core.config import (
    Config,
    ConfigError,
    ConfigSchema,
    config,
    load_env_var,
    reset_config,
    validate_all,
)


@pytest.mark.unit
class TestConfigDefaults:
    def test_defaults(self):
        settings = Config()

        assert settings.log_level == "INFO"
        assert settings.http_timeout == 30.0
        assert settings.callback_host == "localhost"
        assert settings.callback_port == 1455
        assert settings.open_browser is True

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("GRANTFLOW_LOG_LEVEL", "debug # verbose")
        monkeypatch.setenv("GRANTFLOW_HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("GRANTFLOW_CALLBACK_PORT", "8085")
        monkeypatch.setenv("GRANTFLOW_OPEN_BROWSER", "no")

        settings = Config()

        assert settings.log_level == "DEBUG"
        assert settings.http_timeout == 2.5
        assert settings.callback_port == 8085
        assert settings.open_browser is False

    def test_proxy_is_lazy_and_resettable(self, monkeypatch):
        assert config.callback_host == "localhost"

        monkeypatch.setenv("GRANTFLOW_CALLBACK_HOST", "127.0.0.1")
        assert config.callback_host == "localhost"

        reset_config()
        assert config.callback_host == "127.0.0.1"


@pytest.mark.unit
class TestConfigValidation:
    @pytest.mark.parametrize(
        "name, value",
        [
            ("GRANTFLOW_CALLBACK_PORT", "80"),
            ("GRANTFLOW_CALLBACK_PORT", "not-a-port"),
            ("GRANTFLOW_HTTP_TIMEOUT", "-1"),
            ("GRANTFLOW_LOG_LEVEL", "LOUD"),
            ("GRANTFLOW_LOG_LEVEL", ""),
        ],
    )
    def test_invalid_values_name_the_variable(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigError) as exc_info:
            load_env_var(ConfigSchema.get_spec(name))

        assert exc_info.value.env_var == name
        assert name in str(exc_info.value)

    def test_port_zero_is_allowed(self, monkeypatch):
        monkeypatch.setenv("GRANTFLOW_CALLBACK_PORT", "0")
        assert load_env_var(ConfigSchema.CALLBACK_PORT) == 0

    def test_validate_all_collects_every_error(self, monkeypatch):
        monkeypatch.setenv("GRANTFLOW_CALLBACK_PORT", "80")
        monkeypatch.setenv("GRANTFLOW_HTTP_TIMEOUT", "soon")

        errors = validate_all()

        assert sorted(error.env_var for error in errors) == [
            "GRANTFLOW_CALLBACK_PORT",
            "GRANTFLOW_HTTP_TIMEOUT",
        ]

    def test_schema_registry(self):
        names = {spec.name for spec in ConfigSchema.all_specs().values()}
        assert names == {
            "GRANTFLOW_LOG_LEVEL",
            "GRANTFLOW_HTTP_TIMEOUT",
            "GRANTFLOW_CALLBACK_HOST",
            "GRANTFLOW_CALLBACK_PORT",
            "GRANTFLOW_OPEN_BROWSER",
        }
        assert ConfigSchema.get_spec("UNKNOWN") is None
