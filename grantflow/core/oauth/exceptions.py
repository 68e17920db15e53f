"""
Custom exception hierarchy for the grantflow oauth package.

All exceptions inherit from OAuthError, allowing users to
catch all library-specific errors with a single except clause.

Example:
    >>> try:
    ...     OAuth2Authorization(config).authorize()
    ... except AuthorizationError as e:
    ...     print(f"Authorization failed [{e.code}]: {e.message}")
"""

from __future__ import annotations

from typing import Any


class OAuthError(Exception):
    """Base exception for all grantflow errors."""

    pass


class ValidationError(OAuthError):
    """Raised when input validation fails.

    Attributes:
        field: Name of the field that failed validation
        value: The invalid value that was provided
        message: Human-readable explanation of the validation error

    Example:
        >>> AuthorizationConfig(grant_type="implicit", authorization_uri="ftp://x")
        ValidationError: Invalid 'authorization_uri': URL must use http or https scheme ...
    """

    def __init__(self, field: str, value: object, message: str) -> None:
        self.field = field
        self.value = value
        self.message = message
        super().__init__(f"Invalid {field!r}: {message} (got {value!r})")

    def __repr__(self) -> str:
        return (
            f"ValidationError(field={self.field!r}, value={self.value!r}, message={self.message!r})"
        )


class ConfigurationError(OAuthError):
    """Raised when configuration is incomplete for the selected grant type.

    Example:
        >>> OAuth2Authorization(AuthorizationConfig(grant_type="password")).check_config()
        ConfigurationError: Grant type 'password' requires: access_token_uri, username, password
    """

    pass


class OAuthFlowError(OAuthError):
    """Raised when the orchestrator is driven incorrectly (e.g. reused)."""

    pass


class PopupBlockedError(OAuthError):
    """Raised by a redirect capture adapter that cannot create its surface."""

    pass


class CodeError(OAuthError):
    """An OAuth2 error object returned by the token endpoint.

    Attributes:
        code: The `error` value reported by the server
        description: The `error_description` value, if any
    """

    def __init__(self, code: str, description: str | None = None) -> None:
        self.code = code
        self.description = description
        super().__init__(description or code)


class AuthorizationError(OAuthError):
    """Terminal failure of an authorization attempt.

    Attributes:
        message: Human-readable message
        code: Machine-readable taxonomy key (see `errors.py`)
        state: The `state` of the failed attempt, for correlation
        expected_state: Request state (set for `invalid_state`)
        received_state: State returned by the server (set for `invalid_state`)
    """

    def __init__(
        self,
        message: str,
        code: str,
        state: str | None,
        expected_state: str | None = None,
        received_state: str | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.state = state
        self.expected_state = expected_state
        self.received_state = received_state
        super().__init__(message)

    def __repr__(self) -> str:
        return f"AuthorizationError(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the error shape reported to callers."""
        data: dict[str, Any] = {
            "error": True,
            "message": self.message,
            "code": self.code,
            "state": self.state,
        }
        if self.expected_state is not None:
            data["expectedState"] = self.expected_state
        if self.received_state is not None:
            data["receivedState"] = self.received_state
        return data


__all__ = [
    "OAuthError",
    "ValidationError",
    "ConfigurationError",
    "OAuthFlowError",
    "PopupBlockedError",
    "CodeError",
    "AuthorizationError",
]
