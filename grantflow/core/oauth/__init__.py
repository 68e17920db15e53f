"""
OAuth 2.0 authorization library

Runs a single OAuth 2.0 authorization attempt and returns one normalized
token (or one structured error). Usable from CLI tools, desktop apps or
any Python application.

This library provides:
- Implicit and authorization code (+ PKCE) grants with redirect capture
- Client credentials, password, device code, JWT bearer and custom grants
- A fixed error taxonomy for server and orchestration failures
- Token normalization (camel-cased keys, expiry, granted scopes)

Basic Usage:
    >>> from grantflow.core.oauth import AuthorizationConfig, OAuth2Authorization
    >>>
    >>> config = AuthorizationConfig(
    ...     grant_type="authorization_code",
    ...     authorization_uri="https://auth.example.com/authorize",
    ...     access_token_uri="https://auth.example.com/token",
    ...     client_id="cid",
    ...     redirect_uri="http://localhost:1455/callback",
    ...     scopes=("openid", "email"),
    ...     pkce=True,
    ... )
    >>> token = OAuth2Authorization(config).authorize()
    >>> headers = {"Authorization": f"{token.token_type} {token.access_token}"}

For Testing:
    >>> from grantflow.core.oauth import MockHttpClient
    >>> client = MockHttpClient(json_response={"access_token": "t"})
    >>> OAuth2Authorization(config, http_client=client)
"""

# Constants
from .constants import GrantType, OAuthDefaults, OAuthProtocol, PkceProtocol

# Error taxonomy
from .errors import ErrorCode, create_error_params, error_message

# Exceptions
from .exceptions import (
    AuthorizationError,
    CodeError,
    ConfigurationError,
    OAuthError,
    OAuthFlowError,
    PopupBlockedError,
    ValidationError,
)

# Request building
from .grants import FormBody, basic_auth_header, code_request_body, token_request_body

# HTTP client
from .http_client import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    HttpResponse,
    HttpxHttpClient,
    MockHttpClient,
)

# Data model
from .models import (
    AuthCustomData,
    AuthorizationConfig,
    CustomData,
    CustomParameter,
    TokenCustomData,
    TokenInfo,
)

# Response normalization
from .normalizer import map_code_response, process_code_response

# Orchestration
from .orchestrator import AttemptState, OAuth2Authorization, TokenRequestError

# PKCE
from .pkce import PkceCodes, generate_code_challenge, generate_pkce

# Redirect capture
from .redirect import (
    ConsoleRedirectAdapter,
    LoopbackRedirectAdapter,
    RedirectCaptureAdapter,
    RedirectHandle,
)

# Utilities
from .utils import camel, random_string

__all__ = [
    # Orchestration
    "AttemptState",
    "OAuth2Authorization",
    # Data model
    "AuthCustomData",
    "AuthorizationConfig",
    "CustomData",
    "CustomParameter",
    "TokenCustomData",
    "TokenInfo",
    # Exceptions
    "AuthorizationError",
    "CodeError",
    "ConfigurationError",
    "OAuthError",
    "OAuthFlowError",
    "PopupBlockedError",
    "TokenRequestError",
    "ValidationError",
    # Error taxonomy
    "ErrorCode",
    "create_error_params",
    "error_message",
    # Redirect capture
    "ConsoleRedirectAdapter",
    "LoopbackRedirectAdapter",
    "RedirectCaptureAdapter",
    "RedirectHandle",
    # HTTP client
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "HttpResponse",
    "HttpxHttpClient",
    "MockHttpClient",
    # Request building and normalization
    "FormBody",
    "basic_auth_header",
    "code_request_body",
    "map_code_response",
    "process_code_response",
    "token_request_body",
    # PKCE
    "PkceCodes",
    "generate_code_challenge",
    "generate_pkce",
    # Constants
    "GrantType",
    "OAuthDefaults",
    "OAuthProtocol",
    "PkceProtocol",
    # Utilities
    "camel",
    "random_string",
]
