"""OAuth 2.0 authorization orchestration.

`OAuth2Authorization` runs exactly one authorization attempt:

    IDLE -> DISPATCHING -> AWAITING_REDIRECT | EXCHANGING_TOKEN
         -> RESOLVED_TOKEN | RESOLVED_ERROR

Interactive grants (implicit, authorization_code) present the authorization
URL through a `RedirectCaptureAdapter` and wait for the redirect. All other
grants go straight to the token endpoint. Every path ends in `_settle()`,
which accepts the first outcome and ignores the rest.

Example:
    >>> config = AuthorizationConfig(
    ...     grant_type="client_credentials",
    ...     access_token_uri="https://auth.example.com/token",
    ...     client_id="cid",
    ...     client_secret="secret",
    ... )
    >>> token = OAuth2Authorization(config).authorize()
    >>> token.access_token
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
import urllib.parse
from collections.abc import Mapping
from typing import Any

from grantflow.core.logging import attempt_logger

from .constants import OAuthProtocol, PkceProtocol
from .custom_params import (
    append_query_params,
    apply_body,
    apply_headers,
    apply_query,
    merge_headers,
)
from .errors import ErrorCode, create_error_params
from .exceptions import (
    AuthorizationError,
    CodeError,
    ConfigurationError,
    OAuthError,
    OAuthFlowError,
    PopupBlockedError,
)
from .grants import (
    FormBody,
    code_request_body,
    credentials_headers,
    credentials_query,
    grant_rule,
    missing_required_fields,
    token_request_body,
)
from .http_client import HttpClient, HttpError, HttpxHttpClient
from .models import AuthorizationConfig, TokenInfo
from .normalizer import Clock, map_code_response, process_code_response, token_info_from_params
from .pkce import generate_code_challenge
from .redirect import LoopbackRedirectAdapter, RedirectCaptureAdapter, RedirectHandle
from .utils import join_scopes, random_string
from .validation import validate_state, validate_type, validate_url

_logger = logging.getLogger(__name__)

_CONNECT_ERROR_PREFIX = "Couldn't connect to the server."

_MATCHED = "matched"
_CLOSED = "closed"


class AttemptState(str, enum.Enum):
    """Lifecycle of one authorization attempt."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXCHANGING_TOKEN = "exchanging_token"
    RESOLVED_TOKEN = "resolved_token"
    RESOLVED_ERROR = "resolved_error"

    @property
    def terminal(self) -> bool:
        return self in (AttemptState.RESOLVED_TOKEN, AttemptState.RESOLVED_ERROR)


class TokenRequestError(OAuthError):
    """The token endpoint answered with something that is not a token."""

    pass


class OAuth2Authorization:
    """Drive one OAuth 2.0 authorization attempt.

    One instance handles exactly one attempt. Run concurrent attempts with
    separate instances; each carries its own `state` and redirect surface.
    """

    def __init__(
        self,
        config: AuthorizationConfig | Mapping[str, Any],
        http_client: HttpClient | None = None,
        redirect_adapter: RedirectCaptureAdapter | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Authorization configuration, or a mapping accepted by
                `AuthorizationConfig.from_dict`
            http_client: Client for the token request (httpx when None)
            redirect_adapter: Surface for interactive grants (loopback
                listener and system browser when None)
            clock: Time source in seconds, used to compute token expiry

        Raises:
            ValidationError: If the configuration is malformed
        """
        if isinstance(config, Mapping):
            config = AuthorizationConfig.from_dict(config)
        validate_type(config, AuthorizationConfig, "config")
        self._config: AuthorizationConfig = config
        self._http_client = http_client
        self._redirect_adapter = redirect_adapter
        self._clock = clock

        self._lock = threading.Lock()
        self._phase = AttemptState.IDLE
        self._state_value: str | None = None
        self._code_verifier: str | None = None
        self._handle: RedirectHandle | None = None
        self._events: queue.Queue[tuple[str, str | None]] = queue.Queue()
        self._outcome: TokenInfo | AuthorizationError | None = None

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def settings(self) -> AuthorizationConfig:
        """The configuration of this attempt."""
        return self._config

    @property
    def state(self) -> str:
        """The request `state`: the configured one, or a generated one."""
        with self._lock:
            if self._state_value is None:
                self._state_value = self._config.state or random_string()
            return self._state_value

    @property
    def phase(self) -> AttemptState:
        with self._lock:
            return self._phase

    @property
    def outcome(self) -> TokenInfo | AuthorizationError | None:
        """The terminal outcome, once the attempt has settled."""
        with self._lock:
            return self._outcome

    @property
    def code_verifier(self) -> str | None:
        """PKCE code verifier generated for the authorization URL, if any."""
        return self._code_verifier

    def check_config(self) -> None:
        """Sanity check the configuration before starting. Never mutates it.

        Raises:
            ValidationError: If a URL or the `state` value is malformed
            ConfigurationError: If a field the grant requires is missing
        """
        config = self._config
        if config.state is not None:
            validate_state(config.state)
        for name in ("authorization_uri", "access_token_uri", "redirect_uri"):
            value = getattr(config, name)
            if value:
                validate_url(value, name)
        missing = missing_required_fields(config)
        if missing:
            raise ConfigurationError(
                f"Grant type {config.grant_type!r} requires: {', '.join(missing)}"
            )

    def authorize(self) -> TokenInfo:
        """Run the attempt and wait for its outcome.

        Returns:
            The normalized token

        Raises:
            AuthorizationError: If the attempt failed (see `errors.py` codes);
                `invalid_config` when `check_config` rejects the configuration
            OAuthFlowError: If this instance was already used
        """
        with self._lock:
            if self._phase is not AttemptState.IDLE:
                raise OAuthFlowError("An authorization attempt can only be run once per instance")
            self._phase = AttemptState.DISPATCHING

        try:
            self.check_config()
        except OAuthError as e:
            self._fail(str(e), ErrorCode.INVALID_CONFIG)
            self._log.warning("Authorization not started: %s", e)
            raise self.outcome from e

        log = self._log
        log.info("Starting %s authorization", self._config.grant_type)
        client_owned = self._http_client is None
        try:
            self._dispatch()
        finally:
            if client_owned and self._http_client is not None:
                self._http_client.close()
                self._http_client = None

        outcome = self.outcome
        if isinstance(outcome, TokenInfo):
            log.info("Authorization succeeded (expires in %ss)", outcome.expires_in)
            return outcome
        if outcome is None:
            # Every branch of _dispatch settles; reaching this is a logic error
            outcome = AuthorizationError(
                "The authorization process has an invalid state. This should never happen.",
                ErrorCode.UNKNOWN_STATE,
                self.state,
            )
        log.warning("Authorization failed [%s]: %s", outcome.code, outcome.message)
        raise outcome

    def cancel(self) -> None:
        """Close the interactive surface; the attempt fails with `no_response`."""
        with self._lock:
            handle = self._handle
        if handle is not None:
            handle.close()
        else:
            self._events.put((_CLOSED, None))

    def build_authorization_url(self) -> str | None:
        """Authorization URL for the implicit and authorization_code grants.

        Generates a new PKCE verifier when PKCE applies. The client secret is
        never part of the URL.

        Returns:
            The URL, or None when no `response_type` can be derived
        """
        config = self._config
        response_type = config.response_type or OAuthProtocol.GRANT_RESPONSE_MAPPING.get(
            config.grant_type
        )
        if not response_type or not config.authorization_uri:
            return None

        params = FormBody()
        params.set("response_type", response_type)
        params.set("client_id", config.client_id or "")
        params.set("state", self.state)
        params.set_if("redirect_uri", config.redirect_uri)
        params.set_if("scope", join_scopes(config.scopes))
        if config.include_granted_scopes:
            params.set("include_granted_scopes", "true")
        params.set_if("login_hint", config.login_hint)
        if config.pkce and "code" in response_type:
            self._code_verifier = random_string(PkceProtocol.CODE_VERIFIER_BYTES)
            params.set("code_challenge", generate_code_challenge(self._code_verifier))
            params.set("code_challenge_method", PkceProtocol.CODE_CHALLENGE_METHOD)

        url = append_query_params(config.authorization_uri, params.items())
        if config.custom_data is not None and config.custom_data.auth is not None:
            url = apply_query(url, config.custom_data.auth.parameters)
        return url

    # =========================================================================
    # Dispatch
    # =========================================================================

    @property
    def _log(self) -> logging.LoggerAdapter:
        return attempt_logger(__name__, self.state)

    def _dispatch(self) -> None:
        if grant_rule(self._config).interactive:
            self._authorize_interactive()
        else:
            self._authorize_direct()

    def _transition(self, phase: AttemptState) -> bool:
        with self._lock:
            if self._phase.terminal:
                return False
            self._phase = phase
            return True

    # =========================================================================
    # Interactive grants
    # =========================================================================

    def _authorize_interactive(self) -> None:
        url = self.build_authorization_url()
        if not url:
            self._fail("Unable to construct the authorization URL.", ErrorCode.UNKNOWN_STATE)
            return

        adapter = self._redirect_adapter or LoopbackRedirectAdapter()
        redirect_uri = self._config.redirect_uri or ""
        try:
            handle = adapter.open(
                url, redirect_uri, self._on_redirect_matched, self._on_redirect_closed
            )
        except PopupBlockedError as e:
            self._fail(str(e) or "Unable to open the authorization window.", ErrorCode.POPUP_BLOCKED)
            return

        with self._lock:
            self._handle = handle
        self._transition(AttemptState.AWAITING_REDIRECT)
        self._log.debug("Waiting for a redirect to %s", redirect_uri)

        try:
            kind, redirect_url = self._events.get()
        except KeyboardInterrupt:
            handle.close()
            self._fail("No response has been recorded.", ErrorCode.NO_RESPONSE)
            raise

        # The first event decides; the handle is detached either way
        handle.close()
        if kind == _CLOSED or redirect_url is None:
            self._fail("No response has been recorded.", ErrorCode.NO_RESPONSE)
            return
        self._process_redirect_url(redirect_url)

    def _on_redirect_matched(self, url: str) -> None:
        self._events.put((_MATCHED, url))

    def _on_redirect_closed(self) -> None:
        self._events.put((_CLOSED, None))

    def _process_redirect_url(self, url: str) -> None:
        try:
            raw = self._auth_data_from_url(url)
        except ValueError:
            raw = ""
        if not raw:
            self._fail(
                "Invalid response from the authentication server. "
                "The redirect parameters are invalid.",
                ErrorCode.POPUP_ERROR,
            )
            return

        params: dict[str, str] = {}
        for key, value in urllib.parse.parse_qsl(raw, keep_blank_values=True):
            params.setdefault(key, value)

        if not any(name in params for name in OAuthProtocol.REDIRECT_RESPONSE_PARAMS):
            self._log.warning("Unprocessable authorization response")
            self._fail("Unprocessable authorization response.", ErrorCode.POPUP_ERROR)
            return
        self._process_token_response(params)

    @staticmethod
    def _auth_data_from_url(url: str) -> str:
        """Authorization payload of a redirect URL: the query, else the fragment."""
        parts = urllib.parse.urlsplit(url)
        return parts.query or parts.fragment

    def _process_token_response(self, params: Mapping[str, str]) -> None:
        state = params.get("state")
        if not state:
            self._fail("Server did not return the state parameter.", ErrorCode.NO_STATE)
            return
        if state != self.state:
            self._fail(
                "The state value returned by the authorization server is invalid.",
                ErrorCode.INVALID_STATE,
                expected_state=self.state,
                received_state=state,
            )
            return
        if params.get("error") is not None:
            self._fail(*create_error_params(params["error"], params.get("error_description")))
            return

        config = self._config
        if config.grant_type == "implicit" or config.response_type == "id_token":
            self._succeed(token_info_from_params(params, config.scopes, self._clock))
            return

        if config.grant_type == "authorization_code":
            code = params.get("code")
            if not code:
                self._fail(
                    "The authorization server did not returned the authorization code.",
                    ErrorCode.NO_CODE,
                )
                return
            self._transition(AttemptState.EXCHANGING_TOKEN)
            try:
                token = self._exchange_code(code)
            except (OAuthError, ValueError) as e:
                self._handle_token_code_error(e)
                return
            token.state = state
            self._succeed(token)
            return

        self._fail(
            "The authorization process has an invalid state. This should never happen.",
            ErrorCode.UNKNOWN_STATE,
        )

    def _exchange_code(self, code: str) -> TokenInfo:
        """Exchange the authorization code for a token."""
        body = code_request_body(self._config, code, self._code_verifier)
        info = self._request_token_info(body)
        return map_code_response(info, self._config.scopes, self._clock)

    # =========================================================================
    # Direct grants
    # =========================================================================

    def _authorize_direct(self) -> None:
        self._transition(AttemptState.EXCHANGING_TOKEN)
        try:
            body = token_request_body(self._config)
            info = self._request_token_info(body)
            token = map_code_response(info, self._config.scopes, self._clock)
        except (OAuthError, ValueError) as e:
            self._handle_token_code_error(e)
            return

        # Token endpoints do not echo `state`; one that does must match
        if token.state and token.state != self.state:
            self._fail(
                "The state value returned by the authorization server is invalid.",
                ErrorCode.INVALID_STATE,
                expected_state=self.state,
                received_state=token.state,
            )
            return
        token.state = self.state
        self._succeed(token)

    # =========================================================================
    # Token endpoint
    # =========================================================================

    def _request_token_info(self, body: FormBody) -> dict[str, Any]:
        """POST to the token endpoint and parse the response.

        Raises:
            HttpError: On transport failures
            TokenRequestError: On unusable HTTP responses
            ValueError: On malformed response bodies
        """
        config = self._config
        custom_data = config.custom_data

        url = config.access_token_uri or ""
        if custom_data is not None and custom_data.token is not None:
            url = apply_query(url, custom_data.token.parameters)
        url = append_query_params(url, credentials_query(config))

        headers = merge_headers(
            {
                "content-type": OAuthProtocol.FORM_CONTENT_TYPE,
                "cache-control": "no-cache",
            },
            credentials_headers(config),
        )
        headers = apply_headers(headers, custom_data)
        body = apply_body(body, custom_data)

        client = self._get_http_client()
        self._log.debug("Requesting token from %s", config.access_token_uri)
        response = client.post(url, body.encode().encode("utf-8"), headers)
        status = response.status_code

        if status == OAuthProtocol.HTTP_NOT_FOUND:
            raise TokenRequestError("Authorization URI is invalid. Received status 404.")
        if status >= OAuthProtocol.HTTP_SERVER_ERROR:
            raise TokenRequestError(f"Authorization server error. Response code is: {status}")
        text = response.text
        if not text:
            raise TokenRequestError("Code response body is empty.")
        mime = response.content_type
        if status >= OAuthProtocol.HTTP_CLIENT_ERROR:
            raise TokenRequestError(f"Client error: {text}")

        return process_code_response(text, mime)

    def _get_http_client(self) -> HttpClient:
        if self._http_client is None:
            self._http_client = HttpxHttpClient()
        return self._http_client

    def _handle_token_code_error(self, error: Exception) -> None:
        if isinstance(error, CodeError):
            self._fail(*create_error_params(error.code, error.description))
            return
        detail = error.reason if isinstance(error, HttpError) else str(error)
        self._fail(f"{_CONNECT_ERROR_PREFIX} {detail}", ErrorCode.REQUEST_ERROR)

    # =========================================================================
    # Settlement
    # =========================================================================

    def _succeed(self, token: TokenInfo) -> None:
        self._settle(token, AttemptState.RESOLVED_TOKEN)

    def _fail(
        self,
        message: str,
        code: str,
        expected_state: str | None = None,
        received_state: str | None = None,
    ) -> None:
        error = AuthorizationError(
            message,
            code,
            self.state,
            expected_state=expected_state,
            received_state=received_state,
        )
        self._settle(error, AttemptState.RESOLVED_ERROR)

    def _settle(self, outcome: TokenInfo | AuthorizationError, phase: AttemptState) -> None:
        """Record the terminal outcome. Only the first call has any effect."""
        with self._lock:
            if self._phase.terminal:
                _logger.debug("Ignoring outcome for an already settled attempt")
                return
            self._phase = phase
            self._outcome = outcome
            handle = self._handle
        if handle is not None:
            handle.close()


__all__ = [
    "AttemptState",
    "OAuth2Authorization",
    "TokenRequestError",
]
