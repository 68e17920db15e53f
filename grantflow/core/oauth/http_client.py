"""
HTTP client abstraction for the token exchange.

Provides a testable interface for the single POST the orchestrator makes
to the token endpoint, using httpx as the default implementation. HTTP
status codes are returned to the caller as-is; only transport failures
raise.
"""

from __future__ import annotations

import abc
import json
import logging
import typing
from dataclasses import dataclass, field

import httpx

from .constants import OAuthDefaults
from .exceptions import OAuthError

_logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class HttpClientConfig:
    """Configuration for HTTP client behavior.

    Attributes:
        timeout: Request timeout in seconds
        enable_logging: Enable structured logging of requests/responses
        verify: Verify TLS certificates
    """

    timeout: float = OAuthDefaults.HTTP_REQUEST_TIMEOUT
    enable_logging: bool = True
    verify: bool = True


# =============================================================================
# Response
# =============================================================================


@dataclass
class HttpResponse:
    """HTTP response wrapper adapting httpx.Response to our interface."""

    _raw: httpx.Response
    _text: str | None = field(init=False, default=None)

    @property
    def status_code(self) -> int:
        return self._raw.status_code

    @property
    def reason(self) -> str:
        return self._raw.reason_phrase

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._raw.headers)

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self._raw.headers.get(name, default)

    @property
    def content_type(self) -> str:
        return self.header("content-type")

    @property
    def body(self) -> bytes:
        return self._raw.content

    @property
    def text(self) -> str:
        if self._text is None:
            self._text = self._raw.text
        return self._text

    def json(self) -> dict[str, typing.Any]:
        return typing.cast(dict[str, typing.Any], self._raw.json())


# =============================================================================
# Exceptions
# =============================================================================


class HttpError(OAuthError):
    """HTTP request could not be completed.

    Wraps httpx transport exceptions to provide consistent error handling.

    Attributes:
        status_code: HTTP status code (0 for network errors)
        reason: Human-readable reason
        body: Response body
        url: Request URL
    """

    def __init__(
        self,
        status_code: int,
        reason: str,
        body: str,
        url: str,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.url = url

        body_preview = body[:200] if body else "(empty)"
        if len(body) > 200:
            body_preview += "..."

        super().__init__(f"HTTP {status_code} - {reason} for {url}\nResponse: {body_preview}")


# =============================================================================
# Abstract Client
# =============================================================================


class HttpClient(abc.ABC):
    """Abstract HTTP client used for token requests.

    Implementations must provide the post() method for making HTTP POST
    requests with form-encoded data.
    """

    @abc.abstractmethod
    def post(
        self,
        url: str,
        data: bytes,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        """Make an HTTP POST request.

        Args:
            url: Request URL
            data: Request body as bytes
            headers: Request headers
            timeout: Optional timeout override in seconds

        Returns:
            HttpResponse for any HTTP status

        Raises:
            HttpError: If the request could not be completed
        """
        pass

    def close(self) -> None:
        """Release pooled connections, if any."""
        return None


# =============================================================================
# httpx Implementation
# =============================================================================


class HttpxHttpClient(HttpClient):
    """Default HTTP client using httpx.

    Example:
        >>> client = HttpxHttpClient()
        >>> response = client.post(
        ...     "https://example.com/token",
        ...     b"grant_type=client_credentials",
        ...     {"content-type": "application/x-www-form-urlencoded"},
        ... )
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize HTTP client.

        Args:
            config: Client configuration (uses defaults if None)
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.config = config or HttpClientConfig()
        self._client = httpx.Client(
            transport=transport,
            timeout=httpx.Timeout(self.config.timeout),
            verify=self.config.verify,
        )

    def post(
        self,
        url: str,
        data: bytes,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        """Make HTTP POST request.

        Raises:
            HttpError: On connection, timeout or protocol failures
        """
        effective_timeout = timeout or self.config.timeout

        if self.config.enable_logging:
            # Header values may carry client credentials
            _logger.debug(
                "HTTP POST %s (timeout=%ss, headers=%s)",
                url,
                effective_timeout,
                sorted(headers),
            )

        try:
            response = self._client.post(
                url,
                content=data,
                headers=headers,
                timeout=httpx.Timeout(effective_timeout),
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise HttpError(
                status_code=0,
                reason=str(e) or type(e).__name__,
                body="",
                url=url,
            ) from e

        if self.config.enable_logging:
            _logger.debug(
                "HTTP %s from %s (body=%d bytes)",
                response.status_code,
                url,
                len(response.content),
            )

        return HttpResponse(response)

    def close(self) -> None:
        self._client.close()


# =============================================================================
# Mock Client for Testing
# =============================================================================


class MockHttpClient(HttpClient):
    """Mock HTTP client for testing.

    Returns predefined responses without making network requests.
    Tracks all requests made for test assertions.

    Example:
        >>> mock = MockHttpClient(status_code=200, json_response={"access_token": "test"})
        >>> response = mock.post("https://example.com", b"", {})
        >>> assert response.json()["access_token"] == "test"
        >>> assert len(mock.requests) == 1
    """

    def __init__(
        self,
        status_code: int = 200,
        json_response: dict[str, typing.Any] | None = None,
        text_response: str = "",
        content_type: str | None = None,
        raise_error: BaseException | type[BaseException] | None = None,
    ) -> None:
        """Initialize mock client.

        Args:
            status_code: HTTP status code to return
            json_response: JSON response body (sent as application/json)
            text_response: Text response body (used if json_response is None)
            content_type: Content type override
            raise_error: Exception to raise on every request (for testing errors)
        """
        self.status_code = status_code
        self.json_response = json_response
        self.text_response = text_response
        self.content_type = content_type
        self.raise_error = raise_error

        # Track requests made
        self.requests: list[dict[str, typing.Any]] = []

    def post(
        self,
        url: str,
        data: bytes,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> HttpResponse:
        """Record request and return mock response."""
        self.requests.append(
            {
                "url": url,
                "data": data,
                "headers": headers,
                "timeout": timeout,
            }
        )

        if self.raise_error:
            raise self.raise_error

        if self.json_response is not None:
            body = json.dumps(self.json_response).encode()
            content_type = self.content_type or "application/json"
        else:
            body = self.text_response.encode()
            content_type = self.content_type or "application/x-www-form-urlencoded"

        mock_response = httpx.Response(
            status_code=self.status_code,
            content=body,
            headers={"content-type": content_type},
            request=httpx.Request("POST", url),
        )

        return HttpResponse(mock_response)


__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "HttpResponse",
    "HttpError",
    "HttpxHttpClient",
    "MockHttpClient",
]
