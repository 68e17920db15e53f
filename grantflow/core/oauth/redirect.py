"""Redirect capture for interactive grants.

The orchestrator never renders the authorization prompt itself. It asks a
`RedirectCaptureAdapter` to present the authorization URL on some surface
(a browser, a webview, a terminal prompt) and to report back exactly one
event for that surface:

- `on_matched(url)` for the first navigation whose URL starts with the
  configured redirect URI
- `on_closed()` when the surface goes away without such a navigation

`LoopbackRedirectAdapter` implements the contract with a local HTTP server
and the system browser. `ConsoleRedirectAdapter` asks the user to paste the
final URL, for redirect URIs that cannot be served locally.
"""

from __future__ import annotations

import abc
import http.server
import logging
import threading
import time
import urllib.parse
import webbrowser
from collections.abc import Callable

from .constants import OAuthDefaults
from .exceptions import PopupBlockedError

_logger = logging.getLogger(__name__)

MatchedCallback = Callable[[str], None]
ClosedCallback = Callable[[], None]


def matches_redirect(url: str, redirect_uri: str) -> bool:
    """True when `url` is a navigation to `redirect_uri`."""
    return bool(redirect_uri) and url.startswith(redirect_uri)


class RedirectHandle:
    """One interactive surface opened by an adapter.

    Emits at most one event. Once `on_matched` or `on_closed` has fired
    the handle is detached and later events are dropped.
    """

    def __init__(self, on_matched: MatchedCallback, on_closed: ClosedCallback) -> None:
        self._on_matched: MatchedCallback | None = on_matched
        self._on_closed: ClosedCallback | None = on_closed
        self._lock = threading.Lock()
        self._finished = False

    @property
    def finished(self) -> bool:
        with self._lock:
            return self._finished

    def _detach(self) -> tuple[MatchedCallback | None, ClosedCallback | None]:
        with self._lock:
            if self._finished:
                return None, None
            self._finished = True
            callbacks = (self._on_matched, self._on_closed)
            self._on_matched = None
            self._on_closed = None
        self._release()
        return callbacks

    def emit_matched(self, url: str) -> bool:
        """Report a matching navigation. Returns False if the handle already finished."""
        on_matched, _ = self._detach()
        if on_matched is None:
            _logger.debug("Dropping redirect event for a finished handle")
            return False
        on_matched(url)
        return True

    def emit_closed(self) -> bool:
        """Report that the surface went away. Returns False if the handle already finished."""
        _, on_closed = self._detach()
        if on_closed is None:
            return False
        on_closed()
        return True

    def close(self) -> None:
        """Close the surface; reported as `closed` unless a match already happened."""
        self.emit_closed()

    def _release(self) -> None:
        """Tear down the surface. Called once, when the handle finishes."""
        return None


class RedirectCaptureAdapter(abc.ABC):
    """Capability that presents an authorization URL and captures the redirect."""

    @abc.abstractmethod
    def open(
        self,
        url: str,
        redirect_uri: str,
        on_matched: MatchedCallback,
        on_closed: ClosedCallback,
    ) -> RedirectHandle:
        """Present `url` interactively.

        Raises:
            PopupBlockedError: If no surface could be created
        """


# =============================================================================
# Loopback HTTP listener
# =============================================================================

# HTML page shown after the redirect was captured
_CAPTURED_HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Authorization received</title>
  </head>
  <body>
    <div style="max-width: 640px; margin: 80px auto;
                font-family: system-ui, -apple-system, sans-serif;">
      <h1>Authorization received</h1>
      <p>You can now close this window and return to the application.</p>
    </div>
  </body>
</html>
"""

# Implicit grants return the token in the fragment, which browsers never send
# to the server. This page moves it into the query and navigates again.
_FRAGMENT_RELAY_HTML = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Completing authorization</title>
  </head>
  <body>
    <script>
      window.location.replace(
        window.location.pathname + "?" + window.location.hash.substring(1)
      );
    </script>
  </body>
</html>
"""


class LoopbackRedirectHandle(RedirectHandle):
    """Handle owning the loopback server of one attempt."""

    def __init__(
        self,
        server: LoopbackHTTPServer,
        on_matched: MatchedCallback,
        on_closed: ClosedCallback,
    ) -> None:
        super().__init__(on_matched, on_closed)
        self.server = server

    def _release(self) -> None:
        # The release may run on the serving thread, which cannot join itself
        threading.Thread(target=self.server.stop, daemon=True).start()


class LoopbackHTTPServer(http.server.HTTPServer):
    """HTTP server that captures the redirect of a single attempt."""

    handle: LoopbackRedirectHandle

    def __init__(
        self,
        server_address: tuple[str, int],
        redirect_uri: str,
        shutdown_delay: float = 1.0,
    ) -> None:
        super().__init__(server_address, LoopbackHandler, bind_and_activate=True)
        self.redirect_uri = redirect_uri
        parsed = urllib.parse.urlsplit(redirect_uri)
        self.redirect_base = f"{parsed.scheme}://{parsed.netloc}"
        self.shutdown_delay = shutdown_delay
        self._stopped = threading.Event()

    def start(self) -> None:
        threading.Thread(target=self.serve_forever, daemon=True).start()

    def stop(self) -> None:
        """Stop serving after a short delay so the last page gets delivered."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        time.sleep(self.shutdown_delay)
        self.shutdown()
        self.server_close()


class LoopbackHandler(http.server.BaseHTTPRequestHandler):
    """Handle the browser navigation to the redirect URI."""

    server: LoopbackHTTPServer

    def do_GET(self) -> None:
        """Handle GET request."""
        url = self.server.redirect_base + self.path

        if not matches_redirect(url, self.server.redirect_uri):
            self.send_error(404, "Not Found")
            return

        if "?" not in self.path:
            # Payload, if any, is in the fragment
            self._send_html(_FRAGMENT_RELAY_HTML)
            return

        self._send_html(_CAPTURED_HTML)
        self.server.handle.emit_matched(url)

    def log_message(self, fmt: str, *args: object) -> None:
        """Route access logs to the module logger."""
        _logger.debug("loopback: " + fmt, *args)

    def _send_html(self, body: str) -> None:
        encoded = body.encode()
        self.send_response(200)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(encoded)


class LoopbackRedirectAdapter(RedirectCaptureAdapter):
    """Capture redirects with a local HTTP listener and the system browser.

    The listener binds to the host and port of the redirect URI (which must
    point at this machine, e.g. `http://localhost:1455/callback`).

    Example:
        >>> adapter = LoopbackRedirectAdapter()
        >>> OAuth2Authorization(config, redirect_adapter=adapter).authorize()
    """

    def __init__(
        self,
        open_browser: bool = True,
        bind_host: str | None = None,
        browser_opener: Callable[[str], bool] | None = None,
        on_url: Callable[[str], None] | None = None,
        shutdown_delay: float = 1.0,
    ) -> None:
        """Initialize the adapter.

        Args:
            open_browser: Open the system browser at the authorization URL
            bind_host: Interface to bind; defaults to the redirect URI host
            browser_opener: Replacement for `webbrowser.open`
            on_url: Called with the authorization URL when the browser is not
                opened, so it can be shown to the user
            shutdown_delay: Seconds to keep serving after the redirect
        """
        self.open_browser = open_browser
        self.bind_host = bind_host
        self.browser_opener = browser_opener or webbrowser.open
        self.on_url = on_url
        self.shutdown_delay = shutdown_delay

    def open(
        self,
        url: str,
        redirect_uri: str,
        on_matched: MatchedCallback,
        on_closed: ClosedCallback,
    ) -> RedirectHandle:
        parsed = urllib.parse.urlsplit(redirect_uri)
        if parsed.scheme != "http" or not parsed.hostname:
            raise PopupBlockedError(
                f"Redirect URI {redirect_uri!r} cannot be served by a loopback listener"
            )
        port = parsed.port if parsed.port is not None else 80
        host = self.bind_host or parsed.hostname or OAuthDefaults.CALLBACK_HOST

        try:
            server = LoopbackHTTPServer(
                (host, port), redirect_uri, shutdown_delay=self.shutdown_delay
            )
        except OSError as e:
            raise PopupBlockedError(f"Unable to listen on {host}:{port}: {e}") from e

        _logger.info("Listening for the authorization redirect on %s:%s", host, port)

        # The socket is already listening; requests queue until serving starts
        if self.open_browser:
            if not self.browser_opener(url):
                server.server_close()
                raise PopupBlockedError("Unable to open a browser window.")
        elif self.on_url is not None:
            self.on_url(url)
        else:
            _logger.info("Visit this URL to authorize: %s", url)

        handle = LoopbackRedirectHandle(server, on_matched, on_closed)
        server.handle = handle
        server.start()
        return handle


# =============================================================================
# Console prompt
# =============================================================================


class ConsoleRedirectAdapter(RedirectCaptureAdapter):
    """Show the authorization URL and read the final redirect URL from the user.

    An empty answer (or end of input) closes the surface.
    """

    def __init__(
        self,
        prompt: Callable[[str], str] = input,
        on_url: Callable[[str], None] | None = None,
    ) -> None:
        self.prompt = prompt
        self.on_url = on_url or (lambda u: _logger.info("Visit this URL to authorize: %s", u))

    def open(
        self,
        url: str,
        redirect_uri: str,
        on_matched: MatchedCallback,
        on_closed: ClosedCallback,
    ) -> RedirectHandle:
        handle = RedirectHandle(on_matched, on_closed)
        self.on_url(url)
        threading.Thread(target=self._read, args=(handle, redirect_uri), daemon=True).start()
        return handle

    def _read(self, handle: RedirectHandle, redirect_uri: str) -> None:
        while not handle.finished:
            try:
                answer = self.prompt("Paste the URL you were redirected to: ").strip()
            except EOFError:
                answer = ""
            if not answer:
                handle.emit_closed()
                return
            if matches_redirect(answer, redirect_uri):
                handle.emit_matched(answer)
                return
            _logger.warning("URL does not start with the redirect URI %s", redirect_uri)


__all__ = [
    "ClosedCallback",
    "ConsoleRedirectAdapter",
    "LoopbackHTTPServer",
    "LoopbackRedirectAdapter",
    "LoopbackRedirectHandle",
    "MatchedCallback",
    "RedirectCaptureAdapter",
    "RedirectHandle",
    "matches_redirect",
]
