"""Browser login: a one-shot local callback server that receives tokens."""

from __future__ import annotations

import logging
import time
import urllib.parse
import webbrowser
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Callable, Optional

from .credentials import Credentials, CredentialStore
from .errors import AuthError
from .settings import Settings

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/callback"

_SUCCESS_HTML = """<html>
  <head><title>Rapport MCP - Success</title></head>
  <body style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1 style="color: green;">&#10003; Authentication Successful!</h1>
    <p>You can close this window and return to your terminal.</p>
  </body>
</html>"""

_FAILURE_HTML = "<h1>Authentication Failed</h1><p>Missing token parameters</p>"


class CallbackHandler(BaseHTTPRequestHandler):
    server: "CallbackServer"

    def log_message(self, fmt, *args):  # keep stdout clean
        logger.debug(fmt % args)

    def _send(self, code: int, ctype: str, body: bytes) -> None:
        self.send_response(code)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self):
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path != CALLBACK_PATH:
            self._send(404, "text/plain; charset=utf-8", b"Not Found")
            return

        query = urllib.parse.parse_qs(parsed.query)
        access_token = query.get("access_token", [""])[0]
        refresh_token = query.get("refresh_token", [""])[0]
        user_id = query.get("user_id", [""])[0]

        if not access_token or not refresh_token or not user_id:
            self._send(400, "text/html; charset=utf-8", _FAILURE_HTML.encode())
            self.server.error = AuthError(
                code="E1102_LOGIN_INCOMPLETE",
                message="Authentication failed: missing token parameters",
                hint="Retry `rapport-mcp login` and finish signing in.",
            )
            return

        self.server.credentials = Credentials(
            access_token=access_token,
            refresh_token=refresh_token,
            user_id=user_id,
        )
        self._send(200, "text/html; charset=utf-8", _SUCCESS_HTML.encode())


class CallbackServer(HTTPServer):
    def __init__(self, port: int, host: str = "127.0.0.1"):
        super().__init__((host, port), CallbackHandler)
        self.credentials: Optional[Credentials] = None
        self.error: Optional[AuthError] = None

    @property
    def finished(self) -> bool:
        return self.credentials is not None or self.error is not None


def build_auth_url(settings: Settings) -> str:
    query = urllib.parse.urlencode({"callback": settings.callback_url}, safe=":/")
    return f"{settings.auth_url}?{query}"


def wait_for_callback(server: CallbackServer, timeout: float) -> Credentials:
    deadline = time.monotonic() + timeout
    while not server.finished:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise AuthError(
                code="E1103_LOGIN_TIMEOUT",
                message=f"Authentication timed out after {timeout:g} seconds",
                hint="Run `rapport-mcp login` again and complete the sign-in sooner.",
            )
        server.timeout = min(remaining, 1.0)
        server.handle_request()
    if server.error is not None:
        raise server.error
    return server.credentials


def login(
    settings: Settings,
    store: CredentialStore,
    open_browser: Callable[[str], bool] = webbrowser.open,
    echo: Callable[[str], None] = print,
) -> Credentials:
    """Run the browser login and persist the received tokens."""
    auth_url = build_auth_url(settings)
    with CallbackServer(settings.callback_port) as server:
        echo(f"Callback server listening on http://localhost:{settings.callback_port}")
        echo("Opening browser to authenticate...")
        opened = False
        try:
            opened = open_browser(auth_url)
        except webbrowser.Error as exc:
            logger.warning(f"Could not open browser: {exc}")
        if not opened:
            echo(f"Could not open browser automatically. Please open this URL manually:\n{auth_url}")
        credentials = wait_for_callback(server, settings.login_timeout)

    store.save(credentials)
    logger.info(f"Saved credentials for user {credentials.user_id} to {store.path}")
    return credentials
