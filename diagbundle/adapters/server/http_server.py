"""HTTP server adapter for diagnosis downloads.

Provides a simple threaded HTTP server using Python's built-in http.server
module, bridging each request onto the asyncio event loop that runs the
core services.

Endpoints:
    GET /health
    GET /api/diag/sql?project={project}
    GET /api/diag/project/{project}/download
    GET /api/diag/job/{job_id}/download

The caller identity is taken from the X-User header. Supports optional API
key authentication via the Authorization header (Bearer token) or X-API-Key.
"""

import asyncio
import concurrent.futures
import hmac
import json
import logging
import os
import re
import shutil
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Coroutine

from diagbundle.adapters.server.receiver import DiagnosisRequestReceiver

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = re.compile(r"^/api/diag/(project|job)/([^/]+)/download$")


def make_diagnosis_handler(
    receiver: DiagnosisRequestReceiver,
    event_loop: asyncio.AbstractEventLoop,
    api_key: str | None,
    require_auth: bool,
    request_timeout: float | None,
) -> type[BaseHTTPRequestHandler]:
    """Factory to create a DiagnosisHTTPHandler class with instance-specific state.

    Args:
        receiver: Receiver for diagnosis operations
        event_loop: Event loop for async operations
        api_key: Optional API key for authentication
        require_auth: Whether authentication is required
        request_timeout: Seconds to wait for an operation (None = unbounded)

    Returns:
        A DiagnosisHTTPHandler class configured with the provided dependencies
    """

    class DiagnosisHTTPHandler(BaseHTTPRequestHandler):
        """HTTP request handler for diagnosis endpoints."""

        def _check_auth(self) -> bool:
            """Check if request is authenticated.

            Supports two authentication methods:
            1. Authorization: Bearer <api_key>
            2. X-API-Key: <api_key>
            """
            if not require_auth:
                return True

            if not api_key:
                return False

            auth_header = self.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                return hmac.compare_digest(auth_header[7:], api_key)

            api_key_header = self.headers.get("X-API-Key", "")
            if api_key_header:
                return hmac.compare_digest(api_key_header, api_key)

            return False

        def do_GET(self) -> None:
            """Route GET requests. Health check is public (no auth required)."""
            parsed = urllib.parse.urlsplit(self.path)

            if parsed.path == "/health":
                self._send_json(200, {"status": "healthy"})
                return

            if not self._check_auth():
                self._send_json(
                    401, {"status": "error", "message": "Unauthorized: invalid or missing API key"}
                )
                return

            user = self.headers.get("X-User", "").strip()
            if not user:
                self._send_json(400, {"status": "error", "message": "Missing X-User header"})
                return

            if parsed.path == "/api/diag/sql":
                project = urllib.parse.parse_qs(parsed.query).get("project", [""])[0]
                if not project:
                    self._send_json(400, {"status": "error", "message": "Missing project"})
                    return
                self._handle_bad_queries(project, user)
                return

            match = DOWNLOAD_PATH.match(parsed.path)
            if match:
                kind, target = match.group(1), urllib.parse.unquote(match.group(2))
                self._handle_download(kind, target, user)
                return

            self._send_json(404, {"status": "error", "message": "Not found"})

        def _handle_bad_queries(self, project: str, user: str) -> None:
            try:
                result = self._run_async(receiver.handle_bad_query_request(project, user))
            except Exception as e:
                self._send_error_for(e)
                return
            self._send_json(200, result)

        def _handle_download(self, kind: str, target: str, user: str) -> None:
            if kind == "project":
                coro = receiver.handle_project_bundle_request(target, user)
            else:
                coro = receiver.handle_job_bundle_request(target, user)

            try:
                bundle_path = self._run_async(coro)
            except Exception as e:
                self._send_error_for(e)
                return

            try:
                self._send_file(bundle_path)
            finally:
                try:
                    self._run_async(receiver.release_bundle(bundle_path))
                except Exception as e:
                    logger.error(f"Failed to release workspace for {bundle_path}: {e}", exc_info=True)

        def _run_async(self, coro: Coroutine[Any, Any, Any]) -> Any:
            """Run an async coroutine on the server's event loop and wait for its result.

            On timeout the coroutine is cancelled, which also terminates any
            diagnostic script it started.
            """
            future = asyncio.run_coroutine_threadsafe(coro, event_loop)
            try:
                return future.result(timeout=request_timeout)
            except concurrent.futures.TimeoutError:
                future.cancel()
                raise

        def _send_error_for(self, error: Exception) -> None:
            """Send the client-safe response for a failed operation."""
            status, body = DiagnosisRequestReceiver.error_response(error)
            if status >= 500:
                logger.error(f"Error handling diagnosis request: {error}", exc_info=True)
            else:
                logger.warning(f"Diagnosis request failed: {error}")
            self._send_json(status, body)

        def _send_file(self, path: str) -> None:
            """Stream a bundle to the client as an attachment."""
            size = os.path.getsize(path)
            filename = os.path.basename(path)
            self.send_response(200)
            self.send_header("Content-Type", "application/octet-stream")
            self.send_header("Content-Disposition", f'attachment; filename="{filename}"')
            self.send_header("Content-Length", str(size))
            self.end_headers()
            with open(path, "rb") as f:
                shutil.copyfileobj(f, self.wfile)

        def _send_json(self, status: int, data: dict[str, Any]) -> None:
            """Send JSON response."""
            body = json.dumps(data).encode()
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: Any) -> None:
            """Log HTTP request."""
            logger.debug(f"HTTP {self.client_address[0]}: {format % args}")

    return DiagnosisHTTPHandler


class DiagnosisHTTPServer:
    """Diagnosis HTTP server adapter.

    Serves bundle downloads and bad-query lookups. Each request is handled
    on its own thread, so concurrent diagnoses do not wait on each other.
    """

    def __init__(
        self,
        receiver: DiagnosisRequestReceiver,
        host: str = "0.0.0.0",
        port: int = 7070,
        api_key: str | None = None,
        require_auth: bool = False,
        request_timeout: float | None = None,
    ):
        """Initialize the HTTP server.

        Args:
            receiver: DiagnosisRequestReceiver instance to handle requests.
            host: Host to listen on (default 0.0.0.0).
            port: Port to listen on (default 7070).
            api_key: Optional API key for authentication.
            require_auth: Whether to require authentication (default False).
                         If True, api_key must be provided.
            request_timeout: Seconds a request may wait for its operation.

        Raises:
            ValueError: If require_auth=True but no api_key is provided.
        """
        if require_auth and not api_key:
            raise ValueError("require_auth=True but no API key provided")

        self.receiver = receiver
        self.host = host
        self.port = port
        self.api_key = api_key
        self.require_auth = require_auth
        self.request_timeout = request_timeout
        self.server: ThreadingHTTPServer | None = None
        self._server_task: asyncio.Task[None] | None = None

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port); differs from configuration when port 0 was requested."""
        if self.server is None:
            return self.host, self.port
        host, port = self.server.server_address[:2]
        return str(host), int(port)

    async def start(self) -> None:
        """Start the HTTP server."""
        handler_class = make_diagnosis_handler(
            receiver=self.receiver,
            event_loop=asyncio.get_running_loop(),
            api_key=self.api_key,
            require_auth=self.require_auth,
            request_timeout=self.request_timeout,
        )

        self.server = ThreadingHTTPServer((self.host, self.port), handler_class)
        self.server.daemon_threads = True

        self._server_task = asyncio.create_task(self._run_server())
        host, port = self.address
        if self.require_auth:
            logger.info(f"Diagnosis HTTP server started on {host}:{port} (with API key authentication)")
        else:
            logger.info(f"Diagnosis HTTP server started on {host}:{port}")
            logger.warning(
                "HTTP authentication is disabled: any client can act as any user via "
                "the X-User header. Set SERVER_REQUIRE_AUTH and SERVER_API_KEY unless "
                "a trusted proxy sets X-User."
            )

    async def _run_server(self) -> None:
        """Run the HTTP server loop in a thread pool."""
        if not self.server:
            return

        try:
            await asyncio.to_thread(self.server.serve_forever)
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Diagnosis HTTP server error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self.server:
            await asyncio.to_thread(self.server.shutdown)
            self.server.server_close()
        if self._server_task:
            self._server_task.cancel()
            try:
                await self._server_task
            except asyncio.CancelledError:
                pass
        logger.info("Diagnosis HTTP server stopped")
