"""WSGI middleware adapter for synchronous applications.

WSGI servers already run one request per thread, which is exactly the
execution model of the interceptor, so this adapter is a thin translation:

1. Builds a Request from the environ
2. Runs the interceptor with the wrapped application as the pipeline
3. Emits the buffered status, headers and body through start_response

The wrapped application may produce its body through the iterable it
returns, through the write() callable returned by start_response, or both.

Examples:
    Flask integration::

        from flask import Flask
        from idempotent_requests.adapters.wsgi import WSGIIdempotencyMiddleware

        app = Flask(__name__)
        app.wsgi_app = WSGIIdempotencyMiddleware(app.wsgi_app)

    Django integration (wsgi.py)::

        from django.core.wsgi import get_wsgi_application

        application = WSGIIdempotencyMiddleware(get_wsgi_application())
"""

from collections.abc import Callable, Iterable
from http import HTTPStatus
from typing import Any

from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.core.capture import BufferedResponse, ResponseWriter
from idempotent_requests.core.interceptor import Request, RequestInterceptor
from idempotent_requests.storage.registry import KeyValueService
from idempotent_requests.utils.headers import headers_from_environ

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]


def status_line(status: int) -> str:
    """Format a WSGI status line, e.g. 409 -> "409 Conflict"."""
    try:
        return f"{status} {HTTPStatus(status).phrase}"
    except ValueError:
        return f"{status} Unknown"


class WSGIIdempotencyMiddleware:
    """WSGI middleware for idempotency handling.

    Attributes:
        app: The wrapped WSGI application
        interceptor: Core interceptor instance
    """

    def __init__(
        self,
        app: WSGIApp,
        interceptor: RequestInterceptor | None = None,
        config: IdempotencyConfig | None = None,
        kv_service: KeyValueService | None = None,
    ) -> None:
        """Initialize the WSGI middleware.

        Args:
            app: The WSGI application
            interceptor: Interceptor to use; built from config if not provided
            config: Configuration object (uses defaults if not provided)
            kv_service: Store registry used when building the interceptor
        """
        self.app = app
        self.interceptor = interceptor or RequestInterceptor.from_config(
            config or IdempotencyConfig(), kv_service
        )

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        request = Request(
            method=environ.get("REQUEST_METHOD", "GET"),
            path=environ.get("PATH_INFO", "/"),
            query_string=environ.get("QUERY_STRING", ""),
            headers=headers_from_environ(environ),
            raw=environ,
        )
        response = BufferedResponse()

        self.interceptor.handle(request, response, self._downstream)

        body = response.body
        headers = [(k, v) for k, v in response.headers if k.lower() != "content-length"]
        headers.append(("Content-Length", str(len(body))))
        start_response(status_line(response.status), headers)
        return [body]

    def _downstream(self, request: Request, writer: ResponseWriter) -> None:
        """Run the wrapped application, writing its response into writer."""

        def _start_response(
            status: str,
            headers: list[tuple[str, str]],
            exc_info: Any = None,
        ) -> Callable[[bytes], None]:
            # Nothing has reached the client yet, so a second call carrying
            # exc_info may simply replace status and headers.
            writer.set_status(int(status.split(" ", 1)[0]))
            if exc_info is not None:
                for name, value in headers:
                    writer.set_header(name, value)
            else:
                for name, value in headers:
                    writer.add_header(name, value)
            return writer.write

        result = self.app(request.raw, _start_response)
        try:
            for chunk in result:
                if chunk:
                    writer.write(chunk)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()
