"""ASGI middleware adapter for FastAPI and Starlette applications.

The interceptor is synchronous and holds its thread for the whole request,
so this adapter:

1. Converts the ASGI scope to the internal Request format; requests the
   interceptor does not coordinate (method not enabled, no key header) go
   straight to the wrapped app, unbuffered
2. Runs the interceptor in Starlette's worker thread pool
3. From that worker, drives the wrapped ASGI app back on the event loop
   (anyio.from_thread.run), buffering its response messages
4. Sends the buffered status, headers and body as a Starlette Response

Each coordinated request therefore occupies one worker thread; the pool
size (anyio's default capacity limiter) bounds concurrent requests through
the middleware.

Examples:
    FastAPI integration::

        from fastapi import FastAPI
        from idempotent_requests.adapters.asgi import ASGIIdempotencyMiddleware
        from idempotent_requests.config import IdempotencyConfig

        app = FastAPI()
        app.add_middleware(
            ASGIIdempotencyMiddleware,
            config=IdempotencyConfig(ttl_seconds=600),
        )

        @app.post("/api/documents")
        async def create_document():
            return {"status": "created"}

    Starlette integration::

        from starlette.applications import Starlette
        from starlette.middleware import Middleware

        app = Starlette(middleware=[Middleware(ASGIIdempotencyMiddleware)])
"""

from typing import Any

import anyio.from_thread
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.core.capture import BufferedResponse, ResponseWriter
from idempotent_requests.core.interceptor import Request, RequestInterceptor
from idempotent_requests.storage.registry import KeyValueService
from idempotent_requests.utils.headers import headers_from_scope

# Recomputed for the buffered body
_HOP_HEADERS = {"content-length", "transfer-encoding"}


class ASGIIdempotencyMiddleware:
    """ASGI middleware for idempotency handling.

    Attributes:
        app: The wrapped ASGI application
        interceptor: Core interceptor instance
    """

    def __init__(
        self,
        app: ASGIApp,
        interceptor: RequestInterceptor | None = None,
        config: IdempotencyConfig | None = None,
        kv_service: KeyValueService | None = None,
    ) -> None:
        """Initialize the ASGI middleware.

        Args:
            app: The ASGI application
            interceptor: Interceptor to use; built from config if not provided
            config: Configuration object (uses defaults if not provided)
            kv_service: Store registry used when building the interceptor
        """
        self.app = app
        self.interceptor = interceptor or RequestInterceptor.from_config(
            config or IdempotencyConfig(), kv_service
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = self._convert_request(scope)
        if not self.interceptor.is_coordinated(request):
            await self.app(scope, receive, send)
            return

        buffered = BufferedResponse()

        def downstream(_req: Request, writer: ResponseWriter) -> None:
            status, headers, body = anyio.from_thread.run(self._run_app, scope, receive)
            writer.set_status(status)
            for name, value in headers:
                writer.add_header(name, value)
            writer.write(body)

        await run_in_threadpool(self.interceptor.handle, request, buffered, downstream)

        response = self._convert_response(buffered)
        await response(scope, receive, send)

    async def _run_app(
        self, scope: Scope, receive: Receive
    ) -> tuple[int, list[tuple[str, str]], bytes]:
        """Run the wrapped app, collecting its response instead of sending it."""
        status = 500
        headers: list[tuple[str, str]] = []
        chunks: list[bytes] = []

        async def collect(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                for raw_name, raw_value in message.get("headers", []):
                    headers.append((raw_name.decode("latin-1"), raw_value.decode("latin-1")))
            elif message["type"] == "http.response.body":
                chunks.append(message.get("body", b""))

        await self.app(scope, receive, collect)
        return status, headers, b"".join(chunks)

    def _convert_request(self, scope: Scope) -> Request:
        """Convert an ASGI HTTP scope to the internal Request format."""
        query_string: Any = scope.get("query_string", b"")
        return Request(
            method=scope["method"],
            path=scope.get("path", "/"),
            query_string=query_string.decode("latin-1"),
            headers=headers_from_scope(scope.get("headers", [])),
            raw=scope,
        )

    def _convert_response(self, buffered: BufferedResponse) -> Response:
        """Convert the buffered response to a Starlette Response."""
        response = Response(content=buffered.body, status_code=buffered.status)
        for name, value in buffered.headers:
            if name.lower() not in _HOP_HEADERS:
                response.headers.append(name, value)
        return response
