"""Framework adapters for idempotent request handling.

This package integrates the framework-agnostic interceptor with web servers:

- wsgi.py: WSGI middleware for Flask, Django, etc.
- asgi.py: ASGI middleware for FastAPI, Starlette, etc.

The adapters convert between framework request/response objects and the
interceptor's Request and ResponseWriter.
"""

from idempotent_requests.adapters.asgi import ASGIIdempotencyMiddleware
from idempotent_requests.adapters.wsgi import WSGIIdempotencyMiddleware

__all__ = ["ASGIIdempotencyMiddleware", "WSGIIdempotencyMiddleware"]
