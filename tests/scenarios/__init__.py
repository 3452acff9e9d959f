"""End-to-end scenarios for idempotent request handling.

Each module exercises one aspect of the interceptor through a real adapter
(FastAPI TestClient over ASGI, or hand-built WSGI environs) or through
concurrent threads against the core: happy path, conflicts, races, TTL expiry,
crash recovery, body sizes, failure cleanup and the WSGI adapter.
"""
