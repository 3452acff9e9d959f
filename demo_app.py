"""Demo FastAPI application with the idempotency middleware.

Run with: python demo_app.py
Then try:

    curl -X POST localhost:8000/api/documents -H 'NuxeoIdempotencyKey: doc-1' \\
         -H 'content-type: application/json' -d '{"title": "Report"}'

Repeating the call replays the first response (same id); a POST to
/api/documents/slow followed by a second one with the same key within five
seconds gets 409 Conflict.
"""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from idempotent_requests.adapters.asgi import ASGIIdempotencyMiddleware
from idempotent_requests.config import IdempotencyConfig
from idempotent_requests.core.interceptor import RequestInterceptor
from idempotent_requests.core.sweeper import start_sweeper_task, stop_sweeper_task
from idempotent_requests.observability.logging import configure_logging
from idempotent_requests.storage.registry import KeyValueService

configure_logging(level="INFO", json_output=False)

config = IdempotencyConfig.from_env()
kv_service = KeyValueService.from_config(config)
interceptor = RequestInterceptor.from_config(config, kv_service)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    store = kv_service.get_store(config.store_name)
    task = None
    if hasattr(store, "purge_expired"):
        task = await start_sweeper_task(store, interval_seconds=config.sweep_interval_seconds)
    yield
    if task is not None:
        await stop_sweeper_task(task)


app = FastAPI(
    title="Idempotent Requests Demo",
    description="Demo API showing idempotent request handling",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(ASGIIdempotencyMiddleware, interceptor=interceptor)


class DocumentRequest(BaseModel):
    title: str
    path: str = "/default-domain/workspaces"


class DocumentResponse(BaseModel):
    uid: str
    title: str
    path: str
    created_at: str


@app.get("/api/status")
async def get_status():
    """Health check - GET bypasses the idempotency interceptor."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "header": config.header_name,
        "ttl_seconds": config.ttl_seconds,
    }


@app.post("/api/documents", response_model=DocumentResponse, status_code=201)
def create_document(document: DocumentRequest):
    """Create a document; replayed verbatim for a repeated key."""
    return DocumentResponse(
        uid=str(uuid.uuid4()),
        title=document.title,
        path=f"{document.path.rstrip('/')}/{document.title}",
        created_at=datetime.now(UTC).isoformat(),
    )


@app.post("/api/documents/slow", response_model=DocumentResponse, status_code=201)
def create_document_slowly(document: DocumentRequest):
    """Create a document after 5 seconds, leaving time to send a duplicate."""
    time.sleep(5)
    return create_document(document)


@app.post("/api/documents/invalid")
def create_invalid_document():
    """Always 400: the key is released so the client may retry."""
    raise HTTPException(status_code=400, detail="Invalid document")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
