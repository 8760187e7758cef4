"""Main FastAPI application."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from htmlimage.config import config
from htmlimage.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan manager."""
    logging.getLogger("htmlimage").info("htmlimage ready")
    yield


configure_logging(debug=config.DEBUG)


app = FastAPI(
    title="htmlimage",
    description="Resolve display sizes for images embedded in rich text",
    version="0.1.0",
    lifespan=lifespan,
)


access_logger = logging.getLogger("htmlimage.access")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests similar to the access log."""

    response = await call_next(request)
    client_host = "-"
    if request.client is not None:
        client_host = request.client.host or "-"

    access_logger.info(
        '%s - "%s %s" %s',
        client_host,
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


# Health check endpoint
@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


# Import routes
from htmlimage.routes import images  # noqa: E402

app.include_router(images.router)
