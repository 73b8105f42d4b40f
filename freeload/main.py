import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse

from freeload.api.routes import build_json_router, router
from freeload.core import config
from freeload.core.errors import RequestError
from freeload.core.metrics import Counters
from freeload.fetch.origin import build_client

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Open the shared origin client on startup unless one was injected, close it on shutdown.
    """
    settings = app.state.settings
    owns_client = app.state.client is None
    if owns_client:
        app.state.client = build_client(settings.PROXY_URL, settings.REQUEST_TIMEOUT, settings.USER_AGENT)
    logger.info("freeload serving %s (origin timeout %gs, proxy %s)",
                settings.JSON_ROOT, settings.ORIGIN_TIMEOUT, settings.PROXY_URL or "none")

    yield

    if owns_client:
        await app.state.client.aclose()
        app.state.client = None
    logger.info("freeload shut down")

async def request_error_handler(request: Request, exc: RequestError):
    return PlainTextResponse(f"{exc.summary}: {exc}", status_code=exc.status_code)

def create_app(
    settings: Optional[config.Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
    metrics: Optional[Counters] = None,
) -> FastAPI:
    """Build the gateway; tests inject their own origin client and counters."""
    settings = settings or config.settings

    app = FastAPI(
        title="freeload",
        description="Fetch many origin URLs in one request and return them as data URIs",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.client = client
    app.state.metrics = metrics or Counters()

    app.include_router(build_json_router(settings.JSON_ROOT))
    app.include_router(router)
    app.add_exception_handler(RequestError, request_error_handler)

    # Added innermost first: logging wraps gzip wraps CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Accept", "Authorization", "Content-Type", "Origin"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        logger.info("%s %s %s", request.method, request.headers.get("origin", ""), request.url)
        return await call_next(request)

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "service": "freeload",
            "version": "1.0.0",
            "endpoints": {
                "aggregate": f"GET {settings.JSON_ROOT}?p=<prefix>&i=<inner>&s=<suffix>",
                "counters": "GET /debug/vars",
                "health": "GET /health",
            }
        }

    return app

app = create_app()
