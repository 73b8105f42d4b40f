from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse
from freeload.core.config import Settings
from freeload.fetch.utils import decode_urls
from freeload.schemas import CountersSnapshot
from freeload.services.aggregate import get_all, write_response_json

router = APIRouter()

UNSUPPORTED_METHODS = ["POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

async def load_json(request: Request) -> Response:
    """
    Fetch every origin URL described by the p/i/s query parameters and return
    them as data URIs keyed by URL.

    Origins that fail or miss the deadline are reported per URL; the
    aggregate itself still answers 200.
    """
    settings: Settings = request.app.state.settings
    urls = decode_urls(request.query_params)

    results = await get_all(
        request.app.state.client,
        urls,
        settings.ORIGIN_TIMEOUT,
        request.app.state.metrics,
        max_concurrency=settings.max_concurrency,
        cancel_on_timeout=settings.CANCEL_ON_TIMEOUT,
    )
    return write_response_json(results)

async def unsupported_method(request: Request) -> Response:
    # Preflight that the CORS middleware did not answer
    if request.method == "OPTIONS" and "origin" in request.headers:
        return Response(status_code=status.HTTP_200_OK)
    return PlainTextResponse("unsupported method", status_code=status.HTTP_400_BAD_REQUEST)

def build_json_router(json_root: str) -> APIRouter:
    """Router serving aggregates under the configurable JSON root"""
    json_router = APIRouter()
    json_router.add_api_route(json_root, load_json, methods=["GET"])
    json_router.add_api_route(json_root, unsupported_method, methods=UNSUPPORTED_METHODS)
    return json_router

@router.get("/debug/vars", response_model=CountersSnapshot)
async def debug_vars(request: Request):
    """Origin request counters and latency histogram"""
    return request.app.state.metrics.snapshot()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "freeload"}
