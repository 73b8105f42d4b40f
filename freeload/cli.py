"""Command line entry point.

Usage:
    freeload serve --port 7433 --timeout 0.5
    python -m freeload serve --proxy http://proxy.internal:3128
"""

import logging
from typing import Optional

import httpx
import typer
import uvicorn

from freeload.core.config import settings

logger = logging.getLogger(__name__)
app = typer.Typer(help="Aggregate many origin URLs into one JSON response of data URIs")


def validate_proxy(proxy: str) -> str:
    try:
        url = httpx.URL(proxy)
    except httpx.InvalidURL as e:
        raise typer.BadParameter(f"Invalid proxy URL: {e}")
    if url.scheme not in ("http", "https", "socks5", "socks5h") or not url.host:
        raise typer.BadParameter(f"Invalid proxy URL: {proxy}")
    return proxy


@app.callback()
def main() -> None:
    """freeload HTTP aggregation gateway."""


@app.command()
def serve(
    host: str = typer.Option(settings.HOST, help="Host to listen on"),
    port: int = typer.Option(settings.PORT, help="Port to listen on"),
    proxy: Optional[str] = typer.Option(settings.PROXY_URL, help="URL of the proxy server for outbound requests"),
    json_root: str = typer.Option(settings.JSON_ROOT, "--json", help="Root path to deliver JSON"),
    origins: str = typer.Option(settings.CORS_ORIGINS, help="Comma separated origins to allow with CORS"),
    timeout: float = typer.Option(settings.ORIGIN_TIMEOUT, help="Maximum time per origin request in seconds"),
    max_concurrency: int = typer.Option(settings.MAX_CONCURRENCY, help="Concurrent origin requests per aggregate, 0 for unbounded"),
    cancel_on_timeout: bool = typer.Option(settings.CANCEL_ON_TIMEOUT, help="Cancel origin requests still running at the deadline"),
    log_level: str = typer.Option(settings.LOG_LEVEL, help="Logging level"),
) -> None:
    """Serve aggregate requests over HTTP.

    Example:
        freeload serve --json /json --origins https://example.com --timeout 0.25
    """
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings.HOST = host
    settings.PORT = port
    settings.PROXY_URL = validate_proxy(proxy) if proxy else None
    settings.JSON_ROOT = json_root
    settings.CORS_ORIGINS = origins
    settings.ORIGIN_TIMEOUT = timeout
    settings.MAX_CONCURRENCY = max_concurrency
    settings.CANCEL_ON_TIMEOUT = cancel_on_timeout
    settings.LOG_LEVEL = log_level

    from freeload.main import create_app

    logger.info("Listening on %s:%d", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    app()
