import logging

import httpx

from freeload.core.errors import BodyReadError, TransportError
from freeload.fetch.base import FetchResult
from freeload.fetch.utils import format_data_uri

logger = logging.getLogger(__name__)


def build_client(proxy_url=None, timeout: float = 30, user_agent: str = "freeload/1.0") -> httpx.AsyncClient:
    """Shared outbound client; routing through a proxy is the client's concern, not the fetcher's."""
    return httpx.AsyncClient(
        proxy=proxy_url,
        timeout=timeout,
        headers={"User-Agent": user_agent},
        follow_redirects=True,
    )


async def fetch_origin(client: httpx.AsyncClient, url: str) -> FetchResult:
    """
    GET one origin URL and turn its body into a data URI.

    Failures are returned on the result rather than raised. Any HTTP status
    counts as a response; only transport and body read failures are errors.
    """
    try:
        async with client.stream("GET", url) as response:
            try:
                body = await response.aread()
            except (httpx.RequestError, httpx.StreamError) as e:
                logger.debug("Reading body of %s failed: %s", url, e)
                return FetchResult(request_uri=url, response=response, error=BodyReadError(str(e) or repr(e)))
    except (httpx.RequestError, httpx.InvalidURL) as e:
        logger.debug("Request to %s failed: %s", url, e)
        return FetchResult(request_uri=url, error=TransportError(str(e) or repr(e)))

    content_types = response.headers.get_list("Content-Type")
    content_type = content_types[0] if content_types else ""
    return FetchResult(request_uri=url, data_uri=format_data_uri(content_type, body), response=response)
