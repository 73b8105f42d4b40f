import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Set

import httpx
from fastapi import Response

from freeload.core.errors import EncodingError, TransportError
from freeload.core.metrics import Counters
from freeload.fetch.base import FetchResult
from freeload.fetch.origin import fetch_origin
from freeload.fetch.utils import max_age
from freeload.schemas import AggregateResponse, OriginResult

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "text/json;charset=utf-8"

# Origin requests still running after their aggregate returned; held so they are not garbage collected
_in_flight: Set[asyncio.Task] = set()

async def get_all(
    client: httpx.AsyncClient,
    urls: Sequence[str],
    deadline: float,
    metrics: Counters,
    *,
    max_concurrency: Optional[int] = None,
    cancel_on_timeout: bool = False,
) -> Dict[str, FetchResult]:
    """
    Fetch every URL in parallel and map each URL to its result.

    1. Seed every URL with a timeout placeholder
    2. Start one task per URL (unbounded unless max_concurrency is set)
    3. Collect results until all arrived or the deadline passed
    4. Return; unfinished requests keep running unless cancel_on_timeout is set

    The returned mapping always has one entry per distinct URL. Duplicate
    URLs share an entry and the last result to arrive wins.
    """
    metrics.record_response()

    results: Dict[str, FetchResult] = {url: FetchResult.timed_out(url, deadline) for url in urls}
    if not urls:
        return results

    # Sized so that no request ever blocks delivering, even after we stop reading
    completed: asyncio.Queue = asyncio.Queue(maxsize=len(urls))
    gate = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def fetch(url: str) -> None:
        try:
            if gate is None:
                result = await metrics.instrument(fetch_origin(client, url))
            else:
                async with gate:
                    result = await metrics.instrument(fetch_origin(client, url))
        except Exception as e:
            # e.g. RuntimeError from a client closed under a straggler
            logger.debug("Origin request to %s failed unexpectedly", url, exc_info=True)
            result = FetchResult(request_uri=url, error=TransportError(str(e) or repr(e)))
        completed.put_nowait(result)

    tasks: List[asyncio.Task] = []
    for url in urls:
        task = asyncio.create_task(fetch(url))
        _in_flight.add(task)
        task.add_done_callback(_in_flight.discard)
        tasks.append(task)

    loop = asyncio.get_running_loop()
    expires_at = loop.time() + deadline
    received = 0

    while received < len(tasks):
        remaining = expires_at - loop.time()
        if remaining <= 0:
            break
        try:
            result = await asyncio.wait_for(completed.get(), timeout=remaining)
        except asyncio.TimeoutError:
            break
        results[result.request_uri] = result
        metrics.record_success()
        received += 1

    outstanding = len(tasks) - received
    if outstanding:
        logger.debug("%d of %d origin requests outstanding after %gs", outstanding, len(tasks), deadline)
        if cancel_on_timeout:
            for task in tasks:
                task.cancel()

    return results

def write_response_json(results: Dict[str, FetchResult]) -> Response:
    """Serialize a result set with a Cache-Control header bounded by its origins."""
    age = max_age(results)
    if age > 0:
        cache_control = f"public,max-age={age}"
    else:
        cache_control = "private,no-store,max-age=0"

    try:
        body = AggregateResponse({
            url: OriginResult(uri=result.data_uri) if result.ok else OriginResult(err=str(result.error))
            for url, result in results.items()
        }).model_dump_json(exclude_none=True)
    except (TypeError, ValueError) as e:
        raise EncodingError(str(e)) from e

    return Response(content=body, media_type=JSON_MEDIA_TYPE, headers={"Cache-Control": cache_control})
