"""Fake origins for tests, served through httpx.MockTransport."""

import asyncio

import httpx


def path_echo(request: httpx.Request) -> httpx.Response:
    """Origin that answers every request with its own path"""
    return httpx.Response(200, text=request.url.path)


def slow_on_second(request: httpx.Request):
    """Origin that is fast for '?1' and far slower than any test deadline for '?2'"""
    async def respond():
        if request.url.query == b"2":
            await asyncio.sleep(1)
        return httpx.Response(200, headers={"Cache-Control": "max-age=10"}, text=request.url.path)
    return respond()


def refused(request: httpx.Request):
    raise httpx.ConnectError("Connection refused", request=request)


class BrokenBody(httpx.AsyncByteStream):
    """Body stream that fails after the status line was received"""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


def broken_body(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Type": "text/plain"}, stream=BrokenBody())


def origin_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
