import base64
import re
from typing import List, Mapping, Optional

from freeload.core.errors import MissingPrefixError
from freeload.fetch.base import FetchResult

# ASCII digits only, up to the end of the directive
MAX_AGE_PATTERN = re.compile(r"max-age=([0-9]+)(?![^,;\s])", re.IGNORECASE | re.ASCII)

def decode_urls(params) -> List[str]:
    """
    Expand the compact prefix/inner/suffix query into absolute URLs.

    p = 1..1 prefix, such as http://s3.amazonaws.com/base/path/00
    i = 0..n inner, such as 101-26273-x23sn; without any, only the prefix is used
    s = 0..1 suffix, such as _m.png, applied to every URL including prefix-only ones

    `params` is any query multi-dict offering getlist() (Starlette QueryParams).
    """
    prefixes = params.getlist("p")
    prefix = prefixes[0] if prefixes else ""
    if not prefix:
        raise MissingPrefixError()

    suffixes = params.getlist("s")
    suffix = suffixes[0] if suffixes else ""
    inners = params.getlist("i")

    if not inners:
        return [prefix + suffix]
    return [prefix + inner + suffix for inner in inners]

def format_data_uri(content_type: str, body: bytes) -> str:
    """
    Build an RFC 2397 data URI from a content type and a fully read body.
    Examples: ('', b'ohai') -> 'data:;base64,b2hhaQ=='
              ('text/plain; charset=utf-8', b'ohai') -> 'data:text/plain;charset=utf-8;base64,b2hhaQ=='
    """
    parts = content_type.split(";")
    uri = ["data:", parts[0]]

    # Only key=value tokens are parameters
    for part in parts[1:]:
        if part.find("=") > 0:
            uri.append(";")
            uri.append(part.strip())

    uri.append(";base64,")
    uri.append(base64.b64encode(body).decode("ascii"))
    return "".join(uri)

def _parse_max_age(cache_control: str) -> Optional[int]:
    match = MAX_AGE_PATTERN.search(cache_control)
    if not match:
        return None
    return int(match.group(1))

def max_age(results: Mapping[str, FetchResult]) -> int:
    """
    Lowest max-age among the successful results, which bounds how long the
    aggregate may be cached. -1 if any successful origin is uncacheable or
    no origin declared a usable max-age.
    """
    lowest: Optional[int] = None

    for result in results.values():
        if not result.ok or result.response is None:
            continue

        cache_control = result.response.headers.get("Cache-Control")
        if not cache_control:
            return -1

        candidate = _parse_max_age(cache_control)
        if candidate is not None and (lowest is None or candidate < lowest):
            lowest = candidate

    return -1 if lowest is None else lowest
