from dataclasses import dataclass
from typing import Optional

import httpx

from freeload.core.errors import FetchError, FetchTimeoutError


@dataclass
class FetchResult:
    request_uri: str
    data_uri: Optional[str] = None
    response: Optional[httpx.Response] = None  # status and headers of the origin, None if never received
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def timed_out(cls, url: str, deadline: float) -> "FetchResult":
        """Placeholder for a URL whose origin has not answered yet"""
        return cls(request_uri=url, error=FetchTimeoutError(deadline))
