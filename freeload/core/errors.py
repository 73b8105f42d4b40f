"""
Error types.

Request-level errors (``RequestError``) abort the aggregate request and are
rendered as plain-text HTTP responses. Per-URL errors (``FetchError``) are
never raised out of the aggregation engine; they are stored on the
``FetchResult`` of the URL they belong to.
"""


class FreeloadError(Exception):
    """Base class for all freeload errors"""


class RequestError(FreeloadError):
    """Failure of the aggregate request as a whole, rendered as '<summary>: <message>'"""
    status_code: int = 400
    summary: str = "bad request"


class MissingPrefixError(RequestError, ValueError):
    summary = "bad query parameters"

    def __init__(self, message: str = "Must contain the (p)refix query parameter"):
        super().__init__(message)


class EncodingError(RequestError):
    status_code = 500
    summary = "JSON encoding error"


class FetchError(FreeloadError):
    """Failure of a single origin request"""


class TransportError(FetchError):
    pass


class BodyReadError(FetchError):
    pass


class FetchTimeoutError(FetchError):
    def __init__(self, deadline: float):
        self.deadline = deadline
        super().__init__(f"timeout {deadline:g}s")
