from pydantic import BaseModel, Field, RootModel
from typing import Dict, Optional

class OriginResult(BaseModel):
    uri: Optional[str] = Field(None, description="RFC 2397 data URI of the origin body")
    err: Optional[str] = Field(None, description="Why the origin could not be fetched")

class AggregateResponse(RootModel[Dict[str, OriginResult]]):
    """Requested URL -> result, exactly one entry per requested URL"""

class CountersSnapshot(BaseModel):
    total_requests: int
    pending_requests: int
    success_requests: int
    responses: int
    latencies: Dict[str, int] = Field(description="Origin request count per latency bucket")
