"""
Pydantic models for API request/response validation.
Auto-generates OpenAPI documentation.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


class CallRequest(BaseModel):
    """Single proxied Data Platform call."""
    apiId: Optional[str] = Field(None, description="API identifier from the discovery registry")
    category: Optional[str] = Field(None, description="Credential profile (MARKET_DATA, NEWS, LIPPER, ...)")
    method: str = Field("GET", description="HTTP method for the downstream call")
    endpoint: str = Field(..., description="Downstream path, e.g. /data/pricing/snapshots/v1/")
    query: Optional[Dict[str, Any]] = Field(None, description="Query parameters (GET only)")
    body: Optional[Any] = Field(None, description="Request payload (non-GET only)")
    flatten: bool = Field(False, description="Return a flattened view of the payload")


class AnalyzeRequest(BaseModel):
    """Lipper multi-property analysis for one fund."""
    id: Optional[Union[str, int]] = Field(None, description="Lipper id of the fund")
    datapoints: List[str] = Field(default_factory=list, description="Ordered property names to fetch")


class ErrorResponse(BaseModel):
    """Error envelope for failed calls."""
    error: str
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    service: str
    version: str
    status: str
    profiles: Dict[str, Dict[str, str]]


class FlattenedItem(BaseModel):
    path: str
    value: str
    type: str


class FlattenStats(BaseModel):
    originalSize: int
    flattenedCount: int
    compressionRatio: str


class FlattenResponse(BaseModel):
    """Flattened view of a JSON document."""
    items: List[FlattenedItem]
    stats: FlattenStats
    groups: Optional[Dict[str, List[FlattenedItem]]] = None
