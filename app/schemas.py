"""Pydantic schemas for node definitions and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Strict members keep 80 an integer and 80.0 a float.
ScalarValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class SideloadNodeSpec(BaseModel):
    """YAML node definition as written by operators."""

    model_config = ConfigDict(extra="forbid")

    source: str = Field(..., description="Source URI, e.g. file:///etc/sideload.")
    order: List[str] = Field(..., min_length=1, description="Path templates, highest precedence first.")
    fields: Dict[str, ScalarValue] = Field(default_factory=dict)
    tags: Dict[str, StrictStr] = Field(default_factory=dict)
    overwrite_tags: bool = True


class PointPayload(BaseModel):
    """A data point as exchanged over the API."""

    measurement: str
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tags: Dict[str, StrictStr] = Field(default_factory=dict)
    fields: Dict[str, ScalarValue] = Field(default_factory=dict)


class EnrichRequest(BaseModel):
    points: List[PointPayload] = Field(..., description="Points to enrich, processed in order.")


class ErrorPayload(BaseModel):
    """A non-fatal problem met while enriching a point."""

    kind: str
    message: str
    path: Optional[str] = None
    key: Optional[str] = None
    template: Optional[str] = None


class EnrichedPoint(BaseModel):
    point: PointPayload
    errors: List[ErrorPayload] = Field(default_factory=list)


class EnrichResponse(BaseModel):
    results: List[EnrichedPoint] = Field(default_factory=list)


class ReloadResponse(BaseModel):
    dropped: int = Field(..., ge=0, description="Number of cache entries dropped.")


class CacheMetrics(BaseModel):
    entries: int = Field(..., ge=0)
    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    reloads: int = Field(..., ge=0)


class MetricsResponse(BaseModel):
    errors: Dict[str, int] = Field(default_factory=dict)
    points_processed: int = Field(..., ge=0)
    cache: Optional[CacheMetrics] = None
