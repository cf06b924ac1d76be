"""
Shared response shapes.

Every successful response is wrapped as ``{"data": ..., "message": ...}``
so that clients can treat success and error bodies uniformly (errors
use ``{"error": ...}``, see ``core.errors``).
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    data: T
    message: Optional[str] = None


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90, examples=[-36.8485])
    lng: float = Field(..., ge=-180, le=180, examples=[174.7633])
