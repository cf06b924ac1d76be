"""
Pydantic models for event data.

Events are created by event managers.  The location carries both a
human readable address and coordinates so that matching and map
features can work without a geocoding round trip; ``region`` is the
optional NZ region or city name used for budget cost‑of‑living
adjustments.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


EVENT_TYPES = (
    "wedding",
    "corporate",
    "birthday",
    "conference",
    "festival",
    "party",
    "general",
)

EventType = Literal["wedding", "corporate", "birthday", "conference", "festival", "party", "general"]
EventStatus = Literal["draft", "planning", "confirmed", "completed", "cancelled"]


class EventLocation(BaseModel):
    address: str = Field(..., min_length=1, examples=["Viaduct Events Centre, Auckland"])
    lat: float = Field(..., ge=-90, le=90, examples=[-36.8432])
    lng: float = Field(..., ge=-180, le=180, examples=[174.7574])
    region: Optional[str] = Field(None, examples=["Auckland"])


class ServiceRequirement(BaseModel):
    category: str = Field(..., examples=["catering"])
    description: Optional[str] = None
    priority: Literal["low", "medium", "high"] = "medium"
    estimated_budget: Optional[float] = Field(None, ge=0)
    is_required: bool = True


class EventBase(BaseModel):
    event_type: EventType = Field(..., examples=["wedding"])
    title: str = Field(..., min_length=1, max_length=200, examples=["Smith & Ngata wedding"])
    description: Optional[str] = None
    event_date: datetime = Field(..., examples=["2026-12-12T15:00:00+13:00"])
    duration_hours: Optional[float] = Field(None, ge=1, le=168)
    attendee_count: Optional[int] = Field(None, ge=1, le=10000)
    location: EventLocation
    budget_total: float = Field(0, ge=0)
    service_requirements: List[ServiceRequirement] = Field(default_factory=list)


class EventCreate(EventBase):
    """Schema for creating an event."""

    is_draft: bool = False


class EventUpdate(BaseModel):
    """Partial update; only provided fields change."""

    event_type: Optional[EventType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_date: Optional[datetime] = None
    duration_hours: Optional[float] = Field(None, ge=1, le=168)
    attendee_count: Optional[int] = Field(None, ge=1, le=10000)
    location: Optional[EventLocation] = None
    budget_total: Optional[float] = Field(None, ge=0)
    service_requirements: Optional[List[ServiceRequirement]] = None
    status: Optional[EventStatus] = None


class EventRead(EventBase):
    id: int
    user_id: int
    status: EventStatus
    created_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
