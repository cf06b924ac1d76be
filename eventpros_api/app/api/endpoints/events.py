"""
Event endpoints.

Event managers create and manage their own events; administrators
see all events.  Contractors have no access to event records.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.core.security import ROLE_ADMIN, ROLE_EVENT_MANAGER, require_roles
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.schemas.event import EventCreate, EventRead, EventUpdate
from eventpros_api.app.services.event_service import EventService


router = APIRouter()

event_access = require_roles(ROLE_EVENT_MANAGER, ROLE_ADMIN)

NULLABLE_FIELDS = {"description", "duration_hours", "attendee_count"}


@router.post("", response_model=Envelope[EventRead], status_code=status.HTTP_201_CREATED, summary="Create an event")
async def create_event(event: EventCreate, current_user: dict = Depends(event_access)) -> Dict[str, Any]:
    try:
        created = await EventService.create_event(event, current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": created, "message": "Event created"}


@router.get("", response_model=Envelope[List[EventRead]], summary="List events")
async def list_events(
    status_filter: Optional[str] = Query(None, alias="status"),
    event_type: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(event_access),
) -> Dict[str, Any]:
    events = await EventService.list_events(
        current_user,
        status=status_filter,
        event_type=event_type,
        limit=limit,
        offset=offset,
    )
    return {"data": events}


@router.get("/{event_id}", response_model=Envelope[EventRead], summary="Get an event")
async def get_event(event_id: int, current_user: dict = Depends(event_access)) -> Dict[str, Any]:
    try:
        return {"data": await EventService.get_event(event_id, current_user)}
    except ValueError as e:
        raise_http(e)


@router.put("/{event_id}", response_model=Envelope[EventRead], summary="Update an event")
async def update_event(
    event_id: int,
    event_update: EventUpdate,
    current_user: dict = Depends(event_access),
) -> Dict[str, Any]:
    updates = {
        key: value
        for key, value in event_update.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    try:
        updated = await EventService.update_event(event_id, updates, current_user)
    except ValueError as e:
        raise_http(e)
    return {"data": updated, "message": "Event updated"}


@router.delete("/{event_id}", response_model=Envelope[dict], summary="Delete an event")
async def delete_event(event_id: int, current_user: dict = Depends(event_access)) -> Dict[str, Any]:
    try:
        await EventService.delete_event(event_id, current_user)
    except ValueError as e:
        raise_http(e)
    return {"data": {"id": event_id}, "message": "Event deleted"}
