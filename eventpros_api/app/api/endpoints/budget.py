"""
Budget endpoints.

``/calculate`` returns a stateless recommendation.  The ``/events``
routes persist a per‑event breakdown, apply adjustments and track
actual spend, and are limited to the event's owner and administrators.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.core.security import ROLE_ADMIN, ROLE_EVENT_MANAGER, get_current_user, require_roles
from eventpros_api.app.schemas.budget import (
    BreakdownItemRead,
    BudgetAdjustmentRequest,
    BudgetCalculateRequest,
    BudgetFeedbackCreate,
    BudgetFeedbackRead,
    BudgetInsights,
    BudgetRecommendation,
    BudgetTrackingRequest,
    ServiceBreakdown,
    VarianceItem,
)
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.services.audit_service import AuditService
from eventpros_api.app.services.budget_service import BudgetService
from eventpros_api.app.services.event_service import EventService


router = APIRouter()

event_access = require_roles(ROLE_EVENT_MANAGER, ROLE_ADMIN)


@router.post("/calculate", response_model=Envelope[BudgetRecommendation], summary="Budget recommendation")
async def calculate(data: BudgetCalculateRequest, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return {"data": BudgetService.calculate(data)}
    except ValueError as e:
        raise_http(e)


@router.get("/events/{event_id}/breakdown", response_model=Envelope[ServiceBreakdown], summary="Service breakdown")
async def get_breakdown(
    event_id: int,
    categories: Optional[List[str]] = Query(None, description="Limit to these service categories"),
    current_user: dict = Depends(event_access),
) -> Dict[str, Any]:
    try:
        event = await EventService.get_event(event_id, current_user)
        return {"data": await BudgetService.get_service_breakdown(event, categories)}
    except ValueError as e:
        raise_http(e)


@router.post("/events/{event_id}/adjustments", response_model=Envelope[List[BreakdownItemRead]], summary="Adjust breakdown")
async def apply_adjustments(
    event_id: int,
    data: BudgetAdjustmentRequest,
    current_user: dict = Depends(event_access),
) -> Dict[str, Any]:
    try:
        event = await EventService.get_event(event_id, current_user)
        updated = await BudgetService.apply_adjustments(event, data.adjustments)
    except ValueError as e:
        raise_http(e)
    await AuditService.record(
        user_id=current_user.get("user_id"),
        action="adjust_budget",
        object_type="event",
        object_id=event_id,
        details={"categories": [item.service_category for item in data.adjustments]},
    )
    return {"data": updated, "message": "Budget adjusted"}


@router.post("/events/{event_id}/tracking", response_model=Envelope[List[VarianceItem]], summary="Record actual costs")
async def track(
    event_id: int,
    data: BudgetTrackingRequest,
    current_user: dict = Depends(event_access),
) -> Dict[str, Any]:
    try:
        event = await EventService.get_event(event_id, current_user)
        return {"data": await BudgetService.track_variance(event, data.actual_costs)}
    except ValueError as e:
        raise_http(e)


@router.get("/events/{event_id}/insights", response_model=Envelope[BudgetInsights], summary="Budget insights")
async def insights(event_id: int, current_user: dict = Depends(event_access)) -> Dict[str, Any]:
    try:
        await EventService.get_event(event_id, current_user)
        return {"data": await BudgetService.get_insights(event_id)}
    except ValueError as e:
        raise_http(e)


@router.post(
    "/feedback",
    response_model=Envelope[BudgetFeedbackRead],
    status_code=status.HTTP_201_CREATED,
    summary="Feedback on a recommendation",
)
async def feedback(data: BudgetFeedbackCreate, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        recorded = await BudgetService.record_feedback(data, current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": recorded, "message": "Feedback recorded"}
