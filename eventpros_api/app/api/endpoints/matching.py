"""
Matching endpoints.

The scoring routes (budget, location, compatibility, ranking) are pure
calculations available to any signed‑in user.  Matching contractors
against a stored event and leaving match feedback require access to
that event.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.core.security import ROLE_ADMIN, ROLE_EVENT_MANAGER, get_current_user, require_roles
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.schemas.matching import (
    AvailabilityResult,
    BlendedCompatibility,
    BudgetCompatibility,
    BudgetMatchRequest,
    CompatibilityRequest,
    ContractorRanking,
    LocationMatch,
    LocationMatchRequest,
    MatchFeedbackCreate,
    MatchFeedbackRead,
    MatchingRequest,
    MatchingResponse,
    PerformanceScore,
    RankingRequest,
)
from eventpros_api.app.services.event_service import EventService
from eventpros_api.app.services.matching_service import MatchingService


router = APIRouter()

event_access = require_roles(ROLE_EVENT_MANAGER, ROLE_ADMIN)


@router.get("/budget", response_model=Envelope[BudgetCompatibility], summary="Budget compatibility")
async def budget_match(
    event_budget: float = Query(..., ge=0),
    price_min: float = Query(..., ge=0),
    price_max: float = Query(..., ge=0),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        return {"data": MatchingService.budget_compatibility(event_budget, price_min, price_max)}
    except ValueError as e:
        raise_http(e)


@router.post("/budget", response_model=Envelope[BudgetCompatibility], summary="Budget compatibility")
async def budget_match_body(data: BudgetMatchRequest, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return {"data": MatchingService.budget_compatibility(data.event_budget, data.price_min, data.price_max)}
    except ValueError as e:
        raise_http(e)


@router.get("/location", response_model=Envelope[LocationMatch], summary="Location match")
async def location_match(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    service_areas: List[str] = Query([], description="Service area names, repeat for several"),
    base_lat: Optional[float] = Query(None, ge=-90, le=90),
    base_lng: Optional[float] = Query(None, ge=-180, le=180),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Score an event coordinate against named service areas.

    ``base_lat``/``base_lng`` add the contractor's base location with
    the default service radius.
    """
    if (base_lat is None) != (base_lng is None):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="base_lat and base_lng must be given together")
    base = {"lat": base_lat, "lng": base_lng} if base_lat is not None else None
    return {"data": MatchingService.location_match(lat, lng, service_areas, base)}


@router.post("/location", response_model=Envelope[LocationMatch], summary="Location match")
async def location_match_body(data: LocationMatchRequest, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    return {"data": MatchingService.location_match(data.lat, data.lng, data.service_areas, data.base_location)}


@router.post("/compatibility", response_model=Envelope[BlendedCompatibility], summary="Blended compatibility")
async def compatibility(data: CompatibilityRequest, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    """Full weighted compatibility plus the equal blend of location and budget."""
    event, contractor = data.event, data.contractor
    if event.location is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event location is required")
    try:
        budget = MatchingService.budget_compatibility(event.budget_total, contractor.price_min, contractor.price_max)
    except ValueError as e:
        raise_http(e)
    location = MatchingService.location_match(
        event.location.lat,
        event.location.lng,
        contractor.service_areas,
        contractor.base_location,
    )
    result = BlendedCompatibility(
        blended_score=MatchingService.blend(location.overall_score, budget.overall_score),
        location=location,
        budget=budget,
        compatibility=MatchingService.calculate_compatibility(event, contractor),
    )
    return {"data": result}


@router.get("/availability", response_model=Envelope[AvailabilityResult], summary="Contractor availability")
async def availability(
    contractor_id: int = Query(...),
    event_date: date = Query(...),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    return {"data": await MatchingService.check_availability(contractor_id, event_date.isoformat())}


@router.get("/performance", response_model=Envelope[PerformanceScore], summary="Contractor performance")
async def performance(contractor_id: int = Query(...), current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        return {"data": await MatchingService.performance_score(contractor_id)}
    except ValueError as e:
        raise_http(e)


async def _find_matches(request: MatchingRequest, current_user: dict) -> Dict[str, Any]:
    try:
        event = await EventService.get_event(request.event_id, current_user)
        return {"data": await MatchingService.find_matches(event, request)}
    except ValueError as e:
        raise_http(e)


@router.get("/contractors", response_model=Envelope[MatchingResponse], summary="Match contractors to an event")
async def match_contractors(
    event_id: int = Query(...),
    service_type: Optional[str] = Query(None),
    min_score: float = Query(0, ge=0, le=1),
    premium_only: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: dict = Depends(event_access),
) -> Dict[str, Any]:
    request = MatchingRequest(
        event_id=event_id,
        service_type=service_type,
        min_score=min_score,
        premium_only=premium_only,
        page=page,
        limit=limit,
    )
    return await _find_matches(request, current_user)


@router.post("/contractors", response_model=Envelope[MatchingResponse], summary="Match contractors to an event")
async def match_contractors_body(request: MatchingRequest, current_user: dict = Depends(event_access)) -> Dict[str, Any]:
    return await _find_matches(request, current_user)


@router.post("/ranking", response_model=Envelope[List[ContractorRanking]], summary="Rank matches")
async def ranking(data: RankingRequest, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    return {"data": MatchingService.rank_contractors(data.matches)}


@router.post(
    "/feedback",
    response_model=Envelope[MatchFeedbackRead],
    status_code=status.HTTP_201_CREATED,
    summary="Feedback on a match",
)
async def feedback(data: MatchFeedbackCreate, current_user: dict = Depends(event_access)) -> Dict[str, Any]:
    try:
        await EventService.get_event(data.event_id, current_user)
        recorded = await MatchingService.record_feedback(data, current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": recorded, "message": "Feedback recorded"}
