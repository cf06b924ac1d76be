"""
Contractor endpoints.

The contractor directory is public.  Contractors manage their own
business profile, services, availability and onboarding; performance
records and onboarding approval are administrator actions.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.core.security import (
    ROLE_ADMIN,
    ROLE_CONTRACTOR,
    get_current_user,
    is_admin,
    require_roles,
)
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.schemas.contractor import (
    AvailabilityUpdate,
    BusinessProfileCreate,
    BusinessProfileUpdate,
    ContractorRead,
    OnboardingRead,
    OnboardingUpdate,
    PerformanceUpdate,
    ServiceCreate,
    ServiceRead,
)
from eventpros_api.app.services.contractor_service import ContractorService


router = APIRouter()


def _ensure_owner(contractor_id: int, current_user: dict) -> None:
    if not is_admin(current_user) and current_user.get("user_id") != contractor_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


@router.get("", response_model=Envelope[List[ContractorRead]], summary="List contractors")
async def list_contractors(
    service_type: Optional[str] = Query(None, description="Service category or priced service type"),
    verified_only: bool = Query(False),
    subscription_tier: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Search company name and description"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> Dict[str, Any]:
    contractors = await ContractorService.list_contractors(
        service_type=service_type,
        verified_only=verified_only,
        subscription_tier=subscription_tier,
        search=search,
        limit=limit,
        offset=offset,
    )
    return {"data": contractors}


@router.post("", response_model=Envelope[ContractorRead], status_code=status.HTTP_201_CREATED, summary="Create a business profile")
async def create_contractor(
    data: BusinessProfileCreate,
    user_id: Optional[int] = Query(None, description="Target account (administrators only)"),
    current_user: dict = Depends(require_roles(ROLE_CONTRACTOR, ROLE_ADMIN)),
) -> Dict[str, Any]:
    """Create the business profile of the calling contractor.

    Administrators create profiles on behalf of a contractor by passing
    ``user_id``.
    """
    if is_admin(current_user):
        if user_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")
        target = user_id
    else:
        target = current_user["user_id"]
    try:
        contractor = await ContractorService.create_profile(target, data)
    except ValueError as e:
        raise_http(e)
    return {"data": contractor, "message": "Business profile created"}


@router.get("/{contractor_id}", response_model=Envelope[ContractorRead], summary="Get a contractor")
async def get_contractor(contractor_id: int) -> Dict[str, Any]:
    try:
        return {"data": await ContractorService.get_contractor(contractor_id)}
    except ValueError as e:
        raise_http(e)


@router.put("/{contractor_id}", response_model=Envelope[ContractorRead], summary="Update a business profile")
async def update_contractor(
    contractor_id: int,
    data: BusinessProfileUpdate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    _ensure_owner(contractor_id, current_user)
    updates = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key in ("description", "business_address", "latitude", "longitude")
    }
    if "is_verified" in updates and not is_admin(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can verify contractors")
    try:
        contractor = await ContractorService.update_profile(
            contractor_id,
            {key: getattr(data, key) for key in updates},
            acting_user_id=current_user.get("user_id"),
        )
    except ValueError as e:
        raise_http(e)
    return {"data": contractor, "message": "Business profile updated"}


@router.delete("/{contractor_id}", response_model=Envelope[dict], summary="Delete a business profile")
async def delete_contractor(contractor_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    _ensure_owner(contractor_id, current_user)
    try:
        await ContractorService.delete_profile(contractor_id, acting_user_id=current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": {"id": contractor_id}, "message": "Business profile deleted"}


@router.post(
    "/{contractor_id}/services",
    response_model=Envelope[ServiceRead],
    status_code=status.HTTP_201_CREATED,
    summary="Add a priced service",
)
async def add_service(
    contractor_id: int,
    data: ServiceCreate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    _ensure_owner(contractor_id, current_user)
    try:
        return {"data": await ContractorService.add_service(contractor_id, data)}
    except ValueError as e:
        raise_http(e)


@router.put("/{contractor_id}/performance", response_model=Envelope[dict], summary="Set performance record")
async def set_performance(
    contractor_id: int,
    data: PerformanceUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> Dict[str, Any]:
    try:
        return {"data": await ContractorService.set_performance(contractor_id, data)}
    except ValueError as e:
        raise_http(e)


@router.put("/{contractor_id}/availability", response_model=Envelope[List[dict]], summary="Set availability")
async def set_availability(
    contractor_id: int,
    data: AvailabilityUpdate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    _ensure_owner(contractor_id, current_user)
    try:
        return {"data": await ContractorService.set_availability(contractor_id, data)}
    except ValueError as e:
        raise_http(e)


@router.get("/{contractor_id}/onboarding", response_model=Envelope[OnboardingRead], summary="Onboarding status")
async def get_onboarding(contractor_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    _ensure_owner(contractor_id, current_user)
    try:
        return {"data": await ContractorService.get_onboarding(contractor_id)}
    except ValueError as e:
        raise_http(e)


@router.put("/{contractor_id}/onboarding", response_model=Envelope[OnboardingRead], summary="Update onboarding")
async def update_onboarding(
    contractor_id: int,
    data: OnboardingUpdate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    _ensure_owner(contractor_id, current_user)
    try:
        return {"data": await ContractorService.update_onboarding(contractor_id, data)}
    except ValueError as e:
        raise_http(e)


@router.post("/{contractor_id}/onboarding/approve", response_model=Envelope[OnboardingRead], summary="Approve onboarding")
async def approve_onboarding(
    contractor_id: int,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> Dict[str, Any]:
    try:
        onboarding = await ContractorService.approve_onboarding(contractor_id, current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": onboarding, "message": "Contractor approved"}
