"""
Testimonial endpoints.

Event managers submit testimonials for contractors; administrators
approve or reject them.  Comments are escaped when returned.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.core.security import ROLE_ADMIN, ROLE_EVENT_MANAGER, get_current_user, require_roles
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.schemas.testimonial import TestimonialCreate, TestimonialModerate, TestimonialRead
from eventpros_api.app.services.testimonial_service import TestimonialService


router = APIRouter()


@router.post("", response_model=Envelope[TestimonialRead], status_code=status.HTTP_201_CREATED, summary="Submit a testimonial")
async def create_testimonial(
    data: TestimonialCreate,
    current_user: dict = Depends(require_roles(ROLE_EVENT_MANAGER, ROLE_ADMIN)),
) -> Dict[str, Any]:
    try:
        created = await TestimonialService.create_testimonial(data, current_user)
    except ValueError as e:
        raise_http(e)
    return {"data": created, "message": "Testimonial submitted for moderation"}


@router.get("", response_model=Envelope[List[TestimonialRead]], summary="List testimonials")
async def list_testimonials(
    contractor_id: Optional[int] = Query(None),
    approved: Optional[bool] = Query(None, description="Administrators only"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    testimonials = await TestimonialService.list_testimonials(
        current_user,
        contractor_id=contractor_id,
        approved=approved,
        limit=limit,
        offset=offset,
    )
    return {"data": testimonials}


@router.put("/{testimonial_id}/moderate", response_model=Envelope[TestimonialRead], summary="Moderate a testimonial")
async def moderate_testimonial(
    testimonial_id: int,
    data: TestimonialModerate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> Dict[str, Any]:
    try:
        moderated = await TestimonialService.moderate_testimonial(
            testimonial_id, data.approved, current_user.get("user_id")
        )
    except ValueError as e:
        raise_http(e)
    return {"data": moderated}


@router.delete("/{testimonial_id}", response_model=Envelope[dict], summary="Delete a testimonial")
async def delete_testimonial(testimonial_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        await TestimonialService.delete_testimonial(testimonial_id, current_user)
    except ValueError as e:
        raise_http(e)
    return {"data": {"id": testimonial_id}, "message": "Testimonial deleted"}
