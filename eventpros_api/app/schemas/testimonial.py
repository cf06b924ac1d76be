"""
Pydantic schemas for contractor testimonials.

Event managers leave testimonials for contractors they have worked
with.  Testimonials are hidden from the public listing until an
administrator approves them.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TestimonialCreate(BaseModel):
    """Schema for creating a new testimonial."""

    contractor_id: int = Field(..., description="Contractor being reviewed")
    event_id: Optional[int] = Field(None, description="Event the contractor worked on")
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Optional textual comment")

    @field_validator("comment")
    @classmethod
    def sanitize_comment(cls, v: Optional[str]) -> Optional[str]:
        """Trim whitespace from the comment and enforce a maximum length."""
        if v is None:
            return None
        v = v.strip()
        if len(v) > 1000:
            raise ValueError("Comment must be 1000 characters or fewer")
        return v


class TestimonialModerate(BaseModel):
    approved: bool = Field(..., description="Whether to approve the testimonial")


class TestimonialRead(BaseModel):
    id: int
    contractor_id: int
    event_manager_id: int
    event_id: Optional[int]
    rating: int
    comment: Optional[str]
    is_approved: bool
    moderated_by: Optional[int]
    created_at: str
