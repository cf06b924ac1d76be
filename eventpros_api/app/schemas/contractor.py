"""
Pydantic models for contractors.

A contractor is a user with the ``contractor`` role plus a business
profile (company details, subscription tier, verification flag and
where they work), a list of priced services, an optional performance
record and per‑date availability.  These are the inputs the matching
scorer works from.
"""

from datetime import date
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


SubscriptionTier = Literal["essential", "showcase", "spotlight"]


class ServiceAreaCircle(BaseModel):
    """An explicit circular service area."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius_km: float = Field(..., gt=0, le=2000)
    name: Optional[str] = None


ServiceAreaSpec = Union[str, ServiceAreaCircle]


def _check_coordinates(latitude: Optional[float], longitude: Optional[float]) -> None:
    if (latitude is None) != (longitude is None):
        raise ValueError("latitude and longitude must be provided together")


class BusinessProfileCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200, examples=["Harbour Catering Ltd"])
    description: Optional[str] = None
    business_address: Optional[str] = Field(None, examples=["12 Queen St, Auckland"])
    subscription_tier: SubscriptionTier = "essential"
    service_categories: List[str] = Field(default_factory=list, examples=[["catering"]])
    service_areas: List[ServiceAreaSpec] = Field(default_factory=list, examples=[["Auckland", "Waikato"]])
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def coordinates_together(self):
        _check_coordinates(self.latitude, self.longitude)
        return self


class BusinessProfileUpdate(BaseModel):
    """Partial profile update.  ``is_verified`` may only be set by admins."""

    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    business_address: Optional[str] = None
    subscription_tier: Optional[SubscriptionTier] = None
    service_categories: Optional[List[str]] = None
    service_areas: Optional[List[ServiceAreaSpec]] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_verified: Optional[bool] = None

    @model_validator(mode="after")
    def coordinates_together(self):
        # Clearing the location means sending both fields as null.
        if {"latitude", "longitude"} & self.model_fields_set:
            if not {"latitude", "longitude"} <= self.model_fields_set:
                raise ValueError("latitude and longitude must be updated together")
            _check_coordinates(self.latitude, self.longitude)
        return self


class ServiceCreate(BaseModel):
    service_type: str = Field(..., min_length=1, examples=["catering"])
    description: Optional[str] = None
    price_range_min: float = Field(..., ge=0, examples=[2000])
    price_range_max: float = Field(..., ge=0, examples=[8000])

    @model_validator(mode="after")
    def check_price_range(self):
        if self.price_range_min > self.price_range_max:
            raise ValueError("price_range_min must not exceed price_range_max")
        return self


class ServiceRead(ServiceCreate):
    id: int
    contractor_id: int


class PerformanceUpdate(BaseModel):
    response_time_hours: Optional[float] = Field(None, ge=0)
    reliability_score: Optional[float] = Field(None, ge=0, le=1)
    quality_score: Optional[float] = Field(None, ge=0, le=1)
    communication_score: Optional[float] = Field(None, ge=0, le=1)
    overall_performance_score: Optional[float] = Field(None, ge=0, le=1)
    total_projects: int = Field(0, ge=0)
    successful_projects: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_projects(self):
        if self.successful_projects > self.total_projects:
            raise ValueError("successful_projects cannot exceed total_projects")
        return self


class AvailabilityUpdate(BaseModel):
    dates: List[date] = Field(..., min_length=1)
    is_available: bool = True


class ContractorRead(BaseModel):
    """Contractor as returned by the API: profile plus services."""

    user_id: int
    company_name: str
    description: Optional[str] = None
    business_address: Optional[str] = None
    subscription_tier: SubscriptionTier
    is_verified: bool
    service_categories: List[str]
    service_areas: List[ServiceAreaSpec]
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    average_rating: float = 0
    review_count: int = 0
    services: List[ServiceRead] = Field(default_factory=list)


class OnboardingUpdate(BaseModel):
    step1_completed: Optional[bool] = None
    step2_completed: Optional[bool] = None
    step3_completed: Optional[bool] = None
    step4_completed: Optional[bool] = None
    is_submitted: Optional[bool] = None


class OnboardingRead(BaseModel):
    user_id: int
    step1_completed: bool
    step2_completed: bool
    step3_completed: bool
    step4_completed: bool
    is_submitted: bool
    approved_at: Optional[str] = None
    approved_by: Optional[int] = None
    completed_steps: int
