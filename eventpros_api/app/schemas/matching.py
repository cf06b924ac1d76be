"""
Pydantic models for contractor matching.

Score results always have the shape ``{overall_score, breakdown}``
where ``overall_score`` is in ``[0, 1]`` and ``breakdown`` explains
how it was reached.
"""

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from .common import Coordinates
from .contractor import ServiceAreaSpec


class BudgetMatchRequest(BaseModel):
    event_budget: float = Field(..., ge=0, examples=[8000])
    price_min: float = Field(..., ge=0, examples=[5000])
    price_max: float = Field(..., ge=0, examples=[10000])

    @model_validator(mode="after")
    def check_band(self):
        if self.price_min > self.price_max:
            raise ValueError("price_min must not exceed price_max")
        return self


class BudgetBreakdown(BaseModel):
    budget_range_match: bool
    price_affordability: float
    value_score: float
    budget_flexibility: float
    distance_from_range: float


class BudgetCompatibility(BaseModel):
    overall_score: float
    breakdown: BudgetBreakdown


class LocationMatchRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    service_areas: List[ServiceAreaSpec] = Field(default_factory=list)
    base_location: Optional[Coordinates] = None


class LocationBreakdown(BaseModel):
    distance_km: Optional[float]
    distance_outside_km: Optional[float]
    matched_area: Optional[str]
    service_area_coverage: bool
    proximity_score: float
    unresolved_areas: List[str] = Field(default_factory=list)


class LocationMatch(BaseModel):
    overall_score: float
    breakdown: LocationBreakdown


class EventRequirements(BaseModel):
    """The parts of an event that matching looks at."""

    budget_total: float = Field(0, ge=0)
    location: Optional[Coordinates] = None
    service_categories: List[str] = Field(default_factory=list)
    event_date: Optional[date] = None


class ContractorProfile(BaseModel):
    """The parts of a contractor that matching looks at."""

    contractor_id: Optional[int] = None
    service_categories: List[str] = Field(default_factory=list)
    service_areas: List[ServiceAreaSpec] = Field(default_factory=list)
    base_location: Optional[Coordinates] = None
    price_min: float = Field(0, ge=0)
    price_max: float = Field(1000, ge=0)
    is_verified: bool = False
    average_rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)
    performance_score: Optional[float] = Field(None, ge=0, le=1)
    is_available: Optional[bool] = None


class CompatibilityRequest(BaseModel):
    event: EventRequirements
    contractor: ContractorProfile


class CompatibilityScore(BaseModel):
    service_type_score: float
    experience_score: float
    pricing_score: float
    location_score: float
    performance_score: float
    availability_score: float
    overall_score: float


class AvailabilityResult(BaseModel):
    contractor_id: int
    event_date: date
    available: bool
    availability_score: float


class PerformanceScore(BaseModel):
    contractor_id: int
    response_time_hours: float
    reliability_score: float
    quality_score: float
    communication_score: float
    overall_performance_score: float
    total_projects: int
    successful_projects: int
    success_rate: float


class ContractorMatch(BaseModel):
    contractor_id: int
    company_name: Optional[str] = None
    compatibility_score: float = Field(..., ge=0, le=1)
    availability_score: float = Field(..., ge=0, le=1)
    budget_score: float = Field(..., ge=0, le=1)
    location_score: float = Field(..., ge=0, le=1)
    performance_score: float = Field(..., ge=0, le=1)
    overall_score: float = Field(..., ge=0, le=1)
    is_premium: bool = False


class MatchingAnalytics(BaseModel):
    total_contractors: int
    matching_contractors: int
    premium_contractors: int
    average_score: float


class MatchingRequest(BaseModel):
    event_id: int
    service_type: Optional[str] = None
    min_score: float = Field(0, ge=0, le=1)
    premium_only: bool = False
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class MatchingResponse(BaseModel):
    matches: List[ContractorMatch]
    total: int
    page: int
    limit: int
    analytics: MatchingAnalytics


class RankingRequest(BaseModel):
    matches: List[ContractorMatch]


class ContractorRanking(BaseModel):
    contractor_id: int
    rank: int
    score: float
    is_premium: bool
    match_reasons: List[str]


class MatchFeedbackCreate(BaseModel):
    event_id: int
    contractor_id: int
    feedback_type: Literal["positive", "negative", "neutral"]
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class MatchFeedbackRead(MatchFeedbackCreate):
    id: int
    user_id: Optional[int]
    created_at: str


class BlendedCompatibility(BaseModel):
    """Detailed compatibility plus the location/budget blend."""

    blended_score: float
    location: LocationMatch
    budget: BudgetCompatibility
    compatibility: CompatibilityScore
