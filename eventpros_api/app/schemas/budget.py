"""
Pydantic models for budget recommendations and tracking.
"""

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class BudgetCalculateRequest(BaseModel):
    event_type: str = Field(..., min_length=1, examples=["wedding"])
    region: Optional[str] = Field(None, examples=["Auckland"])
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    attendee_count: Optional[int] = Field(None, ge=1, le=10000)
    duration_hours: Optional[float] = Field(None, ge=1, le=168)
    event_date: Optional[date] = None


class BudgetLineItem(BaseModel):
    service_category: str
    estimated_cost: float
    confidence_score: float


class BudgetAdjustments(BaseModel):
    attendee_multiplier: float
    location_multiplier: float
    duration_multiplier: float
    seasonal_multiplier: float


class BudgetMetadata(BaseModel):
    event_type: str
    region: Optional[str] = None
    attendee_count: Optional[int] = None
    duration_hours: Optional[float] = None
    event_date: Optional[date] = None


class BudgetRecommendation(BaseModel):
    total_budget: float
    breakdown: List[BudgetLineItem]
    adjustments: BudgetAdjustments
    metadata: BudgetMetadata


class BudgetAdjustmentItem(BaseModel):
    service_category: str = Field(..., min_length=1)
    adjustment_type: Literal["percentage", "fixed"]
    adjustment_value: float
    reason: Optional[str] = None


class BudgetAdjustmentRequest(BaseModel):
    adjustments: List[BudgetAdjustmentItem] = Field(..., min_length=1)


class BreakdownItemRead(BaseModel):
    event_id: int
    service_category: str
    estimated_cost: float
    adjustment_reason: Optional[str] = None


class ServiceBreakdown(BaseModel):
    breakdown: List[BreakdownItemRead]
    total: float


class BudgetTrackingRequest(BaseModel):
    actual_costs: Dict[str, float] = Field(..., min_length=1)


class VarianceItem(BaseModel):
    service_category: str
    variance: float
    variance_percentage: float


class BudgetInsights(BaseModel):
    total_estimated: float
    total_actual: float
    total_variance: float
    variance_percentage: float
    top_overruns: List[VarianceItem]
    top_savings: List[VarianceItem]


class BudgetFeedbackCreate(BaseModel):
    event_type: str = Field(..., min_length=1)
    service_category: str = Field(..., min_length=1)
    event_id: Optional[int] = None
    recommended_amount: Optional[float] = Field(None, ge=0)
    actual_amount: Optional[float] = Field(None, ge=0)
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class BudgetFeedbackRead(BudgetFeedbackCreate):
    id: int
    user_id: Optional[int]
    created_at: str
