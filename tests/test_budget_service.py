from datetime import date

import pytest

from eventpros_api.app.schemas.budget import BudgetCalculateRequest
from eventpros_api.app.services.budget_service import (
    BudgetService,
    attendee_multiplier,
    infer_region,
    location_multiplier,
    seasonal_multiplier,
)


def _costs(recommendation):
    return {item.service_category: item.estimated_cost for item in recommendation.breakdown}


def test_unadjusted_wedding_uses_base_rates():
    result = BudgetService.calculate(BudgetCalculateRequest(event_type="wedding"))
    costs = _costs(result)
    assert costs["venue"] == 8000
    assert costs["catering"] == 9000
    assert result.total_budget == 26500
    assert result.adjustments.attendee_multiplier == 1.0
    assert result.adjustments.location_multiplier == 1.0
    venue = next(i for i in result.breakdown if i.service_category == "venue")
    assert venue.confidence_score == 0.85


def test_breakdown_sorted_by_confidence():
    result = BudgetService.calculate(BudgetCalculateRequest(event_type="wedding"))
    confidences = [item.confidence_score for item in result.breakdown]
    assert confidences == sorted(confidences, reverse=True)


def test_attendees_and_region_scale_everything_but_venue_attendance():
    result = BudgetService.calculate(
        BudgetCalculateRequest(event_type="wedding", region="Auckland", attendee_count=100, event_date=date(2026, 6, 20))
    )
    costs = _costs(result)
    assert costs["venue"] == pytest.approx(9600)
    assert costs["catering"] == pytest.approx(round(9000 * 2 ** 0.8 * 1.2, 2))
    assert result.adjustments.location_multiplier == 1.2
    assert result.adjustments.seasonal_multiplier == 1.0
    venue = next(i for i in result.breakdown if i.service_category == "venue")
    assert venue.confidence_score == pytest.approx(0.765)
    assert result.total_budget == pytest.approx(sum(costs.values()))


def test_duration_only_scales_hourly_categories():
    result = BudgetService.calculate(BudgetCalculateRequest(event_type="wedding", duration_hours=4))
    costs = _costs(result)
    assert costs["photography"] == 1750
    assert costs["music"] == 1000
    assert costs["catering"] == 9000
    assert result.adjustments.duration_multiplier == 0.5


def test_region_inferred_from_coordinates():
    result = BudgetService.calculate(BudgetCalculateRequest(event_type="party", lat=-45.0312, lng=168.6626))
    assert result.metadata.region == "Queenstown"
    assert result.adjustments.location_multiplier == 1.25


def test_unknown_event_type_rejected():
    with pytest.raises(ValueError):
        BudgetService.calculate(BudgetCalculateRequest(event_type="moon landing"))


def test_attendee_multiplier_is_clamped():
    assert attendee_multiplier(None) == 1.0
    assert attendee_multiplier(50) == 1.0
    assert attendee_multiplier(5) == 0.5
    assert attendee_multiplier(5000) == 2.0


def test_seasonal_multiplier():
    assert seasonal_multiplier(date(2026, 12, 24)) == 1.15
    assert seasonal_multiplier(date(2027, 2, 1)) == 1.15
    assert seasonal_multiplier(date(2027, 3, 1)) == 1.05
    assert seasonal_multiplier(date(2027, 7, 1)) == 1.0
    assert seasonal_multiplier(None) == 1.0


def test_location_multiplier_lookup():
    assert location_multiplier("Wellington") == 1.15
    assert location_multiplier("wellington region") == 1.15
    assert location_multiplier("Gisborne") == 1.0
    assert location_multiplier(None) == 1.0


def test_infer_region_outside_new_zealand():
    assert infer_region(-33.8688, 151.2093) is None
    assert infer_region(-36.85, 174.76) == "auckland"
