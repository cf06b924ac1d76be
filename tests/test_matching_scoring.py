import pytest

from eventpros_api.app.schemas.matching import ContractorMatch, ContractorProfile, EventRequirements
from eventpros_api.app.services.matching_service import MatchingService


AUCKLAND = (-36.8485, 174.7633)
WELLINGTON = (-41.2865, 174.7762)


class TestBudgetCompatibility:
    def test_inside_band_scores_one(self):
        result = MatchingService.budget_compatibility(8000, 5000, 10000)
        assert result.overall_score == 1.0
        assert result.breakdown.budget_range_match is True
        assert result.breakdown.distance_from_range == 0

    def test_band_edges_score_one(self):
        assert MatchingService.budget_compatibility(5000, 5000, 10000).overall_score == 1.0
        assert MatchingService.budget_compatibility(10000, 5000, 10000).overall_score == 1.0

    def test_below_band_is_shortfall_ratio(self):
        result = MatchingService.budget_compatibility(2000, 5000, 10000)
        assert result.overall_score == pytest.approx(0.4)
        assert 0 < result.overall_score < 1
        assert result.breakdown.budget_range_match is False
        assert result.breakdown.distance_from_range == 3000

    def test_above_band_decays_towards_half(self):
        result = MatchingService.budget_compatibility(20000, 5000, 10000)
        assert result.overall_score == pytest.approx(0.75)

    def test_non_increasing_away_from_band(self):
        below = [MatchingService.budget_compatibility(b, 5000, 10000).overall_score for b in (5000, 4000, 2500, 1000, 0)]
        above = [MatchingService.budget_compatibility(b, 5000, 10000).overall_score for b in (10000, 12000, 20000, 100000)]
        assert below == sorted(below, reverse=True)
        assert above == sorted(above, reverse=True)
        assert all(0 <= s <= 1 for s in below + above)

    def test_inverted_band_rejected(self):
        with pytest.raises(ValueError):
            MatchingService.budget_compatibility(5000, 10000, 5000)

    def test_zero_band(self):
        assert MatchingService.budget_compatibility(0, 0, 0).overall_score == 1.0
        assert MatchingService.budget_compatibility(100, 0, 0).overall_score == 0.5


class TestLocationMatch:
    def test_inside_named_area(self):
        result = MatchingService.location_match(*AUCKLAND, ["Auckland"])
        assert result.overall_score == 1.0
        assert result.breakdown.service_area_coverage is True
        assert result.breakdown.matched_area == "auckland"

    def test_region_suffix_and_case_are_ignored(self):
        result = MatchingService.location_match(*AUCKLAND, ["AUCKLAND region"])
        assert result.overall_score == 1.0

    def test_far_outside_scores_zero(self):
        result = MatchingService.location_match(*WELLINGTON, ["Auckland"])
        assert result.overall_score == 0.0
        assert result.breakdown.service_area_coverage is False
        assert result.breakdown.distance_outside_km > 100

    def test_decays_with_distance(self):
        scores = [
            MatchingService.location_match(AUCKLAND[0] - offset, AUCKLAND[1], ["Auckland"]).overall_score
            for offset in (0.0, 0.5, 0.8, 1.0, 1.2, 2.0)
        ]
        assert scores[0] == 1.0
        assert scores == sorted(scores, reverse=True)
        assert 0 < scores[2] < 1
        assert scores[-1] == 0.0

    def test_nearest_area_wins(self):
        result = MatchingService.location_match(*WELLINGTON, ["Auckland", "Wellington"])
        assert result.overall_score == 1.0
        assert result.breakdown.matched_area == "wellington"

    def test_explicit_circle_and_base_location(self):
        circle = {"lat": WELLINGTON[0], "lng": WELLINGTON[1], "radius_km": 10, "name": "CBD"}
        assert MatchingService.location_match(*WELLINGTON, [circle]).breakdown.matched_area == "CBD"
        base = {"lat": WELLINGTON[0], "lng": WELLINGTON[1]}
        assert MatchingService.location_match(*WELLINGTON, [], base).overall_score == 1.0

    def test_unresolved_areas_score_zero(self):
        result = MatchingService.location_match(*AUCKLAND, ["Atlantis"])
        assert result.overall_score == 0.0
        assert result.breakdown.service_area_coverage is False
        assert result.breakdown.unresolved_areas == ["Atlantis"]

    def test_nationwide_covers_everything(self):
        assert MatchingService.location_match(*WELLINGTON, ["Nationwide"]).overall_score == 1.0


def test_blend_is_equal_weight():
    assert MatchingService.blend(1.0, 0.4) == pytest.approx(0.7)
    assert MatchingService.blend(0.0, 0.0) == 0.0


def test_service_type_compatibility():
    assert MatchingService.service_type_compatibility(["catering", "music"], ["Catering"]) == 0.5
    assert MatchingService.service_type_compatibility(["catering"], ["catering", "venue"]) == 1.0
    assert MatchingService.service_type_compatibility([], ["catering"]) == 0.5
    assert MatchingService.service_type_compatibility(["music"], ["catering"]) == 0.0


def test_experience_score():
    assert MatchingService.experience_score(True, 5, 50) == 1.0
    assert MatchingService.experience_score(False, 0, 0) == 0.5
    assert MatchingService.experience_score(False, 5, 5) == pytest.approx(0.7)


def test_calculate_compatibility_weights():
    event = EventRequirements(
        budget_total=8000,
        location={"lat": AUCKLAND[0], "lng": AUCKLAND[1]},
        service_categories=["catering"],
    )
    contractor = ContractorProfile(
        service_categories=["catering"],
        service_areas=["Auckland"],
        price_min=5000,
        price_max=10000,
        is_verified=True,
        average_rating=4.5,
        review_count=10,
        performance_score=0.9,
        is_available=True,
    )
    score = MatchingService.calculate_compatibility(event, contractor)
    assert score.service_type_score == 1.0
    assert score.experience_score == 1.0
    assert score.pricing_score == 1.0
    assert score.location_score == 1.0
    assert score.overall_score == pytest.approx(0.985)


def test_calculate_compatibility_missing_inputs_are_neutral():
    score = MatchingService.calculate_compatibility(EventRequirements(), ContractorProfile(average_rating=4))
    assert score.pricing_score == 0.5
    assert score.location_score == 0.5
    assert score.availability_score == 0.8
    assert score.performance_score == pytest.approx(0.8)
    assert 0 <= score.overall_score <= 1


def _match(contractor_id, overall, **scores):
    values = dict(
        compatibility_score=0.5,
        availability_score=0.5,
        budget_score=0.5,
        location_score=0.5,
        performance_score=0.5,
    )
    values.update(scores)
    return ContractorMatch(contractor_id=contractor_id, overall_score=overall, **values)


def test_rank_contractors_orders_and_explains():
    matches = [
        _match(3, 0.6),
        _match(1, 0.9, budget_score=1.0, location_score=0.95),
        _match(2, 0.6, is_premium=True),
    ]
    ranking = MatchingService.rank_contractors(matches)
    assert [r.contractor_id for r in ranking] == [1, 2, 3]
    assert [r.rank for r in ranking] == [1, 2, 3]
    assert ranking[0].match_reasons == ["Fits within your budget", "Located in your service area"]
    assert ranking[1].match_reasons == ["Premium contractor"]
    assert ranking[2].match_reasons == []
