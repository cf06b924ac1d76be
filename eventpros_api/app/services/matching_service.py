"""
Contractor matching.

The scoring functions are pure classmethods so they can be exercised
without a database; ``find_matches`` and the availability and
performance lookups read from SQLite like the other services.

Every score lies in ``[0, 1]``.  The budget score is ``1.0`` whenever
the event budget falls inside the contractor's price band and falls
away monotonically on either side of it.  The location score is
``1.0`` inside any of the contractor's service areas and decays
linearly with the distance past the nearest area edge.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from eventpros_api.app.core.db import get_connection
from eventpros_api.app.core.errors import NotFoundError
from eventpros_api.app.schemas.event import EventRead
from eventpros_api.app.schemas.matching import (
    AvailabilityResult,
    BudgetBreakdown,
    BudgetCompatibility,
    CompatibilityScore,
    ContractorMatch,
    ContractorProfile,
    ContractorRanking,
    EventRequirements,
    LocationBreakdown,
    LocationMatch,
    MatchFeedbackCreate,
    MatchFeedbackRead,
    MatchingAnalytics,
    MatchingRequest,
    MatchingResponse,
    PerformanceScore,
)
from eventpros_api.app.services.contractor_service import ContractorService
from eventpros_api.app.services.geo import ServiceArea, haversine_km, resolve_service_area


logger = logging.getLogger(__name__)

DEFAULT_SERVICE_RADIUS_KM = 50.0
LOCATION_DECAY_KM = 100.0
NEUTRAL_SCORE = 0.5
UNKNOWN_AVAILABILITY_SCORE = 0.8
REASON_THRESHOLD = 0.8

COMPATIBILITY_WEIGHTS = {
    "service_type": 0.25,
    "experience": 0.20,
    "pricing": 0.15,
    "location": 0.15,
    "performance": 0.15,
    "availability": 0.10,
}

MATCH_WEIGHTS = {
    "compatibility": 0.30,
    "availability": 0.20,
    "budget": 0.20,
    "location": 0.15,
    "performance": 0.15,
}


def _clip(value: float) -> float:
    return max(0.0, min(1.0, value))


def _resolve_area(entry: Any) -> Tuple[Optional[ServiceArea], Optional[str]]:
    """Turn a stored or requested service area into a ``ServiceArea``.

    Returns ``(area, None)`` on success and ``(None, name)`` when a
    named area is not in the gazetteer.
    """
    if isinstance(entry, str):
        area = resolve_service_area(entry)
        return (area, None) if area else (None, entry)
    if hasattr(entry, "model_dump"):
        entry = entry.model_dump()
    name = entry.get("name") or f"{entry['lat']:.4f},{entry['lng']:.4f}"
    return ServiceArea(name, entry["lat"], entry["lng"], entry["radius_km"]), None


class MatchingService:
    """Scores and ranks contractors against events."""

    # ------------------------------------------------------------------
    # Pure scoring
    # ------------------------------------------------------------------

    @classmethod
    def budget_compatibility(cls, event_budget: float, price_min: float, price_max: float) -> BudgetCompatibility:
        """Score how well an event budget fits a contractor price band.

        Parameters
        ----------
        event_budget : float
            Total budget the event manager has for the service.
        price_min, price_max : float
            The contractor's price band.  ``price_min`` must not exceed
            ``price_max``.

        Returns
        -------
        BudgetCompatibility
            ``overall_score`` is ``1.0`` inside the band, the shortfall
            ratio ``event_budget / price_min`` below it and
            ``0.5 + 0.5 * price_max / event_budget`` above it.
        """
        if event_budget < 0 or price_min < 0 or price_max < 0:
            raise ValueError("Budget and prices must not be negative")
        if price_min > price_max:
            raise ValueError("price_min must not exceed price_max")

        in_range = price_min <= event_budget <= price_max
        if in_range:
            score = 1.0
            distance = 0.0
        elif event_budget < price_min:
            score = event_budget / price_min
            distance = price_min - event_budget
        else:
            score = 0.5 + 0.5 * price_max / event_budget
            distance = event_budget - price_max

        breakdown = BudgetBreakdown(
            budget_range_match=in_range,
            price_affordability=round(_clip(event_budget / price_max), 4) if price_max > 0 else 1.0,
            value_score=round(_clip(price_min / event_budget), 4) if event_budget > 0 else 1.0,
            budget_flexibility=round(_clip((price_max - price_min) / event_budget), 4) if event_budget > 0 else 0.0,
            distance_from_range=round(distance, 2),
        )
        return BudgetCompatibility(overall_score=round(_clip(score), 4), breakdown=breakdown)

    @classmethod
    def location_match(
        cls,
        lat: float,
        lng: float,
        service_areas: Sequence[Any],
        base_location: Optional[Any] = None,
        default_radius_km: float = DEFAULT_SERVICE_RADIUS_KM,
    ) -> LocationMatch:
        """Score an event location against a contractor's service areas.

        ``service_areas`` holds gazetteer names or ``{lat, lng,
        radius_km}`` circles.  ``base_location`` (``{lat, lng}``) is
        treated as one more area of ``default_radius_km``.  Names that
        cannot be resolved are reported in ``unresolved_areas``.
        """
        areas: List[ServiceArea] = []
        unresolved: List[str] = []
        for entry in service_areas:
            area, missing = _resolve_area(entry)
            if area:
                areas.append(area)
            else:
                unresolved.append(missing)
        if base_location is not None:
            if hasattr(base_location, "model_dump"):
                base_location = base_location.model_dump()
            areas.append(ServiceArea("base location", base_location["lat"], base_location["lng"], default_radius_km))

        if not areas:
            return LocationMatch(
                overall_score=0.0,
                breakdown=LocationBreakdown(
                    distance_km=None,
                    distance_outside_km=None,
                    matched_area=None,
                    service_area_coverage=False,
                    proximity_score=0.0,
                    unresolved_areas=unresolved,
                ),
            )

        best_area = None
        best_distance = best_outside = 0.0
        for area in areas:
            distance = haversine_km(lat, lng, area.lat, area.lng)
            outside = max(0.0, distance - area.radius_km)
            if best_area is None or (outside, distance) < (best_outside, best_distance):
                best_area, best_distance, best_outside = area, distance, outside

        covered = best_outside == 0.0
        score = 1.0 if covered else _clip(1.0 - best_outside / LOCATION_DECAY_KM)
        return LocationMatch(
            overall_score=round(score, 4),
            breakdown=LocationBreakdown(
                distance_km=round(best_distance, 2),
                distance_outside_km=round(best_outside, 2),
                matched_area=best_area.name,
                service_area_coverage=covered,
                proximity_score=round(_clip(1.0 - best_distance / (best_area.radius_km + LOCATION_DECAY_KM)), 4),
                unresolved_areas=unresolved,
            ),
        )

    @classmethod
    def blend(cls, location_score: float, budget_score: float) -> float:
        """Equal-weight mean of a location and a budget score."""
        return round(_clip(0.5 * location_score + 0.5 * budget_score), 4)

    @classmethod
    def service_type_compatibility(cls, required: Iterable[str], offered: Iterable[str]) -> float:
        required_set = {r.strip().lower() for r in required if r}
        offered_set = {o.strip().lower() for o in offered if o}
        if not required_set or not offered_set:
            return NEUTRAL_SCORE
        return len(required_set & offered_set) / len(required_set)

    @classmethod
    def experience_score(cls, is_verified: bool, average_rating: float, review_count: int) -> float:
        base = 0.8 if is_verified else 0.5
        rating_bonus = (average_rating or 0) / 5 * 0.1
        review_bonus = min(0.2, (review_count or 0) / 50)
        return min(1.0, base + rating_bonus + review_bonus)

    @classmethod
    def calculate_compatibility(cls, event: EventRequirements, contractor: ContractorProfile) -> CompatibilityScore:
        """Weighted compatibility of a contractor with an event.

        Missing inputs score neutrally: no budget or no location gives
        ``0.5``, no known availability gives ``0.8`` and no performance
        record falls back to the contractor's average rating.
        """
        service_type = cls.service_type_compatibility(event.service_categories, contractor.service_categories)
        experience = cls.experience_score(contractor.is_verified, contractor.average_rating, contractor.review_count)
        if event.budget_total > 0:
            pricing = cls.budget_compatibility(event.budget_total, contractor.price_min, contractor.price_max).overall_score
        else:
            pricing = NEUTRAL_SCORE
        if event.location is not None:
            location = cls.location_match(
                event.location.lat,
                event.location.lng,
                contractor.service_areas,
                contractor.base_location,
            ).overall_score
        else:
            location = NEUTRAL_SCORE
        if contractor.performance_score is not None:
            performance = contractor.performance_score
        else:
            performance = contractor.average_rating / 5
        if contractor.is_available is None:
            availability = UNKNOWN_AVAILABILITY_SCORE
        else:
            availability = 1.0 if contractor.is_available else 0.0

        weights = COMPATIBILITY_WEIGHTS
        overall = (
            service_type * weights["service_type"]
            + experience * weights["experience"]
            + pricing * weights["pricing"]
            + location * weights["location"]
            + performance * weights["performance"]
            + availability * weights["availability"]
        )
        return CompatibilityScore(
            service_type_score=round(service_type, 4),
            experience_score=round(experience, 4),
            pricing_score=round(pricing, 4),
            location_score=round(location, 4),
            performance_score=round(performance, 4),
            availability_score=round(availability, 4),
            overall_score=round(_clip(overall), 4),
        )

    @classmethod
    def match_reasons(cls, match: ContractorMatch) -> List[str]:
        reasons = []
        if match.compatibility_score > REASON_THRESHOLD:
            reasons.append("High service compatibility")
        if match.availability_score > REASON_THRESHOLD:
            reasons.append("Available for your event date")
        if match.budget_score > REASON_THRESHOLD:
            reasons.append("Fits within your budget")
        if match.location_score > REASON_THRESHOLD:
            reasons.append("Located in your service area")
        if match.performance_score > REASON_THRESHOLD:
            reasons.append("Excellent performance record")
        if match.is_premium:
            reasons.append("Premium contractor")
        return reasons

    @classmethod
    def rank_contractors(cls, matches: Sequence[ContractorMatch]) -> List[ContractorRanking]:
        """Order matches by overall score (ties by contractor id) and explain each."""
        ordered = sorted(matches, key=lambda m: (-m.overall_score, m.contractor_id))
        return [
            ContractorRanking(
                contractor_id=match.contractor_id,
                rank=position,
                score=match.overall_score,
                is_premium=match.is_premium,
                match_reasons=cls.match_reasons(match),
            )
            for position, match in enumerate(ordered, start=1)
        ]

    # ------------------------------------------------------------------
    # Database backed lookups
    # ------------------------------------------------------------------

    @classmethod
    async def check_availability(cls, contractor_id: int, event_date: str) -> AvailabilityResult:
        """A contractor is available only if the date is explicitly marked available."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT is_available FROM contractor_availability WHERE contractor_id = ? AND event_date = ?",
                (contractor_id, event_date),
            ).fetchone()
        finally:
            conn.close()
        available = bool(row and row["is_available"])
        return AvailabilityResult(
            contractor_id=contractor_id,
            event_date=event_date,
            available=available,
            availability_score=1.0 if available else 0.0,
        )

    @classmethod
    async def performance_score(cls, contractor_id: int) -> PerformanceScore:
        """Return the stored performance record, or neutral defaults when none exists."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {contractor_id} not found")
            row = conn.execute(
                "SELECT * FROM contractor_performance WHERE contractor_id = ?",
                (contractor_id,),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            return PerformanceScore(
                contractor_id=contractor_id,
                response_time_hours=24,
                reliability_score=NEUTRAL_SCORE,
                quality_score=NEUTRAL_SCORE,
                communication_score=NEUTRAL_SCORE,
                overall_performance_score=NEUTRAL_SCORE,
                total_projects=0,
                successful_projects=0,
                success_rate=0,
            )
        total = row["total_projects"] or 0
        successful = row["successful_projects"] or 0
        return PerformanceScore(
            contractor_id=contractor_id,
            response_time_hours=row["response_time_hours"] if row["response_time_hours"] is not None else 24,
            reliability_score=row["reliability_score"] if row["reliability_score"] is not None else NEUTRAL_SCORE,
            quality_score=row["quality_score"] if row["quality_score"] is not None else NEUTRAL_SCORE,
            communication_score=row["communication_score"] if row["communication_score"] is not None else NEUTRAL_SCORE,
            overall_performance_score=(
                row["overall_performance_score"] if row["overall_performance_score"] is not None else NEUTRAL_SCORE
            ),
            total_projects=total,
            successful_projects=successful,
            success_rate=round(successful / total, 4) if total else 0,
        )

    @classmethod
    def _score_candidate(cls, event: EventRead, requirements: EventRequirements, candidate: Dict[str, Any]) -> ContractorMatch:
        performance_row = candidate["performance"] or {}
        performance = performance_row.get("overall_performance_score")
        if performance is None:
            performance = NEUTRAL_SCORE
        base_location = None
        if candidate["latitude"] is not None and candidate["longitude"] is not None:
            base_location = {"lat": candidate["latitude"], "lng": candidate["longitude"]}
        profile = ContractorProfile(
            contractor_id=candidate["user_id"],
            service_categories=sorted(set(candidate["service_categories"]) | set(candidate["service_types"])),
            service_areas=candidate["service_areas"],
            base_location=base_location,
            price_min=candidate["price_min"],
            price_max=candidate["price_max"],
            is_verified=candidate["is_verified"],
            average_rating=candidate["average_rating"],
            review_count=candidate["review_count"],
            performance_score=performance,
            is_available=bool(candidate["is_available"]),
        )
        compatibility = cls.calculate_compatibility(requirements, profile)
        availability = 1.0 if candidate["is_available"] else 0.0
        if event.budget_total > 0:
            budget = cls.budget_compatibility(event.budget_total, profile.price_min, profile.price_max).overall_score
        else:
            budget = NEUTRAL_SCORE
        location = compatibility.location_score

        weights = MATCH_WEIGHTS
        overall = (
            compatibility.overall_score * weights["compatibility"]
            + availability * weights["availability"]
            + budget * weights["budget"]
            + location * weights["location"]
            + performance * weights["performance"]
        )
        return ContractorMatch(
            contractor_id=candidate["user_id"],
            company_name=candidate["company_name"],
            compatibility_score=compatibility.overall_score,
            availability_score=availability,
            budget_score=budget,
            location_score=location,
            performance_score=round(performance, 4),
            overall_score=round(_clip(overall), 4),
            is_premium=candidate["subscription_tier"] != "essential",
        )

    @classmethod
    async def find_matches(cls, event: EventRead, request: MatchingRequest) -> MatchingResponse:
        """Score every verified contractor against ``event``.

        Results are filtered by ``service_type``, ``min_score`` and
        ``premium_only``, sorted by overall score (ties by contractor
        id) and paginated.  Analytics describe the whole filtered set.
        """
        event_date = event.event_date.date().isoformat()
        candidates = await ContractorService.load_candidates(verified_only=True, event_date=event_date)
        total_contractors = len(candidates)
        if request.service_type:
            wanted = request.service_type.strip().lower()
            candidates = [
                c
                for c in candidates
                if wanted in {s.lower() for s in c["service_categories"]} | {s.lower() for s in c["service_types"]}
            ]

        categories = [req.category for req in event.service_requirements]
        if request.service_type:
            categories = [request.service_type]
        requirements = EventRequirements(
            budget_total=event.budget_total,
            location={"lat": event.location.lat, "lng": event.location.lng},
            service_categories=categories,
            event_date=event.event_date.date(),
        )

        matches = [cls._score_candidate(event, requirements, candidate) for candidate in candidates]
        matches = [m for m in matches if m.overall_score >= request.min_score]
        if request.premium_only:
            matches = [m for m in matches if m.is_premium]
        matches.sort(key=lambda m: (-m.overall_score, m.contractor_id))

        analytics = MatchingAnalytics(
            total_contractors=total_contractors,
            matching_contractors=len(matches),
            premium_contractors=sum(1 for m in matches if m.is_premium),
            average_score=round(sum(m.overall_score for m in matches) / len(matches), 4) if matches else 0.0,
        )
        start = (request.page - 1) * request.limit
        logger.info(
            "Matched event %s against %s contractors: %s results",
            event.id,
            total_contractors,
            len(matches),
        )
        return MatchingResponse(
            matches=matches[start:start + request.limit],
            total=len(matches),
            page=request.page,
            limit=request.limit,
            analytics=analytics,
        )

    @classmethod
    async def record_feedback(cls, data: MatchFeedbackCreate, user_id: Optional[int]) -> MatchFeedbackRead:
        conn = get_connection()
        try:
            if not conn.execute("SELECT id FROM events WHERE id = ?", (data.event_id,)).fetchone():
                raise NotFoundError(f"Event {data.event_id} not found")
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (data.contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {data.contractor_id} not found")
            cursor = conn.execute(
                """
                INSERT INTO match_feedback (user_id, event_id, contractor_id, feedback_type, rating, comment)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, data.event_id, data.contractor_id, data.feedback_type, data.rating, data.comment),
            )
            feedback_id = cursor.lastrowid
            conn.commit()
            row = conn.execute("SELECT created_at FROM match_feedback WHERE id = ?", (feedback_id,)).fetchone()
        finally:
            conn.close()
        return MatchFeedbackRead(id=feedback_id, user_id=user_id, created_at=str(row["created_at"]), **data.model_dump())
