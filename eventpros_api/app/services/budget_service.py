"""
Budget recommendations and tracking.

``BudgetService.calculate`` builds a per‑category recommendation from a
static table of base rates (NZD, for a 50 guest, 8 hour event) and
applies attendee, location, duration and seasonal multipliers in that
order.  The remaining methods persist an event's service breakdown,
apply manual adjustments and compare estimates with actual costs.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Tuple

from eventpros_api.app.core.db import get_connection
from eventpros_api.app.core.errors import NotFoundError
from eventpros_api.app.schemas.budget import (
    BreakdownItemRead,
    BudgetAdjustmentItem,
    BudgetAdjustments,
    BudgetCalculateRequest,
    BudgetFeedbackCreate,
    BudgetFeedbackRead,
    BudgetInsights,
    BudgetLineItem,
    BudgetMetadata,
    BudgetRecommendation,
    ServiceBreakdown,
    VarianceItem,
)
from eventpros_api.app.schemas.event import EventRead
from eventpros_api.app.services.geo import NZ_SERVICE_AREAS, haversine_km, normalise_area_name


logger = logging.getLogger(__name__)

# event type -> service category -> (amount, confidence)
BASE_RATES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "wedding": {
        "venue": (8000.0, 0.85),
        "catering": (9000.0, 0.8),
        "photography": (3500.0, 0.85),
        "music": (2000.0, 0.75),
        "decorations": (2500.0, 0.7),
        "florist": (1500.0, 0.7),
    },
    "corporate": {
        "venue": (5000.0, 0.8),
        "catering": (6000.0, 0.8),
        "av_equipment": (2500.0, 0.75),
        "photography": (1500.0, 0.7),
        "staffing": (1800.0, 0.7),
    },
    "conference": {
        "venue": (9000.0, 0.8),
        "catering": (7500.0, 0.75),
        "av_equipment": (4000.0, 0.8),
        "staffing": (2500.0, 0.7),
        "security": (1500.0, 0.65),
    },
    "birthday": {
        "venue": (1500.0, 0.75),
        "catering": (2000.0, 0.75),
        "entertainment": (800.0, 0.7),
        "decorations": (600.0, 0.7),
        "photography": (700.0, 0.65),
    },
    "party": {
        "venue": (2000.0, 0.7),
        "catering": (2500.0, 0.7),
        "music": (1200.0, 0.7),
        "decorations": (700.0, 0.65),
    },
    "festival": {
        "venue": (15000.0, 0.7),
        "catering": (10000.0, 0.65),
        "music": (8000.0, 0.7),
        "security": (5000.0, 0.75),
        "staffing": (4000.0, 0.7),
        "entertainment": (6000.0, 0.65),
    },
    "general": {
        "venue": (3000.0, 0.6),
        "catering": (3500.0, 0.6),
        "photography": (1200.0, 0.6),
        "music": (1000.0, 0.6),
    },
}

REGION_MULTIPLIERS: Dict[str, float] = {
    "auckland": 1.2,
    "queenstown": 1.25,
    "wellington": 1.15,
    "christchurch": 1.05,
    "tauranga": 1.05,
    "otago": 1.05,
    "dunedin": 0.95,
    "invercargill": 0.9,
    "palmerston north": 0.95,
}

HOURLY_CATEGORIES = ("photography", "music", "entertainment", "security", "staffing")
REFERENCE_ATTENDEES = 50
REFERENCE_HOURS = 8
ADJUSTED_CONFIDENCE_FACTOR = 0.9


def attendee_multiplier(attendee_count: Optional[int]) -> float:
    """``(n / 50) ** 0.8`` clamped to ``[0.5, 2.0]``; ``1.0`` when unknown."""
    if not attendee_count:
        return 1.0
    return min(2.0, max(0.5, (attendee_count / REFERENCE_ATTENDEES) ** 0.8))


def seasonal_multiplier(event_date: Optional[date]) -> float:
    if event_date is None:
        return 1.0
    if event_date.month in (12, 1, 2):
        return 1.15
    if event_date.month in (3, 11):
        return 1.05
    return 1.0


def infer_region(lat: float, lng: float) -> Optional[str]:
    """Name of the nearest gazetteer city whose radius contains the point."""
    best = None
    for area in NZ_SERVICE_AREAS.values():
        if area.name not in REGION_MULTIPLIERS and area.radius_km > 100:
            continue
        distance = haversine_km(lat, lng, area.lat, area.lng)
        if distance <= area.radius_km and (best is None or distance < best[0]):
            best = (distance, area.name)
    return best[1] if best else None


def location_multiplier(region: Optional[str]) -> float:
    if not region:
        return 1.0
    return REGION_MULTIPLIERS.get(normalise_area_name(region), 1.0)


def _variance_item(category: str, variance: float, estimated: float) -> VarianceItem:
    return VarianceItem(
        service_category=category,
        variance=round(variance, 2),
        variance_percentage=round(variance / estimated * 100, 2) if estimated > 0 else 0.0,
    )


class BudgetService:
    """Budget calculation, breakdown persistence and variance tracking."""

    @classmethod
    def calculate(cls, request: BudgetCalculateRequest) -> BudgetRecommendation:
        """Build a budget recommendation.

        Raises ``ValueError`` for an event type with no base rates.
        """
        event_type = request.event_type.strip().lower()
        rates = BASE_RATES.get(event_type)
        if rates is None:
            raise ValueError(f"No budget recommendations for event type: {request.event_type}")

        region = request.region
        if not region and request.lat is not None and request.lng is not None:
            inferred = infer_region(request.lat, request.lng)
            region = inferred.title() if inferred else None

        attendees = attendee_multiplier(request.attendee_count)
        location = location_multiplier(region)
        duration = request.duration_hours / REFERENCE_HOURS if request.duration_hours else 1.0
        seasonal = seasonal_multiplier(request.event_date)

        breakdown = []
        for category, (amount, confidence) in rates.items():
            adjusted = amount
            applied = False
            if category != "venue" and attendees != 1.0:
                adjusted *= attendees
                applied = True
            if location != 1.0:
                adjusted *= location
                applied = True
            if category in HOURLY_CATEGORIES and duration != 1.0:
                adjusted *= duration
                applied = True
            if seasonal != 1.0:
                adjusted *= seasonal
                applied = True
            if applied:
                confidence *= ADJUSTED_CONFIDENCE_FACTOR
            breakdown.append(
                BudgetLineItem(
                    service_category=category,
                    estimated_cost=round(adjusted, 2),
                    confidence_score=round(min(1.0, confidence), 4),
                )
            )
        breakdown.sort(key=lambda item: (-item.confidence_score, item.service_category))

        return BudgetRecommendation(
            total_budget=round(sum(item.estimated_cost for item in breakdown), 2),
            breakdown=breakdown,
            adjustments=BudgetAdjustments(
                attendee_multiplier=round(attendees, 4),
                location_multiplier=location,
                duration_multiplier=round(duration, 4),
                seasonal_multiplier=seasonal,
            ),
            metadata=BudgetMetadata(
                event_type=event_type,
                region=region,
                attendee_count=request.attendee_count,
                duration_hours=request.duration_hours,
                event_date=request.event_date,
            ),
        )

    @classmethod
    def recommend_for_event(cls, event: EventRead) -> BudgetRecommendation:
        return cls.calculate(
            BudgetCalculateRequest(
                event_type=event.event_type,
                region=event.location.region,
                lat=event.location.lat,
                lng=event.location.lng,
                attendee_count=event.attendee_count,
                duration_hours=event.duration_hours,
                event_date=event.event_date.date(),
            )
        )

    @classmethod
    def _ensure_breakdown(cls, conn, event: EventRead) -> None:
        """Seed the event's breakdown from its recommendation if it has none yet."""
        seeded = conn.execute(
            "SELECT 1 FROM service_budget_breakdown WHERE event_id = ? LIMIT 1", (event.id,)
        ).fetchone()
        if seeded:
            return
        recommendation = cls.recommend_for_event(event)
        conn.executemany(
            "INSERT INTO service_budget_breakdown (event_id, service_category, estimated_cost) VALUES (?, ?, ?)",
            [(event.id, item.service_category, item.estimated_cost) for item in recommendation.breakdown],
        )
        conn.commit()
        logger.info("Seeded budget breakdown for event %s", event.id)

    @classmethod
    async def get_service_breakdown(cls, event: EventRead, categories: Optional[List[str]] = None) -> ServiceBreakdown:
        """Return the stored breakdown for an event.

        The first request for an event without a breakdown seeds it
        from the event's budget recommendation.
        """
        conn = get_connection()
        try:
            cls._ensure_breakdown(conn, event)
            rows = conn.execute(
                "SELECT service_category, estimated_cost, adjustment_reason FROM service_budget_breakdown "
                "WHERE event_id = ? ORDER BY service_category",
                (event.id,),
            ).fetchall()
        finally:
            conn.close()

        items = [
            BreakdownItemRead(
                event_id=event.id,
                service_category=row["service_category"],
                estimated_cost=row["estimated_cost"],
                adjustment_reason=row["adjustment_reason"],
            )
            for row in rows
            if not categories or row["service_category"] in categories
        ]
        return ServiceBreakdown(breakdown=items, total=round(sum(i.estimated_cost for i in items), 2))

    @classmethod
    async def apply_adjustments(cls, event: EventRead, adjustments: List[BudgetAdjustmentItem]) -> List[BreakdownItemRead]:
        """Apply percentage or fixed adjustments; costs never drop below zero."""
        event_id = event.id
        updated = []
        conn = get_connection()
        try:
            cls._ensure_breakdown(conn, event)
            for adjustment in adjustments:
                row = conn.execute(
                    "SELECT estimated_cost FROM service_budget_breakdown WHERE event_id = ? AND service_category = ?",
                    (event_id, adjustment.service_category),
                ).fetchone()
                cost = row["estimated_cost"] if row else 0.0
                if adjustment.adjustment_type == "percentage":
                    cost *= 1 + adjustment.adjustment_value / 100
                else:
                    cost += adjustment.adjustment_value
                cost = round(max(0.0, cost), 2)
                conn.execute(
                    """
                    INSERT INTO service_budget_breakdown (event_id, service_category, estimated_cost, adjustment_reason)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(event_id, service_category) DO UPDATE SET
                        estimated_cost = excluded.estimated_cost,
                        adjustment_reason = excluded.adjustment_reason,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (event_id, adjustment.service_category, cost, adjustment.reason),
                )
                updated.append(
                    BreakdownItemRead(
                        event_id=event_id,
                        service_category=adjustment.service_category,
                        estimated_cost=cost,
                        adjustment_reason=adjustment.reason,
                    )
                )
            conn.commit()
        finally:
            conn.close()
        return updated

    @classmethod
    async def track_variance(cls, event: EventRead, actual_costs: Dict[str, float]) -> List[VarianceItem]:
        """Record actual costs against estimates.

        The estimate comes from an earlier tracking record for the
        category, then from the stored breakdown (seeded on demand), and
        is ``0`` for categories outside it.
        """
        event_id = event.id
        results = []
        conn = get_connection()
        try:
            cls._ensure_breakdown(conn, event)
            for category, actual in actual_costs.items():
                if actual < 0:
                    raise ValueError(f"Actual cost for {category} must not be negative")
                existing = conn.execute(
                    "SELECT estimated_cost FROM budget_tracking WHERE event_id = ? AND service_category = ?",
                    (event_id, category),
                ).fetchone()
                if existing:
                    estimated = existing["estimated_cost"]
                else:
                    planned = conn.execute(
                        "SELECT estimated_cost FROM service_budget_breakdown WHERE event_id = ? AND service_category = ?",
                        (event_id, category),
                    ).fetchone()
                    estimated = planned["estimated_cost"] if planned else 0.0
                variance = actual - estimated
                conn.execute(
                    """
                    INSERT INTO budget_tracking (event_id, service_category, estimated_cost, actual_cost, variance)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(event_id, service_category) DO UPDATE SET
                        actual_cost = excluded.actual_cost,
                        variance = excluded.variance,
                        tracking_date = CURRENT_TIMESTAMP
                    """,
                    (event_id, category, estimated, actual, variance),
                )
                results.append(_variance_item(category, variance, estimated))
            conn.commit()
        finally:
            conn.close()
        return results

    @classmethod
    async def get_insights(cls, event_id: int) -> BudgetInsights:
        conn = get_connection()
        try:
            rows = conn.execute(
                "SELECT service_category, estimated_cost, actual_cost, variance FROM budget_tracking WHERE event_id = ?",
                (event_id,),
            ).fetchall()
        finally:
            conn.close()
        if not rows:
            raise NotFoundError(f"No budget tracking recorded for event {event_id}")

        total_estimated = sum(row["estimated_cost"] or 0 for row in rows)
        total_actual = sum(row["actual_cost"] or 0 for row in rows)
        total_variance = total_actual - total_estimated
        overruns = sorted((r for r in rows if r["variance"] > 0), key=lambda r: (-r["variance"], r["service_category"]))
        savings = sorted((r for r in rows if r["variance"] < 0), key=lambda r: (r["variance"], r["service_category"]))
        return BudgetInsights(
            total_estimated=round(total_estimated, 2),
            total_actual=round(total_actual, 2),
            total_variance=round(total_variance, 2),
            variance_percentage=round(total_variance / total_estimated * 100, 2) if total_estimated > 0 else 0.0,
            top_overruns=[_variance_item(r["service_category"], r["variance"], r["estimated_cost"]) for r in overruns[:3]],
            top_savings=[_variance_item(r["service_category"], r["variance"], r["estimated_cost"]) for r in savings[:3]],
        )

    @classmethod
    async def record_feedback(cls, data: BudgetFeedbackCreate, user_id: Optional[int]) -> BudgetFeedbackRead:
        conn = get_connection()
        try:
            if data.event_id is not None and not conn.execute(
                "SELECT id FROM events WHERE id = ?", (data.event_id,)
            ).fetchone():
                raise NotFoundError(f"Event {data.event_id} not found")
            cursor = conn.execute(
                """
                INSERT INTO budget_feedback (user_id, event_id, event_type, service_category,
                    recommended_amount, actual_amount, rating, comment)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    data.event_id,
                    data.event_type,
                    data.service_category,
                    data.recommended_amount,
                    data.actual_amount,
                    data.rating,
                    data.comment,
                ),
            )
            feedback_id = cursor.lastrowid
            conn.commit()
            row = conn.execute("SELECT created_at FROM budget_feedback WHERE id = ?", (feedback_id,)).fetchone()
        finally:
            conn.close()
        return BudgetFeedbackRead(id=feedback_id, user_id=user_id, created_at=str(row["created_at"]), **data.model_dump())
