"""
Business logic for contractors.

A contractor is a ``users`` row with the ``contractor`` role, a
``business_profiles`` row and any number of ``services``.  This service
owns those tables plus ``contractor_performance``,
``contractor_availability`` and ``onboarding_status``.  It also
assembles the denormalised contractor records that the matching and
map services score and cluster.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from eventpros_api.app.core.db import dump_json, get_connection, load_json
from eventpros_api.app.core.errors import ConflictError, NotFoundError
from eventpros_api.app.schemas.contractor import (
    AvailabilityUpdate,
    BusinessProfileCreate,
    ContractorRead,
    OnboardingRead,
    OnboardingUpdate,
    PerformanceUpdate,
    ServiceCreate,
    ServiceRead,
)
from eventpros_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

_PROFILE_COLUMNS = (
    "user_id, company_name, description, business_address, subscription_tier, is_verified, "
    "service_categories, service_areas, latitude, longitude, average_rating, review_count"
)
_JSON_FIELDS = {"service_categories", "service_areas"}
_ONBOARDING_STEPS = ("step1_completed", "step2_completed", "step3_completed", "step4_completed")


def _area_to_json(area: Any) -> Any:
    return area.model_dump(exclude_none=True) if hasattr(area, "model_dump") else area


def _services_for(conn: sqlite3.Connection, contractor_ids: List[int]) -> Dict[int, List[ServiceRead]]:
    if not contractor_ids:
        return {}
    placeholders = ",".join("?" for _ in contractor_ids)
    rows = conn.execute(
        "SELECT id, contractor_id, service_type, description, price_range_min, price_range_max "
        f"FROM services WHERE contractor_id IN ({placeholders}) ORDER BY id",
        tuple(contractor_ids),
    ).fetchall()
    grouped: Dict[int, List[ServiceRead]] = {cid: [] for cid in contractor_ids}
    for row in rows:
        grouped[row["contractor_id"]].append(
            ServiceRead(
                id=row["id"],
                contractor_id=row["contractor_id"],
                service_type=row["service_type"],
                description=row["description"],
                price_range_min=row["price_range_min"] or 0,
                price_range_max=row["price_range_max"] or 0,
            )
        )
    return grouped


def _row_to_contractor(row: sqlite3.Row, services: List[ServiceRead]) -> ContractorRead:
    return ContractorRead(
        user_id=row["user_id"],
        company_name=row["company_name"],
        description=row["description"],
        business_address=row["business_address"],
        subscription_tier=row["subscription_tier"],
        is_verified=bool(row["is_verified"]),
        service_categories=load_json(row["service_categories"], []),
        service_areas=load_json(row["service_areas"], []),
        latitude=row["latitude"],
        longitude=row["longitude"],
        average_rating=row["average_rating"] or 0,
        review_count=row["review_count"] or 0,
        services=services,
    )


class ContractorService:
    """Service for contractor business profiles and related records."""

    @classmethod
    async def create_profile(cls, user_id: int, data: BusinessProfileCreate) -> ContractorRead:
        """Create the business profile for a contractor account.

        Raises ``NotFoundError`` if the user does not exist,
        ``ValueError`` if the user is not a contractor and
        ``ConflictError`` if a profile already exists.
        """
        conn = get_connection()
        try:
            user = conn.execute("SELECT id, role FROM users WHERE id = ?", (user_id,)).fetchone()
            if not user:
                raise NotFoundError(f"User {user_id} not found")
            if user["role"] != "contractor":
                raise ValueError("Only contractor accounts can have a business profile")
            try:
                conn.execute(
                    """
                    INSERT INTO business_profiles (user_id, company_name, description, business_address,
                        subscription_tier, service_categories, service_areas, latitude, longitude)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        data.company_name,
                        data.description,
                        data.business_address,
                        data.subscription_tier,
                        dump_json(data.service_categories),
                        dump_json([_area_to_json(a) for a in data.service_areas]),
                        data.latitude,
                        data.longitude,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(f"Contractor {user_id} already has a business profile") from exc
            conn.execute("INSERT OR IGNORE INTO onboarding_status (user_id) VALUES (?)", (user_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("Created business profile for contractor %s", user_id)
        await AuditService.record(
            user_id=user_id,
            action="create",
            object_type="contractor",
            object_id=user_id,
            details={"company_name": data.company_name},
        )
        return await cls.get_contractor(user_id)

    @classmethod
    async def get_contractor(cls, contractor_id: int) -> ContractorRead:
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_PROFILE_COLUMNS} FROM business_profiles WHERE user_id = ?",
                (contractor_id,),
            ).fetchone()
            if not row:
                raise NotFoundError(f"Contractor {contractor_id} not found")
            services = _services_for(conn, [contractor_id])[contractor_id]
            return _row_to_contractor(row, services)
        finally:
            conn.close()

    @classmethod
    async def list_contractors(
        cls,
        service_type: Optional[str] = None,
        verified_only: bool = False,
        subscription_tier: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[ContractorRead]:
        """List contractors with optional filters.

        ``service_type`` matches either a declared service category or
        the type of one of the contractor's priced services.
        Premium tiers are listed first, then by rating.
        """
        conn = get_connection()
        try:
            where_clauses: List[str] = []
            params: List[Any] = []
            if verified_only:
                where_clauses.append("is_verified = 1")
            if subscription_tier:
                where_clauses.append("subscription_tier = ?")
                params.append(subscription_tier)
            if search:
                where_clauses.append("(company_name LIKE ? OR description LIKE ?)")
                params.extend([f"%{search}%", f"%{search}%"])
            if service_type:
                where_clauses.append(
                    "(service_categories LIKE ? OR user_id IN (SELECT contractor_id FROM services WHERE service_type = ?))"
                )
                params.extend([f'%"{service_type}"%', service_type])
            query = f"SELECT {_PROFILE_COLUMNS} FROM business_profiles"
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += (
                " ORDER BY CASE subscription_tier WHEN 'spotlight' THEN 0 WHEN 'showcase' THEN 1 ELSE 2 END,"
                " average_rating DESC, user_id ASC LIMIT ? OFFSET ?"
            )
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            services = _services_for(conn, [row["user_id"] for row in rows])
            return [_row_to_contractor(row, services[row["user_id"]]) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def update_profile(cls, contractor_id: int, updates: Dict[str, Any], acting_user_id: Optional[int] = None) -> ContractorRead:
        """Update fields of an existing business profile."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {contractor_id} not found")
            if updates:
                fields = []
                values: List[Any] = []
                for key, value in updates.items():
                    if key == "service_areas":
                        value = dump_json([_area_to_json(a) for a in value])
                    elif key in _JSON_FIELDS:
                        value = dump_json(value)
                    elif isinstance(value, bool):
                        value = 1 if value else 0
                    fields.append(f"{key} = ?")
                    values.append(value)
                values.append(contractor_id)
                conn.execute(
                    f"UPDATE business_profiles SET {', '.join(fields)}, updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
                    tuple(values),
                )
                conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=acting_user_id,
            action="update",
            object_type="contractor",
            object_id=contractor_id,
            details={k: v for k, v in updates.items() if k not in _JSON_FIELDS},
        )
        return await cls.get_contractor(contractor_id)

    @classmethod
    async def delete_profile(cls, contractor_id: int, acting_user_id: Optional[int] = None) -> None:
        """Remove a business profile together with its services and matching data."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {contractor_id} not found")
            for table in ("services", "contractor_availability"):
                conn.execute(f"DELETE FROM {table} WHERE contractor_id = ?", (contractor_id,))
            conn.execute("DELETE FROM contractor_performance WHERE contractor_id = ?", (contractor_id,))
            conn.execute("DELETE FROM onboarding_status WHERE user_id = ?", (contractor_id,))
            conn.execute("DELETE FROM business_profiles WHERE user_id = ?", (contractor_id,))
            conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=acting_user_id,
            action="delete",
            object_type="contractor",
            object_id=contractor_id,
        )

    @classmethod
    async def add_service(cls, contractor_id: int, data: ServiceCreate) -> ServiceRead:
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {contractor_id} not found")
            cursor = conn.execute(
                """
                INSERT INTO services (contractor_id, service_type, description, price_range_min, price_range_max)
                VALUES (?, ?, ?, ?, ?)
                """,
                (contractor_id, data.service_type, data.description, data.price_range_min, data.price_range_max),
            )
            service_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        return ServiceRead(id=service_id, contractor_id=contractor_id, **data.model_dump())

    @classmethod
    async def set_performance(cls, contractor_id: int, data: PerformanceUpdate) -> Dict[str, Any]:
        """Insert or replace the contractor's performance record."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {contractor_id} not found")
            values = data.model_dump()
            conn.execute(
                """
                INSERT INTO contractor_performance (contractor_id, response_time_hours, reliability_score,
                    quality_score, communication_score, overall_performance_score, total_projects, successful_projects)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(contractor_id) DO UPDATE SET
                    response_time_hours = excluded.response_time_hours,
                    reliability_score = excluded.reliability_score,
                    quality_score = excluded.quality_score,
                    communication_score = excluded.communication_score,
                    overall_performance_score = excluded.overall_performance_score,
                    total_projects = excluded.total_projects,
                    successful_projects = excluded.successful_projects,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    contractor_id,
                    values["response_time_hours"],
                    values["reliability_score"],
                    values["quality_score"],
                    values["communication_score"],
                    values["overall_performance_score"],
                    values["total_projects"],
                    values["successful_projects"],
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return {"contractor_id": contractor_id, **values}

    @classmethod
    async def set_availability(cls, contractor_id: int, data: AvailabilityUpdate) -> List[Dict[str, Any]]:
        """Mark the given dates as available or unavailable."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {contractor_id} not found")
            flag = 1 if data.is_available else 0
            for day in data.dates:
                conn.execute(
                    """
                    INSERT INTO contractor_availability (contractor_id, event_date, is_available)
                    VALUES (?, ?, ?)
                    ON CONFLICT(contractor_id, event_date) DO UPDATE SET is_available = excluded.is_available
                    """,
                    (contractor_id, day.isoformat(), flag),
                )
            conn.commit()
        finally:
            conn.close()
        return [
            {"contractor_id": contractor_id, "event_date": day.isoformat(), "is_available": data.is_available}
            for day in data.dates
        ]

    # ------------------------------------------------------------------
    # Onboarding
    # ------------------------------------------------------------------

    @classmethod
    async def get_onboarding(cls, contractor_id: int) -> OnboardingRead:
        conn = get_connection()
        try:
            row = conn.execute("SELECT * FROM onboarding_status WHERE user_id = ?", (contractor_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"No onboarding record for contractor {contractor_id}")
        steps = {step: bool(row[step]) for step in _ONBOARDING_STEPS}
        return OnboardingRead(
            user_id=row["user_id"],
            is_submitted=bool(row["is_submitted"]),
            approved_at=row["approved_at"],
            approved_by=row["approved_by"],
            completed_steps=sum(steps.values()),
            **steps,
        )

    @classmethod
    async def update_onboarding(cls, contractor_id: int, data: OnboardingUpdate) -> OnboardingRead:
        """Record step completion.  Submission requires every step to be complete."""
        current = await cls.get_onboarding(contractor_id)
        updates = data.model_dump(exclude_none=True)
        if updates.get("is_submitted"):
            merged = {step: updates.get(step, getattr(current, step)) for step in _ONBOARDING_STEPS}
            if not all(merged.values()):
                raise ValueError("All onboarding steps must be completed before submitting")
        if updates:
            conn = get_connection()
            try:
                assignments = ", ".join(f"{key} = ?" for key in updates)
                conn.execute(
                    f"UPDATE onboarding_status SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
                    tuple(int(v) for v in updates.values()) + (contractor_id,),
                )
                conn.commit()
            finally:
                conn.close()
        return await cls.get_onboarding(contractor_id)

    @classmethod
    async def approve_onboarding(cls, contractor_id: int, admin_id: Optional[int]) -> OnboardingRead:
        """Approve a submitted onboarding and mark the business verified."""
        current = await cls.get_onboarding(contractor_id)
        if not current.is_submitted:
            raise ValueError("Onboarding has not been submitted")
        if current.approved_at:
            raise ConflictError(f"Contractor {contractor_id} is already approved")
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE onboarding_status SET approved_at = CURRENT_TIMESTAMP, approved_by = ?, "
                "updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
                (admin_id, contractor_id),
            )
            conn.execute(
                "UPDATE business_profiles SET is_verified = 1, updated_at = CURRENT_TIMESTAMP WHERE user_id = ?",
                (contractor_id,),
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Contractor %s approved by %s", contractor_id, admin_id)
        await AuditService.record(
            user_id=admin_id,
            action="approve",
            object_type="contractor",
            object_id=contractor_id,
        )
        return await cls.get_onboarding(contractor_id)

    # ------------------------------------------------------------------
    # Denormalised records for matching and maps
    # ------------------------------------------------------------------

    @classmethod
    async def load_candidates(cls, verified_only: bool = True, event_date: Optional[str] = None) -> List[Dict[str, Any]]:
        """Load contractors with pricing, performance and availability in one pass.

        Each record carries the profile fields plus ``price_min`` /
        ``price_max`` (the widest band across priced services, or
        ``0``–``1000`` when none are priced), ``service_types``,
        ``performance`` (a dict or ``None``) and ``is_available`` for
        ``event_date`` (``None`` when no date was given).
        """
        conn = get_connection()
        try:
            query = f"SELECT {_PROFILE_COLUMNS} FROM business_profiles"
            if verified_only:
                query += " WHERE is_verified = 1"
            query += " ORDER BY user_id"
            rows = conn.execute(query).fetchall()
            ids = [row["user_id"] for row in rows]
            services = _services_for(conn, ids)
            performance = {
                r["contractor_id"]: dict(r)
                for r in conn.execute("SELECT * FROM contractor_performance").fetchall()
            }
            available: set = set()
            if event_date:
                available = {
                    r["contractor_id"]
                    for r in conn.execute(
                        "SELECT contractor_id FROM contractor_availability WHERE event_date = ? AND is_available = 1",
                        (event_date,),
                    ).fetchall()
                }
        finally:
            conn.close()

        candidates = []
        for row in rows:
            contractor = _row_to_contractor(row, services[row["user_id"]])
            priced = [s for s in contractor.services if s.price_range_max > 0]
            record = contractor.model_dump()
            record["service_types"] = sorted({s.service_type for s in contractor.services})
            record["price_min"] = min(s.price_range_min for s in priced) if priced else 0.0
            record["price_max"] = max(s.price_range_max for s in priced) if priced else 1000.0
            record["performance"] = performance.get(row["user_id"])
            record["is_available"] = (row["user_id"] in available) if event_date else None
            candidates.append(record)
        return candidates
