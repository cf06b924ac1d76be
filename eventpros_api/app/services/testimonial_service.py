"""
Business logic for testimonials.

Event managers leave testimonials for contractors.  New testimonials
are unapproved; once an administrator approves one it becomes public
and the contractor's ``average_rating`` and ``review_count`` on the
business profile are recomputed from all approved testimonials.
"""

import html
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from eventpros_api.app.core.db import get_connection
from eventpros_api.app.core.errors import ConflictError, NotFoundError, PermissionDeniedError
from eventpros_api.app.core.security import is_admin
from eventpros_api.app.schemas.testimonial import TestimonialCreate, TestimonialRead
from eventpros_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

_TESTIMONIAL_COLUMNS = (
    "id, contractor_id, event_manager_id, event_id, rating, comment, is_approved, moderated_by, created_at"
)


def _row_to_testimonial(row: sqlite3.Row) -> TestimonialRead:
    return TestimonialRead(
        id=row["id"],
        contractor_id=row["contractor_id"],
        event_manager_id=row["event_manager_id"],
        event_id=row["event_id"],
        rating=row["rating"],
        comment=html.escape(row["comment"]) if row["comment"] is not None else None,
        is_approved=bool(row["is_approved"]),
        moderated_by=row["moderated_by"],
        created_at=str(row["created_at"]),
    )


def _refresh_rating(conn: sqlite3.Connection, contractor_id: int) -> None:
    stats = conn.execute(
        "SELECT AVG(rating) AS average, COUNT(*) AS count FROM testimonials WHERE contractor_id = ? AND is_approved = 1",
        (contractor_id,),
    ).fetchone()
    conn.execute(
        "UPDATE business_profiles SET average_rating = ?, review_count = ?, updated_at = CURRENT_TIMESTAMP "
        "WHERE user_id = ?",
        (round(stats["average"] or 0, 2), stats["count"], contractor_id),
    )


class TestimonialService:
    """Service for handling contractor testimonials."""

    @classmethod
    async def create_testimonial(cls, data: TestimonialCreate, current_user: Dict[str, Any]) -> TestimonialRead:
        """Create an unapproved testimonial.

        The contractor must have a business profile.  When ``event_id``
        is given the event must belong to the author.  One testimonial
        per contractor, author and event.
        """
        user_id = current_user.get("user_id")
        if user_id is None:
            raise ValueError("Testimonials must be written by a user account")
        conn = get_connection()
        try:
            if not conn.execute("SELECT user_id FROM business_profiles WHERE user_id = ?", (data.contractor_id,)).fetchone():
                raise NotFoundError(f"Contractor {data.contractor_id} not found")
            if data.event_id is not None:
                event = conn.execute("SELECT user_id FROM events WHERE id = ?", (data.event_id,)).fetchone()
                if not event:
                    raise NotFoundError(f"Event {data.event_id} not found")
                if event["user_id"] != user_id and not is_admin(current_user):
                    raise PermissionDeniedError("You can only review contractors for your own events")
            duplicate = conn.execute(
                "SELECT id FROM testimonials WHERE contractor_id = ? AND event_manager_id = ? AND event_id IS ?",
                (data.contractor_id, user_id, data.event_id),
            ).fetchone()
            if duplicate:
                raise ConflictError("You have already reviewed this contractor for this event")
            cursor = conn.execute(
                """
                INSERT INTO testimonials (contractor_id, event_manager_id, event_id, rating, comment, is_approved)
                VALUES (?, ?, ?, ?, ?, 0)
                """,
                (data.contractor_id, user_id, data.event_id, data.rating, data.comment),
            )
            testimonial_id = cursor.lastrowid
            conn.commit()
            row = conn.execute(
                f"SELECT {_TESTIMONIAL_COLUMNS} FROM testimonials WHERE id = ?", (testimonial_id,)
            ).fetchone()
        finally:
            conn.close()
        logger.info("User %s submitted testimonial %s for contractor %s", user_id, testimonial_id, data.contractor_id)
        await AuditService.record(
            user_id=user_id,
            action="create",
            object_type="testimonial",
            object_id=testimonial_id,
            details={"contractor_id": data.contractor_id, "rating": data.rating},
        )
        return _row_to_testimonial(row)

    @classmethod
    async def list_testimonials(
        cls,
        current_user: Dict[str, Any],
        contractor_id: Optional[int] = None,
        approved: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[TestimonialRead]:
        """List testimonials, newest first.

        Administrators see everything and may filter on ``approved``.
        Other users see approved testimonials plus their own.
        """
        conn = get_connection()
        try:
            where_clauses: List[str] = []
            params: List[Any] = []
            if is_admin(current_user):
                if approved is not None:
                    where_clauses.append("is_approved = ?")
                    params.append(1 if approved else 0)
            else:
                where_clauses.append("(is_approved = 1 OR event_manager_id = ?)")
                params.append(current_user.get("user_id"))
            if contractor_id is not None:
                where_clauses.append("contractor_id = ?")
                params.append(contractor_id)
            query = f"SELECT {_TESTIMONIAL_COLUMNS} FROM testimonials"
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_row_to_testimonial(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def moderate_testimonial(cls, testimonial_id: int, approved: bool, moderator_id: Optional[int]) -> TestimonialRead:
        """Approve or reject a testimonial and refresh the contractor's rating."""
        conn = get_connection()
        try:
            row = conn.execute("SELECT contractor_id FROM testimonials WHERE id = ?", (testimonial_id,)).fetchone()
            if not row:
                raise NotFoundError(f"Testimonial {testimonial_id} not found")
            conn.execute(
                "UPDATE testimonials SET is_approved = ?, moderated_by = ? WHERE id = ?",
                (1 if approved else 0, moderator_id, testimonial_id),
            )
            _refresh_rating(conn, row["contractor_id"])
            conn.commit()
            updated = conn.execute(
                f"SELECT {_TESTIMONIAL_COLUMNS} FROM testimonials WHERE id = ?", (testimonial_id,)
            ).fetchone()
        finally:
            conn.close()
        await AuditService.record(
            user_id=moderator_id,
            action="approve" if approved else "reject",
            object_type="testimonial",
            object_id=testimonial_id,
        )
        return _row_to_testimonial(updated)

    @classmethod
    async def delete_testimonial(cls, testimonial_id: int, current_user: Dict[str, Any]) -> None:
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT contractor_id, event_manager_id FROM testimonials WHERE id = ?", (testimonial_id,)
            ).fetchone()
            if not row:
                raise NotFoundError(f"Testimonial {testimonial_id} not found")
            if row["event_manager_id"] != current_user.get("user_id") and not is_admin(current_user):
                raise PermissionDeniedError("You can only delete your own testimonials")
            conn.execute("DELETE FROM testimonials WHERE id = ?", (testimonial_id,))
            _refresh_rating(conn, row["contractor_id"])
            conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=current_user.get("user_id"),
            action="delete",
            object_type="testimonial",
            object_id=testimonial_id,
        )
