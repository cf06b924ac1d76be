"""
Business logic for events.

Event managers own their events; administrators can see and change
every event.  Access checks live here rather than in the routes so
that the matching and budget services can reuse them.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from eventpros_api.app.core.db import dump_json, get_connection, load_json
from eventpros_api.app.core.errors import NotFoundError, PermissionDeniedError
from eventpros_api.app.core.security import is_admin
from eventpros_api.app.schemas.event import EventCreate, EventLocation, EventRead
from eventpros_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

_EVENT_COLUMNS = (
    "id, user_id, event_type, title, description, event_date, duration_hours, attendee_count, "
    "address, region, latitude, longitude, budget_total, service_requirements, status, created_at"
)


def _row_to_event(row: sqlite3.Row) -> EventRead:
    return EventRead(
        id=row["id"],
        user_id=row["user_id"],
        event_type=row["event_type"],
        title=row["title"],
        description=row["description"],
        event_date=row["event_date"],
        duration_hours=row["duration_hours"],
        attendee_count=row["attendee_count"],
        location=EventLocation(
            address=row["address"],
            lat=row["latitude"],
            lng=row["longitude"],
            region=row["region"],
        ),
        budget_total=row["budget_total"] or 0,
        service_requirements=load_json(row["service_requirements"], []),
        status=row["status"],
        created_at=str(row["created_at"]) if row["created_at"] else None,
    )


class EventService:
    """Service for creating, reading, updating and deleting events."""

    @classmethod
    async def create_event(cls, data: EventCreate, user_id: Optional[int]) -> EventRead:
        """Create an event owned by ``user_id``.

        Drafts start in ``draft``; everything else starts in ``planning``.
        """
        if user_id is None:
            raise ValueError("Events must be owned by a user account")
        status = "draft" if data.is_draft else "planning"
        conn = get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO events (user_id, event_type, title, description, event_date, duration_hours,
                    attendee_count, address, region, latitude, longitude, budget_total,
                    service_requirements, status)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    data.event_type,
                    data.title,
                    data.description,
                    data.event_date.isoformat(),
                    data.duration_hours,
                    data.attendee_count,
                    data.location.address,
                    data.location.region,
                    data.location.lat,
                    data.location.lng,
                    data.budget_total,
                    dump_json([req.model_dump() for req in data.service_requirements]),
                    status,
                ),
            )
            event_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s created event %s (%s)", user_id, event_id, status)
        await AuditService.record(
            user_id=user_id,
            action="create",
            object_type="event",
            object_id=event_id,
            details={"title": data.title, "status": status},
        )
        return await cls.load_event(event_id)

    @classmethod
    async def load_event(cls, event_id: int) -> EventRead:
        """Load an event without any access check."""
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (event_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"Event {event_id} not found")
        return _row_to_event(row)

    @staticmethod
    def check_access(event: EventRead, current_user: Dict[str, Any]) -> None:
        if is_admin(current_user):
            return
        if event.user_id != current_user.get("user_id"):
            raise PermissionDeniedError("You do not have access to this event")

    @classmethod
    async def get_event(cls, event_id: int, current_user: Dict[str, Any]) -> EventRead:
        event = await cls.load_event(event_id)
        cls.check_access(event, current_user)
        return event

    @classmethod
    async def list_events(
        cls,
        current_user: Dict[str, Any],
        status: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[EventRead]:
        """List events visible to ``current_user``, newest event date first."""
        conn = get_connection()
        try:
            where_clauses: List[str] = []
            params: List[Any] = []
            if not is_admin(current_user):
                where_clauses.append("user_id = ?")
                params.append(current_user.get("user_id"))
            if status:
                where_clauses.append("status = ?")
                params.append(status)
            if event_type:
                where_clauses.append("event_type = ?")
                params.append(event_type)
            query = f"SELECT {_EVENT_COLUMNS} FROM events"
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += " ORDER BY event_date DESC, id DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_row_to_event(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def update_event(cls, event_id: int, updates: Dict[str, Any], current_user: Dict[str, Any]) -> EventRead:
        """Apply a partial update to an event the caller can access."""
        event = await cls.get_event(event_id, current_user)
        columns: Dict[str, Any] = {}
        for key, value in updates.items():
            if key == "location":
                columns["address"] = value["address"]
                columns["region"] = value.get("region")
                columns["latitude"] = value["lat"]
                columns["longitude"] = value["lng"]
            elif key == "service_requirements":
                columns[key] = dump_json(value)
            elif key == "event_date":
                columns[key] = value.isoformat()
            else:
                columns[key] = value
        if columns:
            assignments = ", ".join(f"{key} = ?" for key in columns)
            conn = get_connection()
            try:
                conn.execute(
                    f"UPDATE events SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    tuple(columns.values()) + (event.id,),
                )
                conn.commit()
            finally:
                conn.close()
        await AuditService.record(
            user_id=current_user.get("user_id"),
            action="update",
            object_type="event",
            object_id=event_id,
            details={"fields": sorted(updates)},
        )
        return await cls.load_event(event_id)

    @classmethod
    async def delete_event(cls, event_id: int, current_user: Dict[str, Any]) -> None:
        await cls.get_event(event_id, current_user)
        conn = get_connection()
        try:
            conn.execute("DELETE FROM events WHERE id = ?", (event_id,))
            conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=current_user.get("user_id"),
            action="delete",
            object_type="event",
            object_id=event_id,
        )
