"""
Audit trail for marketplace changes.

Account changes, contractor profile edits and onboarding approvals,
event edits, testimonial moderation and budget adjustments all land in
``audit_logs``.  Admins read them through ``GET /api/audit/logs``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from eventpros_api.app.core.db import dump_json, get_connection, load_json


logger = logging.getLogger(__name__)


class AuditService:
    """Service class for writing and retrieving audit logs."""

    @classmethod
    async def log(
        cls,
        user_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Insert one ``audit_logs`` row.

        ``user_id`` is ``None`` for requests made with the service token.
        ``details`` is stored as JSON, e.g. the categories touched by a
        budget adjustment.
        """
        conn = get_connection()
        try:
            conn.execute(
                """
                INSERT INTO audit_logs (user_id, action, object_type, object_id, details)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, action, object_type, object_id, dump_json(details) if details else None),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def record(cls, *args: Any, **kwargs: Any) -> None:
        """Write an audit row after the audited change has committed.

        A locked or broken audit table must not turn a saved event or
        approved contractor into a 500, so SQLite errors are logged as
        warnings and dropped.
        """
        try:
            await cls.log(*args, **kwargs)
        except sqlite3.Error as exc:
            logger.warning("Failed to write audit log %s %s: %s", args, kwargs, exc)

    @classmethod
    async def list_logs(
        cls,
        user_id: Optional[int] = None,
        object_type: Optional[str] = None,
        action: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Retrieve audit records with optional filters and pagination.

        Date filters accept ISO date strings and apply to the
        ``timestamp`` column.  Results are ordered newest first.
        """
        conn = get_connection()
        try:
            where_clauses: List[str] = []
            params: List[Any] = []
            if user_id is not None:
                where_clauses.append("user_id = ?")
                params.append(user_id)
            if object_type:
                where_clauses.append("object_type = ?")
                params.append(object_type)
            if action:
                where_clauses.append("action = ?")
                params.append(action)
            if start_date:
                where_clauses.append("timestamp >= ?")
                params.append(start_date)
            if end_date:
                where_clauses.append("timestamp <= ?")
                params.append(end_date)
            query = "SELECT id, user_id, action, object_type, object_id, timestamp, details FROM audit_logs"
            if where_clauses:
                query += " WHERE " + " AND ".join(where_clauses)
            query += " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            return [
                {
                    "id": row["id"],
                    "user_id": row["user_id"],
                    "action": row["action"],
                    "object_type": row["object_type"],
                    "object_id": row["object_id"],
                    "timestamp": row["timestamp"],
                    "details": load_json(row["details"]),
                }
                for row in rows
            ]
        finally:
            conn.close()
