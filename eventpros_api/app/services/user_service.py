"""
Business logic for user accounts.

Accounts are stored in the ``users`` table with a PBKDF2 password hash
and a ``role``.  The very first account created becomes an
administrator so that a fresh deployment can be bootstrapped without
touching the database by hand.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from eventpros_api.app.core.db import get_connection
from eventpros_api.app.core.errors import ConflictError, NotFoundError
from eventpros_api.app.core.security import ROLE_ADMIN, hash_password, verify_password
from eventpros_api.app.schemas.user import UserCreate, UserRead
from eventpros_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, email, full_name, role, disabled"


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        role=row["role"],
        disabled=bool(row["disabled"]),
    )


class UserService:
    """Service for managing user accounts."""

    @classmethod
    async def create_user(cls, data: UserCreate) -> UserRead:
        """Create a new user and return it.

        Raises ``ConflictError`` if the email is already registered.
        """
        logger.info("Registering user %s as %s", data.email, data.role)
        conn = get_connection()
        try:
            count = conn.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"]
            role = ROLE_ADMIN if count == 0 else data.role
            try:
                cursor = conn.execute(
                    "INSERT INTO users (email, full_name, password, role) VALUES (?, ?, ?, ?)",
                    (data.email, data.full_name, hash_password(data.password), role),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(f"Email {data.email} is already registered") from exc
            user_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=None,
            action="create",
            object_type="user",
            object_id=user_id,
            details={"email": data.email, "role": role},
        )
        return UserRead(id=user_id, email=data.email, full_name=data.full_name, role=role, disabled=False)

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user if the credentials match and the account is active."""
        conn = get_connection()
        try:
            row = conn.execute(
                f"SELECT {_USER_COLUMNS}, password FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        finally:
            conn.close()
        if not row or row["disabled"]:
            return None
        if not verify_password(password, row["password"]):
            logger.info("Failed login for %s", email)
            return None
        return _row_to_user(row)

    @classmethod
    async def get_user(cls, user_id: int) -> UserRead:
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError(f"User {user_id} not found")
        return _row_to_user(row)

    @classmethod
    async def list_users(cls, role: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[UserRead]:
        conn = get_connection()
        try:
            query = f"SELECT {_USER_COLUMNS} FROM users"
            params: List[Any] = []
            if role:
                query += " WHERE role = ?"
                params.append(role)
            query += " ORDER BY id LIMIT ? OFFSET ?"
            params.extend([limit, offset])
            rows = conn.execute(query, tuple(params)).fetchall()
            return [_row_to_user(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def update_user(cls, user_id: int, updates: Dict[str, Any], acting_user_id: Optional[int] = None) -> UserRead:
        """Apply a partial update.

        ``password`` is re‑hashed; ``disabled`` is stored as an integer
        flag.  Raises ``NotFoundError`` if the user does not exist.
        """
        conn = get_connection()
        try:
            if not conn.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone():
                raise NotFoundError(f"User {user_id} not found")
            fields = []
            values: List[Any] = []
            for key, value in updates.items():
                if key == "password":
                    value = hash_password(value)
                elif isinstance(value, bool):
                    value = 1 if value else 0
                fields.append(f"{key} = ?")
                values.append(value)
            if fields:
                values.append(user_id)
                conn.execute(
                    f"UPDATE users SET {', '.join(fields)}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    tuple(values),
                )
                conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=acting_user_id,
            action="update",
            object_type="user",
            object_id=user_id,
            details={k: v for k, v in updates.items() if k != "password"},
        )
        return await cls.get_user(user_id)

    @classmethod
    async def delete_user(cls, user_id: int, acting_user_id: Optional[int] = None) -> None:
        """Delete a user; dependent rows are removed by foreign key cascades."""
        conn = get_connection()
        try:
            if not conn.execute("SELECT id FROM users WHERE id = ?", (user_id,)).fetchone():
                raise NotFoundError(f"User {user_id} not found")
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=acting_user_id,
            action="delete",
            object_type="user",
            object_id=user_id,
        )
