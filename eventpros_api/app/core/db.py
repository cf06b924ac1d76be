"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a cursor context manager (``get_cursor``) and
applying migrations on application start (``init_db``).  SQLite
stands in for the hosted Postgres database of the production
deployment; to switch to another DBMS you would replace the
connection logic and adapt SQL syntax accordingly.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional

from .config import settings


logger = logging.getLogger(__name__)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # eventpros_api/
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is switched on for every
    connection because SQLite leaves it off by default.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def dump_json(value: Any) -> Optional[str]:
    """Serialise a list/dict column value; ``None`` stays ``NULL``."""
    if value is None:
        return None
    return json.dumps(value)


def load_json(raw: Optional[str], default: Any = None) -> Any:
    """Parse a JSON text column, returning ``default`` for NULL or bad data."""
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed JSON column value: %r", raw)
        return default


MIGRATIONS: List[tuple] = [
    # Migration 1: accounts, contractors and events
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            full_name TEXT,
            password TEXT,
            role TEXT NOT NULL DEFAULT 'event_manager',
            disabled INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS business_profiles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL UNIQUE,
            company_name TEXT NOT NULL,
            description TEXT,
            business_address TEXT,
            subscription_tier TEXT NOT NULL DEFAULT 'essential',
            is_verified INTEGER NOT NULL DEFAULT 0,
            service_categories TEXT,
            service_areas TEXT,
            latitude REAL,
            longitude REAL,
            average_rating REAL DEFAULT 0,
            review_count INTEGER DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS services (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            contractor_id INTEGER NOT NULL,
            service_type TEXT NOT NULL,
            description TEXT,
            price_range_min REAL,
            price_range_max REAL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(contractor_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS contractor_performance (
            contractor_id INTEGER PRIMARY KEY,
            response_time_hours REAL,
            reliability_score REAL,
            quality_score REAL,
            communication_score REAL,
            overall_performance_score REAL,
            total_projects INTEGER NOT NULL DEFAULT 0,
            successful_projects INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(contractor_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS contractor_availability (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            contractor_id INTEGER NOT NULL,
            event_date TEXT NOT NULL,
            is_available INTEGER NOT NULL DEFAULT 1,
            UNIQUE(contractor_id, event_date),
            FOREIGN KEY(contractor_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            event_type TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            event_date TEXT NOT NULL,
            duration_hours REAL,
            attendee_count INTEGER,
            address TEXT,
            region TEXT,
            latitude REAL,
            longitude REAL,
            budget_total REAL DEFAULT 0,
            service_requirements TEXT,
            status TEXT NOT NULL DEFAULT 'draft',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            action TEXT NOT NULL,
            object_type TEXT,
            object_id INTEGER,
            timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            details TEXT
        );
        """,
    ),
    # Migration 2: budget planning
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS service_budget_breakdown (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL,
            service_category TEXT NOT NULL,
            estimated_cost REAL NOT NULL DEFAULT 0,
            adjustment_reason TEXT,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(event_id, service_category),
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS budget_tracking (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_id INTEGER NOT NULL,
            service_category TEXT NOT NULL,
            estimated_cost REAL NOT NULL DEFAULT 0,
            actual_cost REAL NOT NULL DEFAULT 0,
            variance REAL NOT NULL DEFAULT 0,
            tracking_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(event_id, service_category),
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS budget_feedback (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            event_id INTEGER,
            event_type TEXT NOT NULL,
            service_category TEXT NOT NULL,
            recommended_amount REAL,
            actual_amount REAL,
            rating INTEGER,
            comment TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE SET NULL
        );
        """,
    ),
    # Migration 3: matching feedback, testimonials and onboarding
    (
        3,
        """
        CREATE TABLE IF NOT EXISTS match_feedback (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            event_id INTEGER NOT NULL,
            contractor_id INTEGER NOT NULL,
            feedback_type TEXT NOT NULL,
            rating INTEGER,
            comment TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE,
            FOREIGN KEY(contractor_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS testimonials (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            contractor_id INTEGER NOT NULL,
            event_manager_id INTEGER NOT NULL,
            event_id INTEGER,
            rating INTEGER NOT NULL,
            comment TEXT,
            is_approved INTEGER NOT NULL DEFAULT 0,
            moderated_by INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(contractor_id, event_manager_id, event_id),
            FOREIGN KEY(contractor_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(event_manager_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS onboarding_status (
            user_id INTEGER PRIMARY KEY,
            step1_completed INTEGER NOT NULL DEFAULT 0,
            step2_completed INTEGER NOT NULL DEFAULT 0,
            step3_completed INTEGER NOT NULL DEFAULT 0,
            step4_completed INTEGER NOT NULL DEFAULT 0,
            is_submitted INTEGER NOT NULL DEFAULT 0,
            approved_at TIMESTAMP,
            approved_by INTEGER,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """,
    ),
    # Migration 4: lookup indices
    (
        4,
        """
        CREATE INDEX IF NOT EXISTS idx_services_contractor_id ON services(contractor_id);
        CREATE INDEX IF NOT EXISTS idx_events_user_id ON events(user_id);
        CREATE INDEX IF NOT EXISTS idx_testimonials_contractor_id ON testimonials(contractor_id);
        CREATE INDEX IF NOT EXISTS idx_audit_logs_object ON audit_logs(object_type, object_id);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  To add a migration, append it with an incremented
    version number.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.info("Applying database migration %s", version)
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
