"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API starts without any configuration; in a production deployment you
should at least override ``SECRET_KEY`` and ``DATABASE_URL``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "EventPros API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Optional static token for integrations (webhook receivers, admin
    # scripts).  Requests presenting it in the Authorization header are
    # treated as an ``admin`` without a user row.
    service_token: str = os.getenv("SERVICE_TOKEN", "")

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "eventpros.db")

    # Map clustering defaults.  ``cluster_radius_px`` is the on‑screen
    # radius that one grid cell spans; above ``cluster_max_zoom`` every
    # contractor is rendered as an individual pin.
    cluster_radius_px: int = int(os.getenv("CLUSTER_RADIUS_PX", "50"))
    cluster_max_zoom: int = int(os.getenv("CLUSTER_MAX_ZOOM", "14"))
    cluster_min_points: int = int(os.getenv("CLUSTER_MIN_POINTS", "2"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables must
# be set before importing this module.
settings = Settings()
