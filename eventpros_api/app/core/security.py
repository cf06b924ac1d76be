"""
Security helpers for password hashing and bearer token authentication.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC‑SHA256 signatures and base64url encoding.  Tokens embed
arbitrary claims and an expiration timestamp (``exp``).  A secret key
from the application settings is used to sign and verify the token.
Passwords are hashed with PBKDF2‑HMAC (SHA‑256) and a random salt.

Authorisation is role based: every user row carries a ``role`` column
(``admin``, ``event_manager`` or ``contractor``) and routes declare the
roles they accept through ``require_roles``.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_connection


logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_EVENT_MANAGER = "event_manager"
ROLE_CONTRACTOR = "contractor"
ROLES = (ROLE_ADMIN, ROLE_EVENT_MANAGER, ROLE_CONTRACTOR)

PBKDF2_ITERATIONS = 100_000


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field representing the
    expiration time as a UNIX timestamp.  Clients must include the
    token in the ``Authorization`` header as ``Bearer <token>``.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. ``{"sub": "user@example.com"}``).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A signed token of the form ``header.payload.signature``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": settings.algorithm, "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a token.

    Returns the payload dictionary if the signature is valid and the
    token has not expired, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    try:
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        expected_sig = _sign(signing_input, settings.secret_key)
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        # Malformed base64 or JSON
        return None
    if not isinstance(data, dict) or data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


security = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """Dependency that retrieves the current authenticated user.

    Raises 401 if the request carries no bearer token, the token is
    invalid or expired, or the user no longer exists or is disabled.
    On success returns the token payload extended with ``user_id`` and
    ``role``.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = credentials.credentials

    if settings.service_token and hmac.compare_digest(
        token.encode("utf-8"), settings.service_token.encode("utf-8")
    ):
        return {"sub": "service", "user_id": None, "role": ROLE_ADMIN}

    payload = decode_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    conn = get_connection()
    try:
        user_row = conn.execute(
            "SELECT id, role, disabled FROM users WHERE email = ?",
            (payload.get("sub"),),
        ).fetchone()
    finally:
        conn.close()
    if not user_row:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if user_row["disabled"]:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account disabled",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload["user_id"] = user_row["id"]
    payload["role"] = user_row["role"]
    return payload


# ---------------------------------------------------------------------------
# Role-based access control (RBAC) helpers
# ---------------------------------------------------------------------------

def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    """Dependency factory enforcing that the current user has one of ``roles``.

    Use in routes as ``Depends(require_roles("admin", "event_manager"))``.
    Raises 403 when the authenticated user's role is not listed.
    """

    def _role_dependency(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if current_user.get("role") not in roles:
            logger.info(
                "Denied %s (role %s); requires one of %s",
                current_user.get("sub"),
                current_user.get("role"),
                ", ".join(roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _role_dependency


def is_admin(current_user: Dict[str, Any]) -> bool:
    return current_user.get("role") == ROLE_ADMIN


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2‑HMAC with SHA‑256.

    Returns the hex salt and hex digest separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored ``salt$hash`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
