"""
User endpoints.

Provides routes for registering, logging in and managing accounts.
Sign‑up is open; everything else requires a bearer token obtained
from ``/users/login``.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from eventpros_api.app.core.errors import raise_http
from eventpros_api.app.core.security import (
    ROLE_ADMIN,
    create_access_token,
    get_current_user,
    is_admin,
    require_roles,
)
from eventpros_api.app.schemas.common import Envelope
from eventpros_api.app.schemas.user import Token, UserCreate, UserLogin, UserRead, UserUpdate
from eventpros_api.app.services.user_service import UserService


router = APIRouter()


@router.post("", response_model=Envelope[UserRead], status_code=status.HTTP_201_CREATED, summary="Register a new user")
async def create_user(user: UserCreate) -> Dict[str, Any]:
    """Register an event manager or contractor account.

    The first account registered on a fresh database becomes the
    administrator.
    """
    try:
        created = await UserService.create_user(user)
    except ValueError as e:
        raise_http(e)
    return {"data": created, "message": "User registered"}


@router.post("/login", response_model=Envelope[Token], summary="Obtain an access token")
async def login(credentials: UserLogin) -> Dict[str, Any]:
    user = await UserService.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"data": Token(access_token=token)}


@router.get("/me", response_model=Envelope[UserRead], summary="Current user")
async def read_current_user(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    if current_user.get("user_id") is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service token has no user account")
    try:
        return {"data": await UserService.get_user(current_user["user_id"])}
    except ValueError as e:
        raise_http(e)


@router.get("", response_model=Envelope[List[UserRead]], summary="List users")
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> Dict[str, Any]:
    return {"data": await UserService.list_users(role=role, limit=limit, offset=offset)}


@router.put("/{user_id}", response_model=Envelope[UserRead], summary="Update a user")
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Update an account.

    Users may change their own name and password.  Changing another
    account, a role or the ``disabled`` flag requires an administrator.
    """
    updates = data.model_dump(exclude_unset=True)
    if not is_admin(current_user):
        if current_user.get("user_id") != user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        if "role" in updates or "disabled" in updates:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only administrators can change roles")
    try:
        updated = await UserService.update_user(user_id, updates, acting_user_id=current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": updated, "message": "User updated"}


@router.delete("/{user_id}", response_model=Envelope[dict], summary="Delete a user")
async def delete_user(user_id: int, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> Dict[str, Any]:
    if current_user.get("user_id") == user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Administrators cannot delete themselves")
    try:
        await UserService.delete_user(user_id, acting_user_id=current_user.get("user_id"))
    except ValueError as e:
        raise_http(e)
    return {"data": {"id": user_id}, "message": "User deleted"}
