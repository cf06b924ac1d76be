"""
Pydantic models for user accounts.

Two account types can sign up on their own: event managers, who
create events and look for contractors, and contractors, who publish
a business profile.  Administrators are created by other
administrators.  Passwords are never returned through the API.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


SignupRole = Literal["event_manager", "contractor"]
Role = Literal["admin", "event_manager", "contractor"]


class UserBase(BaseModel):
    email: str = Field(..., examples=["host@example.co.nz"])
    full_name: Optional[str] = Field(None, examples=["Aroha Smith"])

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v


class UserCreate(UserBase):
    """Schema for registering a user."""

    password: str = Field(..., min_length=8, examples=["strongpassword"])
    role: SignupRole = "event_manager"


class UserLogin(BaseModel):
    email: str
    password: str


class UserUpdate(BaseModel):
    """Partial update.  ``role`` and ``disabled`` are admin‑only."""

    full_name: Optional[str] = None
    password: Optional[str] = Field(None, min_length=8)
    role: Optional[Role] = None
    disabled: Optional[bool] = None


class UserRead(UserBase):
    id: int
    role: Role
    disabled: bool = False

    model_config = {
        "from_attributes": True,
    }


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
