"""
FittedIn Backend — User, Auth and Profile Schemas
==================================================

What:  Pydantic models for registration/login, the user's own account and
       the public view of other users.
Why separate from ORM models: `password_hash` and `is_seeded` never leave
       the server except through the schemas that name them.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl, field_validator

from fittedin.models.profile import FitnessLevel
from fittedin.security import BCRYPT_MAX_PASSWORD_BYTES, password_fits_bcrypt


# ══════════════════════════════════════════════════════════════════════════
# Profiles
# ══════════════════════════════════════════════════════════════════════════


class ProfileSummary(BaseModel):
    """Counterpart profile fields shown next to a user in lists."""
    bio: Optional[str] = None
    location: Optional[str] = None
    fitness_level: Optional[str] = None
    primary_goals: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ProfileResponse(ProfileSummary):
    user_id: uuid.UUID
    updated_at: datetime


class ProfileUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    bio: Optional[str] = Field(default=None, max_length=2000)
    location: Optional[str] = Field(default=None, max_length=100)
    fitness_level: Optional[FitnessLevel] = None
    primary_goals: Optional[List[str]] = Field(default=None, max_length=20)


class UserSummary(BaseModel):
    """Name and avatar shown next to a post, comment, goal or activity."""
    id: uuid.UUID
    display_name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}


class PublicProfileResponse(ProfileResponse):
    """Another user's profile together with who they are."""
    user: UserSummary


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


class PublicUser(BaseModel):
    """What other users may see of an account."""
    id: uuid.UUID
    display_name: str
    email: str
    avatar_url: Optional[str] = None
    profile: Optional[ProfileSummary] = None

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """The acting user's own account."""
    id: uuid.UUID
    email: str
    display_name: str
    avatar_url: Optional[str] = None
    is_seeded: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdateRequest(BaseModel):
    """Partial account update; at least one field must be sent."""
    display_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    avatar_url: Optional[HttpUrl] = None

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if len(stripped) < 2:
            raise ValueError("display_name must contain at least 2 non-blank characters")
        return stripped


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════


def _password_within_bcrypt_limit(v: str) -> str:
    if not password_fits_bcrypt(v):
        raise ValueError(
            f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes when UTF-8 encoded"
        )
    return v


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    display_name: str = Field(min_length=2, max_length=100)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, v: str) -> str:
        return _password_within_bcrypt_limit(v)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str) -> str:
        stripped = v.strip()
        if len(stripped) < 2:
            raise ValueError("display_name must contain at least 2 non-blank characters")
        return stripped


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, v: str) -> str:
        return _password_within_bcrypt_limit(v)


class TokenResponse(BaseModel):
    """Returned by register and login."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
