from __future__ import annotations

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr


class UserRole(str, Enum):
    ADMIN = "admin"
    DISPATCHER = "dispatcher"
    USER = "user"
    DRIVER = "driver"
    MEDIC = "medic"


class UserPublic(BaseModel):
    """Account fields that may be returned to API callers."""

    id: UUID
    name: str
    role: UserRole
    email: EmailStr
    phone_number_1: str
    phone_number_2: Optional[str] = None


class User(UserPublic):
    # Argon2 hash; never serialized into API responses.
    password_hash: str

    def to_public(self) -> UserPublic:
        return UserPublic.model_validate(self.model_dump(exclude={"password_hash"}))


class UserSummary(BaseModel):
    """Owning-user fields joined into driver, medic and incident views."""

    id: UUID
    name: str
    email: EmailStr
    phone_number_1: str
    phone_number_2: Optional[str] = None
    role: UserRole
