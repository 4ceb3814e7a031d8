from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from src.dispatch.api.v1.envelopes import MessageResponse
from src.dispatch.domain.models.user import User, UserPublic, UserRole
from src.dispatch.infra.db.session import get_session
from src.dispatch.security import (
    ensure_is_admin,
    ensure_is_admin_or_self,
    get_current_admin,
    get_current_user,
)
from src.dispatch.services.users.service import UserService


router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    role: UserRole
    email: EmailStr
    password: str = Field(..., min_length=1)
    phone_number_1: str = Field(..., min_length=1)
    phone_number_2: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    phone_number_1: Optional[str] = Field(None, min_length=1)
    phone_number_2: Optional[str] = None


class LoginUser(BaseModel):
    id: UUID
    name: str
    role: UserRole
    email: EmailStr


class LoginResponse(BaseModel):
    message: str
    token: str
    user: LoginUser


class UserEnvelope(BaseModel):
    message: str
    user: UserPublic


class UserListEnvelope(BaseModel):
    message: str
    users: List[UserPublic]


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def register_user(
    payload: RegisterRequest,
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    user = users.register(
        name=payload.name,
        role=payload.role,
        email=payload.email,
        password=payload.password,
        phone_number_1=payload.phone_number_1,
        phone_number_2=payload.phone_number_2,
    )
    return UserEnvelope(message="User registered successfully", user=user.to_public())


@router.post("/login", response_model=LoginResponse)
def login_user(
    payload: LoginRequest,
    users: UserService = Depends(get_user_service),
) -> LoginResponse:
    token, user = users.authenticate(email=payload.email, password=payload.password)
    return LoginResponse(
        message="Login successful",
        token=token,
        user=LoginUser(id=user.id, name=user.name, role=user.role, email=user.email),
    )


@router.get("", response_model=UserListEnvelope)
def list_users(
    _: User = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
) -> UserListEnvelope:
    return UserListEnvelope(
        message="Users retrieved successfully",
        users=[user.to_public() for user in users.list_users()],
    )


@router.get("/me", response_model=UserEnvelope)
async def get_me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(message="User retrieved successfully", user=current_user.to_public())


@router.put("/me", response_model=UserEnvelope)
def update_me(
    payload: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    changes = payload.model_dump(exclude_unset=True)
    if "role" in changes and changes["role"] != current_user.role:
        # Only admins may change a role, including their own.
        ensure_is_admin(current_user)
    updated = users.update_user(current_user.id, changes)
    return UserEnvelope(message="User updated successfully.", user=updated.to_public())


@router.get("/{user_id}", response_model=UserEnvelope)
def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    ensure_is_admin_or_self(current_user, user_id)
    return UserEnvelope(message="User retrieved successfully", user=users.get_user(user_id).to_public())


@router.put("/{user_id}", response_model=UserEnvelope)
def update_user(
    user_id: UUID,
    payload: UserUpdateRequest,
    _: User = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    updated = users.update_user(user_id, payload.model_dump(exclude_unset=True))
    return UserEnvelope(message="User updated successfully.", user=updated.to_public())


@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: UUID,
    _: User = Depends(get_current_admin),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    users.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")
