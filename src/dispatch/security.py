from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from src.dispatch.config import settings
from src.dispatch.domain.models.user import User, UserRole
from src.dispatch.errors import AuthenticationFailed, PermissionDenied, TokenExpired
from src.dispatch.infra.db.session import get_session
from src.dispatch.infra.db.sql_users import SqlUserRepository

logger = logging.getLogger(__name__)

# Argon2 is memory-hard; passlib handles salt generation and encoding.
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# auto_error is off so a missing header maps onto our own 401 envelope.
_bearer_scheme = HTTPBearer(auto_error=False)

# Id of the authenticated principal for the in-flight request, used as the
# audit subject.
_current_subject: ContextVar[Optional[str]] = ContextVar("current_subject", default=None)


def get_current_subject() -> Optional[str]:
    """Return the current principal id, if the request is authenticated."""

    return _current_subject.get()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Malformed or unrecognized hash.
        return False


def create_access_token(user: User, *, expires_in: Optional[timedelta] = None) -> str:
    """Issue a signed session credential for ``user``.

    Claims: ``sub`` (user id), ``role`` (role at issue time), ``iat``, ``exp``.
    The role claim is informational only; authorization always re-reads the
    stored account.
    """

    now = datetime.now(timezone.utc)
    lifetime = expires_in if expires_in is not None else timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user.id),
        "role": user.role.value,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected session credential: %s", exc)
        raise AuthenticationFailed()

    try:
        payload["sub"] = UUID(str(payload["sub"]))
    except ValueError:
        raise AuthenticationFailed()
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    session: Session = Depends(get_session),
) -> User:
    """Resolve the authenticated principal from the bearer credential.

    The principal is re-fetched on every request so role changes and account
    deletion take effect immediately, whatever the credential claims. The
    lookup runs in the threadpool; the dependency itself stays on the event
    loop so the audit subject it sets is visible to the route handler.
    """

    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed("Access denied. No token provided.")

    payload = decode_access_token(credentials.credentials)
    user = await run_in_threadpool(SqlUserRepository(session).get, payload["sub"])
    if user is None:
        raise AuthenticationFailed("User not found. Invalid token.")

    _current_subject.set(str(user.id))
    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    ensure_is_admin(current_user)
    return current_user


def ensure_has_role(user: User, *roles: UserRole) -> None:
    """Raise 403 unless the user's stored role is one of ``roles``."""

    if user.role in roles:
        return
    allowed = ", ".join(role.value for role in roles)
    raise PermissionDenied(f"Access denied. Requires role: {allowed}.")


def ensure_is_admin(user: User) -> None:
    if user.role == UserRole.ADMIN:
        return
    raise PermissionDenied("Access denied. Admins only.")


def ensure_is_admin_or_self(user: User, owner_id: UUID) -> None:
    """Raise 403 unless the user is an admin or owns the resource."""

    if user.role == UserRole.ADMIN or user.id == owner_id:
        return
    raise PermissionDenied()
