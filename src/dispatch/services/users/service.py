from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from src.dispatch.domain.models.user import User, UserRole
from src.dispatch.errors import AuthenticationFailed, Conflict, NotFound, ValidationFailed
from src.dispatch.infra.db.session import commit
from src.dispatch.infra.db.sql_incidents import SqlIncidentRepository
from src.dispatch.infra.db.sql_roles import SqlDriverRepository, SqlMedicRepository
from src.dispatch.infra.db.sql_users import SqlUserRepository
from src.dispatch.security import create_access_token, hash_password, verify_password
from src.dispatch.services.audit.service import audit_service

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "role", "phone_number_1", "phone_number_2")
REQUIRED_FIELDS = ("name", "email", "role", "phone_number_1")


class UserService:
    """User directory: registration, login, profile updates and deletion."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._users = SqlUserRepository(session)

    def register(
        self,
        *,
        name: str,
        role: UserRole,
        email: str,
        password: str,
        phone_number_1: str,
        phone_number_2: Optional[str] = None,
    ) -> User:
        if self._users.email_taken(email):
            raise Conflict("Email already in use")
        if self._users.phone_taken(phone_number_1):
            raise Conflict("Primary phone number already in use")
        if phone_number_2:
            if phone_number_2 == phone_number_1 or self._users.phone_taken(phone_number_2):
                raise Conflict("Secondary phone number already in use")

        user = User(
            id=uuid4(),
            name=name,
            role=role,
            email=email,
            password_hash=hash_password(password),
            phone_number_1=phone_number_1,
            phone_number_2=phone_number_2 or None,
        )
        self._users.save(user)
        commit(self._session)

        audit_service.log_event(
            action="register_user",
            resource_type="user",
            resource_id=str(user.id),
            subject=str(user.id),
            extra={"role": user.role.value},
        )
        return user

    def authenticate(self, *, email: str, password: str) -> Tuple[str, User]:
        """Return a session credential and the account for valid credentials.

        Unknown email and wrong password fail identically.
        """

        user = self._users.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationFailed("Invalid email or password")

        token = create_access_token(user)
        audit_service.log_event(
            action="login",
            resource_type="user",
            resource_id=str(user.id),
            subject=str(user.id),
        )
        return token, user

    def list_users(self) -> List[User]:
        return self._users.list_all()

    def get_user(self, user_id: UUID) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    def update_user(self, user_id: UUID, changes: Dict[str, Any]) -> User:
        """Apply a partial update.

        Only keys present in ``changes`` are touched. Changed email and phone
        numbers are re-checked against every other account.
        """

        changes = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if not changes:
            raise ValidationFailed("Provide at least one field to update.")
        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationFailed(f"{field} cannot be empty")

        user = self.get_user(user_id)

        email = changes.get("email")
        if email is not None and email != user.email and self._users.email_taken(email, exclude_id=user.id):
            raise Conflict("Email already in use.")

        for field in ("phone_number_1", "phone_number_2"):
            phone = changes.get(field)
            if phone is not None and phone != getattr(user, field):
                if self._users.phone_taken(phone, exclude_id=user.id):
                    raise Conflict("Phone number already in use.")

        updated = user.model_copy(update=changes)
        if updated.phone_number_2 is not None and updated.phone_number_2 == updated.phone_number_1:
            raise Conflict("Phone number already in use.")

        self._users.save(updated)
        commit(self._session)

        audit_service.log_event(
            action="update_user",
            resource_type="user",
            resource_id=str(user.id),
            extra={"fields": sorted(changes)},
        )
        if "role" in changes and updated.role != user.role:
            logger.info("Role of user %s changed from %s to %s", user.id, user.role.value, updated.role.value)
        return updated

    def delete_user(self, user_id: UUID) -> None:
        """Delete an account.

        Driver and medic records owned by the account are removed and its
        incidents lose their reporter reference, all in the same transaction.
        """

        if self._users.get(user_id) is None:
            raise NotFound("User not found")

        drivers_removed = SqlDriverRepository(self._session).delete_for_user(user_id)
        medics_removed = SqlMedicRepository(self._session).delete_for_user(user_id)
        incidents_detached = SqlIncidentRepository(self._session).detach_user(user_id)
        self._users.delete(user_id)
        commit(self._session)

        audit_service.log_event(
            action="delete_user",
            resource_type="user",
            resource_id=str(user_id),
            extra={
                "drivers_removed": drivers_removed,
                "medics_removed": medics_removed,
                "incidents_detached": incidents_detached,
            },
        )
