from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from src.dispatch.domain.models.user import User
from src.dispatch.infra.db.models import UserORM
from src.dispatch.infra.db.repositories import UserRepository


class SqlUserRepository(UserRepository):
    """SQL-backed UserRepository.

    Operates on the caller's session and never commits; the owning service
    decides when the unit of work ends.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: UUID) -> Optional[User]:
        orm = self._session.get(UserORM, user_id)
        return orm.to_domain() if orm is not None else None

    def get_by_email(self, email: str) -> Optional[User]:
        orm = self._session.scalars(select(UserORM).where(UserORM.email == email)).first()
        return orm.to_domain() if orm is not None else None

    def email_taken(self, email: str, *, exclude_id: Optional[UUID] = None) -> bool:
        query = select(UserORM.id).where(UserORM.email == email)
        if exclude_id is not None:
            query = query.where(UserORM.id != exclude_id)
        return self._session.scalars(query).first() is not None

    def phone_taken(self, phone: str, *, exclude_id: Optional[UUID] = None) -> bool:
        query = select(UserORM.id).where(or_(UserORM.phone_number_1 == phone, UserORM.phone_number_2 == phone))
        if exclude_id is not None:
            query = query.where(UserORM.id != exclude_id)
        return self._session.scalars(query).first() is not None

    def list_all(self) -> List[User]:
        return [orm.to_domain() for orm in self._session.scalars(select(UserORM).order_by(UserORM.name))]

    def save(self, user: User) -> None:
        existing = self._session.get(UserORM, user.id)
        if existing is None:
            self._session.add(UserORM.from_domain(user))
        else:
            existing.apply(user)

    def delete(self, user_id: UUID) -> bool:
        result = self._session.execute(delete(UserORM).where(UserORM.id == user_id))
        return result.rowcount > 0
