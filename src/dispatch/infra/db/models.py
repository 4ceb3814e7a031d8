from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from src.dispatch.domain.models.ambulance import Ambulance, AmbulanceStatus
from src.dispatch.domain.models.driver import Driver, DriverDetail
from src.dispatch.domain.models.geo import GeoPoint
from src.dispatch.domain.models.incident import Incident, IncidentDetail, IncidentStatus
from src.dispatch.domain.models.medic import Medic, MedicDetail
from src.dispatch.domain.models.user import User, UserRole, UserSummary


class Base(DeclarativeBase):
    pass


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    phone_number_1: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    phone_number_2: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)

    @classmethod
    def from_domain(cls, user: User) -> "UserORM":
        return cls(
            id=user.id,
            name=user.name,
            role=user.role.value,
            email=user.email,
            password_hash=user.password_hash,
            phone_number_1=user.phone_number_1,
            phone_number_2=user.phone_number_2,
        )

    def apply(self, user: User) -> None:
        self.name = user.name
        self.role = user.role.value
        self.email = user.email
        self.password_hash = user.password_hash
        self.phone_number_1 = user.phone_number_1
        self.phone_number_2 = user.phone_number_2

    def to_domain(self) -> User:
        return User(
            id=self.id,
            name=self.name,
            role=UserRole(self.role),
            email=self.email,
            password_hash=self.password_hash,
            phone_number_1=self.phone_number_1,
            phone_number_2=self.phone_number_2,
        )

    def to_summary(self) -> UserSummary:
        return UserSummary(
            id=self.id,
            name=self.name,
            email=self.email,
            phone_number_1=self.phone_number_1,
            phone_number_2=self.phone_number_2,
            role=UserRole(self.role),
        )


class AmbulanceORM(Base):
    __tablename__ = "ambulances"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    license_plate: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String, nullable=False)
    hospital_name: Mapped[str | None] = mapped_column(String, nullable=True)
    # Stored as separate columns; exposed as GeoJSON [longitude, latitude].
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)

    @classmethod
    def from_domain(cls, ambulance: Ambulance) -> "AmbulanceORM":
        orm = cls(id=ambulance.id)
        orm.apply(ambulance)
        return orm

    def apply(self, ambulance: Ambulance) -> None:
        self.license_plate = ambulance.license_plate
        self.status = ambulance.status.value
        self.hospital_name = ambulance.hospital_name
        self.longitude = ambulance.location.longitude
        self.latitude = ambulance.location.latitude

    def to_domain(self) -> Ambulance:
        return Ambulance(
            id=self.id,
            license_plate=self.license_plate,
            status=AmbulanceStatus(self.status),
            hospital_name=self.hospital_name,
            location=GeoPoint.from_lat_lng(self.latitude, self.longitude),
        )


class DriverORM(Base):
    __tablename__ = "drivers"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, unique=True)
    license_number: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    # One driver per ambulance.
    assigned_ambulance_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("ambulances.id"), nullable=True, unique=True
    )

    user: Mapped[Optional[UserORM]] = relationship(lazy="selectin")
    assigned_ambulance: Mapped[Optional[AmbulanceORM]] = relationship(lazy="selectin")

    @classmethod
    def from_domain(cls, driver: Driver) -> "DriverORM":
        return cls(
            id=driver.id,
            user_id=driver.user_id,
            license_number=driver.license_number,
            assigned_ambulance_id=driver.assigned_ambulance_id,
        )

    def apply(self, driver: Driver) -> None:
        self.license_number = driver.license_number
        self.assigned_ambulance_id = driver.assigned_ambulance_id

    def to_domain(self) -> Driver:
        return Driver(
            id=self.id,
            user_id=self.user_id,
            license_number=self.license_number,
            assigned_ambulance_id=self.assigned_ambulance_id,
        )

    def to_detail(self) -> DriverDetail:
        return DriverDetail(
            id=self.id,
            user=self.user.to_summary() if self.user is not None else None,
            license_number=self.license_number,
            assigned_ambulance=self.assigned_ambulance.to_domain() if self.assigned_ambulance is not None else None,
        )


class MedicORM(Base):
    __tablename__ = "medics"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Snapshot of the owner's primary phone at promotion; may go stale.
    phone: Mapped[str] = mapped_column(String, nullable=False)
    specialty: Mapped[str | None] = mapped_column(String, nullable=True)
    assigned_ambulance_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("ambulances.id"), nullable=True)

    user: Mapped[Optional[UserORM]] = relationship(lazy="selectin")
    assigned_ambulance: Mapped[Optional[AmbulanceORM]] = relationship(lazy="selectin")

    @classmethod
    def from_domain(cls, medic: Medic) -> "MedicORM":
        return cls(
            id=medic.id,
            user_id=medic.user_id,
            name=medic.name,
            phone=medic.phone,
            specialty=medic.specialty,
            assigned_ambulance_id=medic.assigned_ambulance_id,
        )

    def apply(self, medic: Medic) -> None:
        self.specialty = medic.specialty
        self.assigned_ambulance_id = medic.assigned_ambulance_id

    def to_domain(self) -> Medic:
        return Medic(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            phone=self.phone,
            specialty=self.specialty,
            assigned_ambulance_id=self.assigned_ambulance_id,
        )

    def to_detail(self) -> MedicDetail:
        return MedicDetail(
            id=self.id,
            user=self.user.to_summary() if self.user is not None else None,
            name=self.name,
            phone=self.phone,
            specialty=self.specialty,
            assigned_ambulance=self.assigned_ambulance.to_domain() if self.assigned_ambulance is not None else None,
        )


class IncidentORM(Base):
    __tablename__ = "incidents"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    user_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    phone: Mapped[str] = mapped_column(String, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    incident_type: Mapped[str] = mapped_column(String, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)
    reported_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    ambulance_id: Mapped[UUID | None] = mapped_column(Uuid, ForeignKey("ambulances.id"), nullable=True)

    user: Mapped[Optional[UserORM]] = relationship(lazy="selectin")
    ambulance: Mapped[Optional[AmbulanceORM]] = relationship(lazy="selectin")

    @classmethod
    def from_domain(cls, incident: Incident) -> "IncidentORM":
        orm = cls(
            id=incident.id,
            user_id=incident.user_id,
            phone=incident.phone,
            incident_type=incident.incident_type,
            priority=incident.priority,
            reported_time=incident.reported_time,
        )
        orm.apply(incident)
        return orm

    def apply(self, incident: Incident) -> None:
        self.longitude = incident.location.longitude
        self.latitude = incident.location.latitude
        self.status = incident.status.value
        self.ambulance_id = incident.ambulance_id

    def _reported_time_utc(self) -> datetime:
        # SQLite drops tzinfo on the way back out.
        if self.reported_time.tzinfo is None:
            return self.reported_time.replace(tzinfo=timezone.utc)
        return self.reported_time

    def to_domain(self) -> Incident:
        return Incident(
            id=self.id,
            user_id=self.user_id,
            phone=self.phone,
            location=GeoPoint.from_lat_lng(self.latitude, self.longitude),
            incident_type=self.incident_type,
            priority=self.priority,
            status=IncidentStatus(self.status),
            reported_time=self._reported_time_utc(),
            ambulance_id=self.ambulance_id,
        )

    def to_detail(self) -> IncidentDetail:
        return IncidentDetail(
            id=self.id,
            user=self.user.to_summary() if self.user is not None else None,
            phone=self.phone,
            location=GeoPoint.from_lat_lng(self.latitude, self.longitude),
            incident_type=self.incident_type,
            priority=self.priority,
            status=IncidentStatus(self.status),
            reported_time=self._reported_time_utc(),
            ambulance=self.ambulance.to_domain() if self.ambulance is not None else None,
        )
