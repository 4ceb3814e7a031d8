from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from uuid import UUID

from src.dispatch.domain.models.ambulance import Ambulance, AmbulanceStatus
from src.dispatch.domain.models.driver import Driver, DriverDetail
from src.dispatch.domain.models.incident import Incident, IncidentDetail, IncidentStatus
from src.dispatch.domain.models.medic import Medic, MedicDetail
from src.dispatch.domain.models.user import User


class UserRepository(ABC):
    @abstractmethod
    def get(self, user_id: UUID) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def email_taken(self, email: str, *, exclude_id: Optional[UUID] = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def phone_taken(self, phone: str, *, exclude_id: Optional[UUID] = None) -> bool:
        """True if ``phone`` is the primary or secondary phone of another account."""
        raise NotImplementedError

    @abstractmethod
    def list_all(self) -> List[User]:
        raise NotImplementedError

    @abstractmethod
    def save(self, user: User) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, user_id: UUID) -> bool:
        raise NotImplementedError


class DriverRepository(ABC):
    @abstractmethod
    def get(self, driver_id: UUID) -> Optional[Driver]:
        raise NotImplementedError

    @abstractmethod
    def get_detail(self, driver_id: UUID) -> Optional[DriverDetail]:
        raise NotImplementedError

    @abstractmethod
    def get_by_user(self, user_id: UUID) -> Optional[Driver]:
        raise NotImplementedError

    @abstractmethod
    def license_taken(self, license_number: str, *, exclude_id: Optional[UUID] = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_by_ambulance(self, ambulance_id: UUID) -> Optional[Driver]:
        raise NotImplementedError

    @abstractmethod
    def list_details(self) -> List[DriverDetail]:
        raise NotImplementedError

    @abstractmethod
    def save(self, driver: Driver) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, driver_id: UUID) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete_for_user(self, user_id: UUID) -> int:
        raise NotImplementedError

    @abstractmethod
    def unassign_ambulance(self, ambulance_id: UUID) -> int:
        raise NotImplementedError


class MedicRepository(ABC):
    @abstractmethod
    def get(self, medic_id: UUID) -> Optional[Medic]:
        raise NotImplementedError

    @abstractmethod
    def get_detail(self, medic_id: UUID) -> Optional[MedicDetail]:
        raise NotImplementedError

    @abstractmethod
    def get_by_user(self, user_id: UUID) -> Optional[Medic]:
        raise NotImplementedError

    @abstractmethod
    def list_details(self) -> List[MedicDetail]:
        raise NotImplementedError

    @abstractmethod
    def save(self, medic: Medic) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, medic_id: UUID) -> bool:
        raise NotImplementedError

    @abstractmethod
    def delete_for_user(self, user_id: UUID) -> int:
        raise NotImplementedError

    @abstractmethod
    def unassign_ambulance(self, ambulance_id: UUID) -> int:
        raise NotImplementedError


class AmbulanceRepository(ABC):
    @abstractmethod
    def get(self, ambulance_id: UUID) -> Optional[Ambulance]:
        raise NotImplementedError

    @abstractmethod
    def plate_taken(self, license_plate: str, *, exclude_id: Optional[UUID] = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    def list_by_filters(self, *, status: Optional[AmbulanceStatus] = None) -> Iterable[Ambulance]:
        raise NotImplementedError

    @abstractmethod
    def save(self, ambulance: Ambulance) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, ambulance_id: UUID) -> bool:
        raise NotImplementedError


class IncidentRepository(ABC):
    @abstractmethod
    def get(self, incident_id: UUID) -> Optional[Incident]:
        raise NotImplementedError

    @abstractmethod
    def get_detail(self, incident_id: UUID) -> Optional[IncidentDetail]:
        raise NotImplementedError

    @abstractmethod
    def list_by_filters(
        self,
        *,
        user_id: Optional[UUID] = None,
        status: Optional[IncidentStatus] = None,
    ) -> Iterable[IncidentDetail]:
        """Yield incidents newest first."""
        raise NotImplementedError

    @abstractmethod
    def save(self, incident: Incident) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, incident_id: UUID) -> bool:
        raise NotImplementedError

    @abstractmethod
    def detach_user(self, user_id: UUID) -> int:
        raise NotImplementedError

    @abstractmethod
    def detach_ambulance(self, ambulance_id: UUID) -> int:
        raise NotImplementedError
