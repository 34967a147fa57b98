"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, validator

from domain.entities import Notification, Reservation

OPERATORS = ("==", "!=", "<", "<=", ">", ">=")


class Condition(BaseModel):
    """Field filter evaluated by ``find_where``"""
    field: str
    op: str = "=="
    value: Any = None

    @validator('op')
    def op_supported(cls, v):
        if v not in OPERATORS:
            raise ValueError(f"Unsupported operator {v!r}; expected one of {', '.join(OPERATORS)}")
        return v

    class Config:
        frozen = True


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Insert reservation"""
        pass

    @abstractmethod
    async def update(self, reservation_id: UUID, changes: Dict[str, Any]) -> Reservation:
        """Apply a partial update and return the stored reservation"""
        pass

    @abstractmethod
    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        pass

    @abstractmethod
    async def find_where(self, *conditions: Condition) -> List[Reservation]:
        """Find reservations matching every condition"""
        pass

    @abstractmethod
    async def insert_if_available(self, reservation: Reservation) -> Reservation:
        """Insert only if no same-cabin reservation overlaps; raises AvailabilityConflictError"""
        pass

    @abstractmethod
    async def update_if_available(self, reservation: Reservation) -> Reservation:
        """Replace only if the new range overlaps no other same-cabin reservation"""
        pass


class NotificationRepository(ABC):
    """Repository interface for Notification Aggregate"""

    @abstractmethod
    async def save(self, notification: Notification) -> Notification:
        """Insert notification"""
        pass

    @abstractmethod
    async def update(self, notification_id: UUID, changes: Dict[str, Any]) -> Notification:
        """Apply a partial update and return the stored notification"""
        pass

    @abstractmethod
    async def delete(self, notification_id: UUID) -> bool:
        """Delete notification"""
        pass

    @abstractmethod
    async def find_by_id(self, notification_id: UUID) -> Optional[Notification]:
        """Find notification by ID"""
        pass

    @abstractmethod
    async def find_all(self) -> List[Notification]:
        """Find all notifications"""
        pass

    @abstractmethod
    async def find_where(self, *conditions: Condition) -> List[Notification]:
        """Find notifications matching every condition"""
        pass
