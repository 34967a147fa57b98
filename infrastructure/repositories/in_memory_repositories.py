"""In-Memory Repository Implementations

Entities are stored as document records (see ``records``) and rebuilt on
every read, so callers never share mutable state with the store.
"""
import asyncio
import operator
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from domain import availability
from domain.entities import Notification, Reservation
from domain.errors import (
    AvailabilityConflictError, NotificationNotFoundError, ReservationNotFoundError
)
from domain.repositories import Condition, NotificationRepository, ReservationRepository
from domain.value_objects import cabin_display_name
from infrastructure.repositories.records import (
    normalize_notification_record, normalize_reservation_record,
    notification_to_record, reservation_to_record
)

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _stored_form(value: Any) -> Any:
    """Encode a filter value the way records store it"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    return value


def _matches(record: Dict[str, Any], conditions) -> bool:
    for condition in conditions:
        stored = record.get(condition.field)
        expected = _stored_form(condition.value)
        if condition.op not in ("==", "!=") and (stored is None or expected is None):
            return False
        if isinstance(stored, str) and isinstance(expected, (int, float)):
            stored = Decimal(stored)
            expected = Decimal(str(expected))
        if not _OPERATORS[condition.op](stored, expected):
            return False
    return True


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository"""

    def __init__(self):
        self._storage: Dict[str, Dict[str, Any]] = {}
        self._write_lock = asyncio.Lock()

    async def save(self, reservation: Reservation) -> Reservation:
        """Save reservation to memory"""
        self._storage[str(reservation.reservation_id)] = reservation_to_record(reservation)
        return normalize_reservation_record(self._storage[str(reservation.reservation_id)])

    async def update(self, reservation_id: UUID, changes: Dict[str, Any]) -> Reservation:
        """Update reservation fields"""
        key = str(reservation_id)
        if key not in self._storage:
            raise ReservationNotFoundError(reservation_id)
        current = normalize_reservation_record(self._storage[key])
        updated = current.model_copy(update=changes)
        self._storage[key] = reservation_to_record(updated)
        return normalize_reservation_record(self._storage[key])

    async def delete(self, reservation_id: UUID) -> bool:
        """Delete reservation"""
        return self._storage.pop(str(reservation_id), None) is not None

    async def find_by_id(self, reservation_id: UUID) -> Optional[Reservation]:
        """Find reservation by ID"""
        record = self._storage.get(str(reservation_id))
        return normalize_reservation_record(record) if record else None

    async def find_all(self) -> List[Reservation]:
        """Find all reservations"""
        return [normalize_reservation_record(r) for r in self._storage.values()]

    async def find_where(self, *conditions: Condition) -> List[Reservation]:
        """Find reservations matching every condition"""
        return [
            normalize_reservation_record(r)
            for r in self._storage.values()
            if _matches(r, conditions)
        ]

    async def insert_if_available(self, reservation: Reservation) -> Reservation:
        """Insert reservation unless its cabin is taken for the range"""
        async with self._write_lock:
            self._ensure_available(reservation)
            return await self.save(reservation)

    async def update_if_available(self, reservation: Reservation) -> Reservation:
        """Replace reservation unless the new range collides with another stay"""
        async with self._write_lock:
            if str(reservation.reservation_id) not in self._storage:
                raise ReservationNotFoundError(reservation.reservation_id)
            self._ensure_available(reservation, exclude_reservation_id=reservation.reservation_id)
            return await self.save(reservation)

    def load_records(self, records: List[Dict[str, Any]]) -> None:
        """Seed the store with raw documents, e.g. an export of older data"""
        for record in records:
            reservation = normalize_reservation_record(record)
            self._storage[str(reservation.reservation_id)] = reservation_to_record(reservation)

    def _ensure_available(
        self, reservation: Reservation, exclude_reservation_id: Optional[UUID] = None
    ) -> None:
        same_cabin = [
            normalize_reservation_record(r)
            for r in self._storage.values()
            if r["cabin_id"] == reservation.cabin_id.value
        ]
        result = availability.check_availability(
            same_cabin,
            reservation.cabin_id,
            reservation.check_in,
            reservation.check_out,
            exclude_reservation_id
        )
        if not result.available:
            raise AvailabilityConflictError(
                f"{cabin_display_name(reservation.cabin_id)} is not available from "
                f"{reservation.check_in} to {reservation.check_out}; "
                f"next available check-in is {result.next_available_date}",
                cabin_id=reservation.cabin_id,
                next_available_date=result.next_available_date,
                field="date_range",
                requested=(reservation.check_in, reservation.check_out)
            )


class InMemoryNotificationRepository(NotificationRepository):
    """In-memory implementation of NotificationRepository"""

    def __init__(self):
        self._storage: Dict[str, Dict[str, Any]] = {}

    async def save(self, notification: Notification) -> Notification:
        """Save notification to memory"""
        key = str(notification.notification_id)
        self._storage[key] = notification_to_record(notification)
        return normalize_notification_record(self._storage[key])

    async def update(self, notification_id: UUID, changes: Dict[str, Any]) -> Notification:
        """Update notification fields"""
        key = str(notification_id)
        if key not in self._storage:
            raise NotificationNotFoundError(notification_id)
        current = normalize_notification_record(self._storage[key])
        updated = current.model_copy(update=changes)
        self._storage[key] = notification_to_record(updated)
        return normalize_notification_record(self._storage[key])

    async def delete(self, notification_id: UUID) -> bool:
        """Delete notification"""
        return self._storage.pop(str(notification_id), None) is not None

    async def find_by_id(self, notification_id: UUID) -> Optional[Notification]:
        """Find notification by ID"""
        record = self._storage.get(str(notification_id))
        return normalize_notification_record(record) if record else None

    async def find_all(self) -> List[Notification]:
        """Find all notifications"""
        return [normalize_notification_record(r) for r in self._storage.values()]

    async def find_where(self, *conditions: Condition) -> List[Notification]:
        """Find notifications matching every condition"""
        return [
            normalize_notification_record(r)
            for r in self._storage.values()
            if _matches(_flatten_metadata(r), conditions)
        ]


def _flatten_metadata(record: Dict[str, Any]) -> Dict[str, Any]:
    """Expose ``metadata`` entries as ``metadata.<key>`` filter fields"""
    flat = dict(record)
    for key, value in (record.get("metadata") or {}).items():
        flat[f"metadata.{key}"] = value
    return flat
