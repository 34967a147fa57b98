"""Domain Errors

Every error subclasses ``ValueError`` so callers that only distinguish
"bad request" from "infrastructure failure" keep working, while callers that
care can catch the specific kind.
"""
from datetime import date
from typing import Any, Optional
from uuid import UUID


class DomainError(ValueError):
    """Base class for expected, user-actionable domain errors"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        current: Any = None,
        requested: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.current = current
        self.requested = requested

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "field": self.field,
            "current": _jsonable(self.current),
            "requested": _jsonable(self.requested),
        }


class DomainValidationError(DomainError):
    """Malformed request; correct the named field and resubmit"""


class ReservationValidationError(DomainValidationError):
    """Bad date window or other malformed reservation request"""


class CapacityExceededError(ReservationValidationError):
    """Guests exceed the cabin's maximum occupancy"""


class PaymentRejectedError(DomainValidationError):
    """Non-positive payment or payment above the remaining balance"""


class AvailabilityConflictError(DomainError):
    """Cabin already booked for an overlapping date range"""

    def __init__(self, message: str, cabin_id: Any, next_available_date: Optional[date], **kwargs):
        super().__init__(message, **kwargs)
        self.cabin_id = cabin_id
        self.next_available_date = next_available_date

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["cabin_id"] = _jsonable(self.cabin_id)
        data["next_available_date"] = _jsonable(self.next_available_date)
        return data


class InvalidStateTransitionError(DomainError):
    """Illegal lifecycle or notification transition"""


class NotFoundError(DomainError):
    """Referenced entity no longer exists"""

    entity = "Entity"

    def __init__(self, entity_id: Any):
        super().__init__(f"{self.entity} {entity_id} not found", field="id", requested=entity_id)
        self.entity_id = entity_id


class ReservationNotFoundError(NotFoundError):
    entity = "Reservation"


class NotificationNotFoundError(NotFoundError):
    entity = "Notification"


class PaymentNotFoundError(NotFoundError):
    entity = "Payment"


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (date, UUID)):
        return str(value)
    if hasattr(value, "value"):
        return value.value
    return str(value)
