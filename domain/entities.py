"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from datetime import datetime, date, timedelta
from typing import Any, Dict, Optional, List
from decimal import Decimal

from domain import dates
from domain.enums import (
    CabinType, ConfirmationMethod, Season, CheckInStatus, CheckOutStatus, ReservationStatus, PaymentStatus,
    NotificationType, NotificationPriority, NotificationStatus
)
from domain.errors import DomainValidationError, InvalidStateTransitionError, ReservationValidationError
from domain.value_objects import DateRange, GuestCount, Payment


TERMINAL_STATUSES = (NotificationStatus.ARCHIVED, NotificationStatus.CANCELLED)


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    # Identity
    reservation_id: UUID = Field(default_factory=uuid4)

    # Guest
    guest_name: str
    arrival_flight: Optional[str] = None
    departure_flight: Optional[str] = None

    # Stay
    cabin_id: CabinType
    date_range: DateRange
    guests: GuestCount

    # Pricing
    season: Season
    total_price: Decimal
    use_custom_price: bool = False
    custom_price: Optional[Decimal] = None

    # Collections (child entities)
    payments: List[Payment] = []

    # Lifecycle
    check_in_status: CheckInStatus = CheckInStatus.PENDING
    check_out_status: CheckOutStatus = CheckOutStatus.PENDING
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    check_in_notes: Optional[str] = None
    check_out_notes: Optional[str] = None

    # Confirmation
    confirmation_sent: bool = False
    confirmation_sent_at: Optional[datetime] = None
    confirmation_method: Optional[ConfirmationMethod] = None
    confirmation_notes: Optional[str] = None

    # Metadata
    created_at: datetime = Field(default_factory=dates.now)
    updated_at: datetime = Field(default_factory=dates.now)
    created_by: str = "SYSTEM"
    version: int = 1

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        guest_name: str,
        cabin_id: CabinType,
        date_range: DateRange,
        guests: GuestCount,
        season: Season,
        total_price: Decimal,
        use_custom_price: bool = False,
        custom_price: Optional[Decimal] = None,
        arrival_flight: Optional[str] = None,
        departure_flight: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> "Reservation":
        """Create new reservation; pricing and validation happen upstream"""
        if not guest_name or not guest_name.strip():
            raise ReservationValidationError(
                "Guest name is required", field="guest_name", requested=guest_name
            )
        if total_price < 0:
            raise ReservationValidationError(
                "Total price cannot be negative", field="total_price", requested=total_price
            )

        return Reservation(
            guest_name=guest_name.strip(),
            cabin_id=cabin_id,
            date_range=date_range,
            guests=guests,
            season=season,
            total_price=total_price,
            use_custom_price=use_custom_price,
            custom_price=custom_price if use_custom_price else None,
            arrival_flight=arrival_flight,
            departure_flight=departure_flight,
            created_by=created_by
        )

    # ==================== QUERY METHODS ====================
    @property
    def check_in(self) -> date:
        return self.date_range.check_in

    @property
    def check_out(self) -> date:
        return self.date_range.check_out

    @property
    def nights(self) -> int:
        """Get number of nights"""
        return self.date_range.nights()

    @property
    def total_paid(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0"))

    @property
    def remaining_balance(self) -> Decimal:
        """Total price minus accepted payments, floored at zero"""
        return max(Decimal("0"), self.total_price - self.total_paid)

    @property
    def is_checked_in(self) -> bool:
        return self.check_in_status == CheckInStatus.CHECKED_IN

    @property
    def is_checked_out(self) -> bool:
        return self.check_out_status in (CheckOutStatus.CHECKED_OUT, CheckOutStatus.LATE_CHECKOUT)

    def payment_status(self, today: Optional[date] = None, now: Optional[datetime] = None) -> PaymentStatus:
        """Derived payment status; never stored as truth"""
        from domain.ledger import derive_payment_status
        return derive_payment_status(self, today=today, now=now)

    def reservation_status(self, today: Optional[date] = None) -> ReservationStatus:
        """Derived lifecycle status; never stored as truth"""
        from domain.lifecycle import derive_reservation_status
        return derive_reservation_status(self, today=today)

    def touch(self) -> None:
        """Record a mutation"""
        self.updated_at = dates.now()
        self.version += 1


class Notification(BaseModel):
    """Notification Aggregate Root Entity"""

    # Identity
    notification_id: UUID = Field(default_factory=uuid4)

    # Content
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM

    # Delivery
    recipient_id: str
    recipient_email: Optional[str] = None
    scheduled_at: datetime
    status: NotificationStatus = NotificationStatus.PENDING
    is_active: bool = True

    # Timeline
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    archived_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None

    # Staff follow-up
    notes: Optional[str] = None
    action_taken: Optional[str] = None
    metadata: Dict[str, Any] = {}

    # Metadata
    created_at: datetime = Field(default_factory=dates.now)
    updated_at: datetime = Field(default_factory=dates.now)

    class Config:
        from_attributes = True

    # ==================== QUERY METHODS ====================
    @property
    def is_terminal(self) -> bool:
        """Archived and cancelled notifications accept no further action"""
        return self.status in TERMINAL_STATUSES

    @property
    def reservation_id(self) -> Optional[str]:
        return self.metadata.get("reservation_id")

    def is_snoozed(self, now: datetime) -> bool:
        return (
            self.status == NotificationStatus.SNOOZED
            and self.snoozed_until is not None
            and self.snoozed_until > now
        )

    def is_due(self, now: datetime) -> bool:
        """Check if the delivery sweep should hand this notification off"""
        if not self.is_active:
            return False
        if self.status not in (NotificationStatus.PENDING, NotificationStatus.SNOOZED):
            return False
        if self.is_snoozed(now):
            return False
        return self.scheduled_at <= now

    # ==================== STATE TRANSITION METHODS ====================
    def mark_sent(self, at: Optional[datetime] = None) -> None:
        """Record a successful hand-off to the sender"""
        self._require(
            "send",
            self.status in (NotificationStatus.PENDING, NotificationStatus.SNOOZED)
        )
        at = at or dates.now()
        self.status = NotificationStatus.SENT
        self.sent_at = at
        self.snoozed_until = None
        self.updated_at = at

    def mark_read(self, at: Optional[datetime] = None) -> None:
        """Staff acknowledged a sent notification"""
        self._require("read", self.status == NotificationStatus.SENT)
        at = at or dates.now()
        self.status = NotificationStatus.READ
        self.read_at = at
        self.updated_at = at

    def complete(self, note: str, completed_by: str = "SYSTEM", at: Optional[datetime] = None) -> None:
        """Resolve the notification; a resolution note is mandatory"""
        self._require(
            "complete",
            not self.is_terminal and self.status != NotificationStatus.COMPLETED
        )
        if not note or not note.strip():
            raise InvalidStateTransitionError(
                "Completing a notification requires a resolution note",
                field="notes",
                current=self.status,
                requested=NotificationStatus.COMPLETED
            )
        at = at or dates.now()
        self.status = NotificationStatus.COMPLETED
        self.action_taken = note.strip()
        self.notes = note.strip()
        self.completed_at = at
        self.completed_by = completed_by
        self.updated_at = at

    def archive(self, at: Optional[datetime] = None) -> None:
        self._require("archive", not self.is_terminal)
        at = at or dates.now()
        self.status = NotificationStatus.ARCHIVED
        self.archived_at = at
        self.is_active = False
        self.updated_at = at

    def cancel(self, at: Optional[datetime] = None) -> None:
        self._require(
            "cancel",
            not self.is_terminal and self.status != NotificationStatus.COMPLETED
        )
        at = at or dates.now()
        self.status = NotificationStatus.CANCELLED
        self.is_active = False
        self.updated_at = at

    def snooze(self, now: datetime, hours: int, max_hours: int = 168) -> None:
        """Postpone delivery; eligible again once the delay has passed"""
        self._require(
            "snooze",
            self.status in (
                NotificationStatus.PENDING, NotificationStatus.SENT,
                NotificationStatus.READ, NotificationStatus.SNOOZED
            )
        )
        if hours <= 0 or hours > max_hours:
            raise DomainValidationError(
                f"Snooze must be between 1 and {max_hours} hours",
                field="hours",
                requested=hours
            )
        self.status = NotificationStatus.SNOOZED
        self.snoozed_until = now + timedelta(hours=hours)
        self.updated_at = now

    def _require(self, action: str, allowed: bool) -> None:
        if not allowed:
            raise InvalidStateTransitionError(
                f"Cannot {action} notification with status {self.status.value}",
                field="status",
                current=self.status,
                requested=action
            )
