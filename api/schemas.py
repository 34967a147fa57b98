"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from domain.entities import Notification, Reservation
from domain.enums import (
    CabinType, CheckInStatus, CheckOutStatus, ConfirmationMethod, NotificationPriority,
    NotificationStatus, NotificationType, PaymentMethod, PaymentStatus, ReservationStatus, Season
)
from domain.value_objects import Payment, cabin_display_name


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO"""
    guest_name: str = Field(min_length=1)
    cabin_id: CabinType
    check_in: date
    check_out: date
    adults: int = Field(ge=1, le=10)
    children: int = Field(ge=0, le=10, default=0)
    babies: int = Field(ge=0, le=10, default=0)
    season: Season = Season.HIGH
    use_custom_price: bool = False
    custom_price: Optional[Decimal] = Field(None, ge=0)
    arrival_flight: Optional[str] = None
    departure_flight: Optional[str] = None


class UpdateReservationRequest(BaseModel):
    """Update reservation request DTO; omitted fields keep their value"""
    guest_name: Optional[str] = Field(None, min_length=1)
    cabin_id: Optional[CabinType] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    adults: Optional[int] = Field(None, ge=1, le=10)
    children: Optional[int] = Field(None, ge=0, le=10)
    babies: Optional[int] = Field(None, ge=0, le=10)
    season: Optional[Season] = None
    use_custom_price: Optional[bool] = None
    custom_price: Optional[Decimal] = Field(None, ge=0)
    arrival_flight: Optional[str] = None
    departure_flight: Optional[str] = None


class QuoteRequest(BaseModel):
    """Price quote request DTO"""
    cabin_id: CabinType
    season: Season
    check_in: date
    check_out: date
    adults: int = Field(ge=1, le=10)
    children: int = Field(ge=0, le=10, default=0)
    babies: int = Field(ge=0, le=10, default=0)
    use_custom_price: bool = False
    custom_price: Optional[Decimal] = Field(None, ge=0)


class AddPaymentRequest(BaseModel):
    """Add payment request DTO"""
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH
    payment_date: Optional[date] = None
    notes: Optional[str] = None


class CheckInRequest(BaseModel):
    """Check-in request DTO"""
    notes: Optional[str] = None


class CheckOutRequest(BaseModel):
    """Check-out request DTO"""
    notes: Optional[str] = None
    late: bool = False


class ConfirmationRequest(BaseModel):
    """Booking confirmation record DTO"""
    method: ConfirmationMethod
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    """Payment response DTO"""
    payment_id: UUID
    amount: Decimal
    payment_date: date
    method: PaymentMethod
    notes: Optional[str] = None
    created_by: str
    created_at: datetime


class ReservationResponse(BaseModel):
    """Reservation response DTO with every derived figure resolved"""
    reservation_id: UUID
    guest_name: str
    cabin_id: CabinType
    cabin_name: str
    check_in: date
    check_out: date
    nights: int
    adults: int
    children: int
    babies: int
    season: Season
    arrival_flight: Optional[str] = None
    departure_flight: Optional[str] = None
    total_price: Decimal
    use_custom_price: bool
    custom_price: Optional[Decimal] = None
    total_paid: Decimal
    remaining_balance: Decimal
    payment_status: PaymentStatus
    payments: List[PaymentResponse]
    check_in_status: CheckInStatus
    check_out_status: CheckOutStatus
    reservation_status: ReservationStatus
    actual_check_in: Optional[datetime] = None
    actual_check_out: Optional[datetime] = None
    check_in_notes: Optional[str] = None
    check_out_notes: Optional[str] = None
    confirmation_sent: bool = False
    confirmation_sent_at: Optional[datetime] = None
    confirmation_method: Optional[ConfirmationMethod] = None
    confirmation_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    created_by: str
    version: int


# ============================================================================
# AVAILABILITY & PRICING SCHEMAS
# ============================================================================

class CheckAvailabilityRequest(BaseModel):
    """Check availability request DTO"""
    cabin_id: CabinType
    check_in: date
    check_out: date
    exclude_reservation_id: Optional[UUID] = None

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v


class AvailabilityResponse(BaseModel):
    """Availability response DTO"""
    available: bool
    cabin_id: CabinType
    check_in: date
    check_out: date
    next_available_date: Optional[date] = None


class CabinAvailabilityResponse(BaseModel):
    """Cabin availability matrix row DTO"""
    cabin_id: CabinType
    display_name: str
    is_available: bool
    max_capacity: int


class NextAvailableResponse(BaseModel):
    cabin_id: CabinType
    preferred_check_in: date
    next_available_date: date


class QuoteResponse(BaseModel):
    """Price quote response DTO"""
    season: Season
    nights: int
    adults: int
    children: int
    babies: int
    adult_rate: Decimal
    child_rate: Decimal
    per_night: Decimal
    computed_total: Decimal
    total: Decimal
    custom_price_applied: bool
    currency: str


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================

class CompleteNotificationRequest(BaseModel):
    """Complete notification request DTO"""
    notes: str


class SnoozeNotificationRequest(BaseModel):
    """Snooze notification request DTO"""
    hours: Optional[int] = None


class MaintenanceAlertRequest(BaseModel):
    """Schedule a staff maintenance alert"""
    cabin_id: CabinType
    maintenance_at: datetime
    description: str = Field(min_length=1)


class NotificationResponse(BaseModel):
    """Notification response DTO"""
    notification_id: UUID
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    status: NotificationStatus
    recipient_id: str
    recipient_email: Optional[str] = None
    scheduled_at: datetime
    is_active: bool
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    archived_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None
    notes: Optional[str] = None
    action_taken: Optional[str] = None
    metadata: Dict[str, Any] = {}
    created_at: datetime
    updated_at: datetime


# ============================================================================
# MAINTENANCE & DASHBOARD SCHEMAS
# ============================================================================

class DeliveryReportResponse(BaseModel):
    due: int
    sent: int
    failed: int
    cancelled: int = 0


class SweepReportResponse(BaseModel):
    """Maintenance sweep result DTO"""
    started_at: datetime
    finished_at: Optional[datetime] = None
    delivery: DeliveryReportResponse
    no_shows_marked: int
    expired_deleted: int


class DashboardResponse(BaseModel):
    """Dashboard response DTO"""
    generated_for: date
    total_reservations: int
    today_arrivals: List[ReservationResponse]
    today_departures: List[ReservationResponse]
    tomorrow_arrivals: List[ReservationResponse]
    tomorrow_departures: List[ReservationResponse]
    upcoming_arrivals: List[ReservationResponse]
    upcoming_departures: List[ReservationResponse]


# ============================================================================
# MAPPERS
# ============================================================================

def payment_to_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(**payment.model_dump())


def reservation_to_response(
    reservation: Reservation,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> ReservationResponse:
    """Flatten a reservation and resolve its derived fields"""
    return ReservationResponse(
        reservation_id=reservation.reservation_id,
        guest_name=reservation.guest_name,
        cabin_id=reservation.cabin_id,
        cabin_name=cabin_display_name(reservation.cabin_id),
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        nights=reservation.nights,
        adults=reservation.guests.adults,
        children=reservation.guests.children,
        babies=reservation.guests.babies,
        season=reservation.season,
        arrival_flight=reservation.arrival_flight,
        departure_flight=reservation.departure_flight,
        total_price=reservation.total_price,
        use_custom_price=reservation.use_custom_price,
        custom_price=reservation.custom_price,
        total_paid=reservation.total_paid,
        remaining_balance=reservation.remaining_balance,
        payment_status=reservation.payment_status(today=today, now=now),
        payments=[payment_to_response(p) for p in reservation.payments],
        check_in_status=reservation.check_in_status,
        check_out_status=reservation.check_out_status,
        reservation_status=reservation.reservation_status(today=today),
        actual_check_in=reservation.actual_check_in,
        actual_check_out=reservation.actual_check_out,
        check_in_notes=reservation.check_in_notes,
        check_out_notes=reservation.check_out_notes,
        confirmation_sent=reservation.confirmation_sent,
        confirmation_sent_at=reservation.confirmation_sent_at,
        confirmation_method=reservation.confirmation_method,
        confirmation_notes=reservation.confirmation_notes,
        created_at=reservation.created_at,
        updated_at=reservation.updated_at,
        created_by=reservation.created_by,
        version=reservation.version
    )


def notification_to_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(**notification.model_dump())
