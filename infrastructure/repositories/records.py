"""Document-style storage records and their normalization.

Reservations and notifications are persisted as flat dictionaries: calendar
dates as ``YYYY-MM-DD``, instants as ISO-8601, enums by value. Every record
read back from storage goes through ``normalize_*_record`` which also accepts
the older document shapes still found in exported data: camelCase keys,
Spanish cabin and season labels, ``DD-MM-YYYY`` dates and timestamp wrapper
objects exposing ``toDate()`` / ``to_datetime()``.
"""
import re
from decimal import Decimal
from typing import Any, Dict, Optional

from domain import dates
from domain.entities import Notification, Reservation
from domain.enums import (
    CabinType, CheckInStatus, CheckOutStatus, ConfirmationMethod, NotificationPriority,
    NotificationStatus, NotificationType, PaymentMethod, Season
)
from domain.value_objects import DateRange, GuestCount, Payment

LEGACY_CABIN_NAMES = {
    "Cabaña Pequeña (Max 3p)": CabinType.SMALL,
    "Cabaña Mediana 1 (Max 4p)": CabinType.MEDIUM_1,
    "Cabaña Mediana 2 (Max 4p)": CabinType.MEDIUM_2,
    "Cabaña Grande (Max 6p)": CabinType.LARGE,
    "Cabaña Pequeña": CabinType.SMALL,
    "Cabaña Mediana 1": CabinType.MEDIUM_1,
    "Cabaña Mediana 2": CabinType.MEDIUM_2,
    "Cabaña Grande": CabinType.LARGE,
    "Pequeña": CabinType.SMALL,
    "Mediana 1": CabinType.MEDIUM_1,
    "Mediana 2": CabinType.MEDIUM_2,
    "Grande": CabinType.LARGE,
}

LEGACY_SEASONS = {
    "Alta": Season.HIGH,
    "Baja": Season.LOW,
}

KEY_ALIASES = {
    "id": "reservation_id",
    "passenger_name": "guest_name",
    "cabin_type": "cabin_id",
    "confirmation_sent_date": "confirmation_sent_at",
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _snake_keys(record: Dict[str, Any], aliases: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    aliases = aliases or {}
    result = {}
    for key, value in record.items():
        name = _snake(key)
        result[aliases.get(name, name)] = value
    return result


def _optional_timestamp(value: Any):
    if value in (None, ""):
        return None
    return dates.parse_timestamp(value)


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value in (None, ""):
        return None
    return Decimal(str(value))


def normalize_cabin(value: Any) -> CabinType:
    """Accept enum values and every historical cabin label"""
    if isinstance(value, CabinType):
        return value
    text = str(value or "").strip()
    if text in LEGACY_CABIN_NAMES:
        return LEGACY_CABIN_NAMES[text]
    return CabinType(text)


def normalize_season(value: Any) -> Season:
    if isinstance(value, Season):
        return value
    text = str(value or "").strip()
    if text in LEGACY_SEASONS:
        return LEGACY_SEASONS[text]
    return Season(text.lower())


# ==================== RESERVATIONS ====================
def payment_to_record(payment: Payment) -> Dict[str, Any]:
    return {
        "payment_id": str(payment.payment_id),
        "amount": str(payment.amount),
        "payment_date": payment.payment_date.isoformat(),
        "method": payment.method.value,
        "notes": payment.notes,
        "created_by": payment.created_by,
        "created_at": payment.created_at.isoformat(),
    }


def normalize_payment_record(record: Dict[str, Any]) -> Payment:
    data = _snake_keys(record, {"id": "payment_id"})
    payment = {
        "amount": Decimal(str(data["amount"])),
        "payment_date": dates.parse_date(data.get("payment_date") or data.get("created_at") or dates.today()),
        "method": PaymentMethod(data.get("method") or PaymentMethod.OTHER),
        "notes": data.get("notes"),
        "created_by": data.get("created_by") or "SYSTEM",
    }
    if data.get("payment_id"):
        payment["payment_id"] = data["payment_id"]
    if data.get("created_at"):
        payment["created_at"] = dates.parse_timestamp(data["created_at"])
    return Payment(**payment)


def reservation_to_record(reservation: Reservation) -> Dict[str, Any]:
    """Flatten a reservation into its stored document.

    The derived figures are written alongside as a read-only snapshot for
    consumers of raw exports; they are recomputed on every read.
    """
    return {
        "reservation_id": str(reservation.reservation_id),
        "guest_name": reservation.guest_name,
        "arrival_flight": reservation.arrival_flight,
        "departure_flight": reservation.departure_flight,
        "cabin_id": reservation.cabin_id.value,
        "check_in": reservation.check_in.isoformat(),
        "check_out": reservation.check_out.isoformat(),
        "adults": reservation.guests.adults,
        "children": reservation.guests.children,
        "babies": reservation.guests.babies,
        "season": reservation.season.value,
        "total_price": str(reservation.total_price),
        "use_custom_price": reservation.use_custom_price,
        "custom_price": None if reservation.custom_price is None else str(reservation.custom_price),
        "payments": [payment_to_record(p) for p in reservation.payments],
        "check_in_status": reservation.check_in_status.value,
        "check_out_status": reservation.check_out_status.value,
        "actual_check_in": reservation.actual_check_in.isoformat() if reservation.actual_check_in else None,
        "actual_check_out": reservation.actual_check_out.isoformat() if reservation.actual_check_out else None,
        "check_in_notes": reservation.check_in_notes,
        "check_out_notes": reservation.check_out_notes,
        "confirmation_sent": reservation.confirmation_sent,
        "confirmation_sent_at": (
            reservation.confirmation_sent_at.isoformat() if reservation.confirmation_sent_at else None
        ),
        "confirmation_method": reservation.confirmation_method.value if reservation.confirmation_method else None,
        "confirmation_notes": reservation.confirmation_notes,
        "created_at": reservation.created_at.isoformat(),
        "updated_at": reservation.updated_at.isoformat(),
        "created_by": reservation.created_by,
        "version": reservation.version,
        # snapshot
        "nights": reservation.nights,
        "total_paid": str(reservation.total_paid),
        "remaining_balance": str(reservation.remaining_balance),
        "payment_status": reservation.payment_status().value,
        "reservation_status": reservation.reservation_status().value,
    }


def normalize_reservation_record(record: Dict[str, Any]) -> Reservation:
    """Build a Reservation from any supported stored shape"""
    data = _snake_keys(record, KEY_ALIASES)

    reservation = {
        "guest_name": data.get("guest_name") or "",
        "arrival_flight": data.get("arrival_flight") or None,
        "departure_flight": data.get("departure_flight") or None,
        "cabin_id": normalize_cabin(data.get("cabin_id")),
        "date_range": DateRange(
            check_in=dates.parse_date(data["check_in"]),
            check_out=dates.parse_date(data["check_out"])
        ),
        "guests": GuestCount(
            adults=int(data.get("adults") or 1),
            children=int(data.get("children") or 0),
            babies=int(data.get("babies") or 0)
        ),
        "season": normalize_season(data.get("season")),
        "total_price": Decimal(str(data.get("total_price") or 0)),
        "use_custom_price": bool(data.get("use_custom_price", False)),
        "custom_price": _optional_decimal(data.get("custom_price")),
        "payments": [normalize_payment_record(p) for p in data.get("payments") or []],
        "check_in_status": CheckInStatus(data.get("check_in_status") or CheckInStatus.PENDING),
        "check_out_status": CheckOutStatus(data.get("check_out_status") or CheckOutStatus.PENDING),
        "actual_check_in": _optional_timestamp(data.get("actual_check_in")),
        "actual_check_out": _optional_timestamp(data.get("actual_check_out")),
        "check_in_notes": data.get("check_in_notes"),
        "check_out_notes": data.get("check_out_notes"),
        "confirmation_sent": bool(data.get("confirmation_sent", False)),
        "confirmation_sent_at": _optional_timestamp(data.get("confirmation_sent_at")),
        "confirmation_method": (
            ConfirmationMethod(data["confirmation_method"]) if data.get("confirmation_method") else None
        ),
        "confirmation_notes": data.get("confirmation_notes"),
        "created_by": data.get("created_by") or "SYSTEM",
        "version": int(data.get("version") or 1),
    }
    if data.get("reservation_id"):
        reservation["reservation_id"] = data["reservation_id"]
    for stamp in ("created_at", "updated_at"):
        if data.get(stamp):
            reservation[stamp] = dates.parse_timestamp(data[stamp])

    return Reservation(**reservation)


# ==================== NOTIFICATIONS ====================
def notification_to_record(notification: Notification) -> Dict[str, Any]:
    record = notification.model_dump(mode="json")
    record["notification_id"] = str(notification.notification_id)
    return record


def normalize_notification_record(record: Dict[str, Any]) -> Notification:
    """Build a Notification from any supported stored shape"""
    data = _snake_keys(record, {"id": "notification_id"})
    metadata = _snake_keys(data.get("metadata") or {})

    notification = {
        "type": NotificationType(data["type"]),
        "title": data.get("title") or "",
        "message": data.get("message") or "",
        "priority": NotificationPriority(data.get("priority") or NotificationPriority.MEDIUM),
        "status": NotificationStatus(data.get("status") or NotificationStatus.PENDING),
        "recipient_id": str(data.get("recipient_id") or ""),
        "recipient_email": data.get("recipient_email"),
        "scheduled_at": dates.parse_timestamp(data["scheduled_at"]),
        "is_active": bool(data.get("is_active", True)),
        "completed_by": data.get("completed_by"),
        "notes": data.get("notes"),
        "action_taken": data.get("action_taken"),
        "metadata": metadata,
    }
    for stamp in ("sent_at", "read_at", "completed_at", "archived_at", "snoozed_until"):
        notification[stamp] = _optional_timestamp(data.get(stamp))
    for stamp in ("created_at", "updated_at"):
        if data.get(stamp):
            notification[stamp] = dates.parse_timestamp(data[stamp])
    if data.get("notification_id"):
        notification["notification_id"] = data["notification_id"]

    return Notification(**notification)
