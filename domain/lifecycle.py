"""Check-in / check-out state machine and derived reservation status"""
from datetime import date, datetime
from typing import Optional

from domain import dates
from domain.entities import Reservation
from domain.enums import CheckInStatus, CheckOutStatus, ConfirmationMethod, ReservationStatus
from domain.errors import InvalidStateTransitionError

DEPARTED_AFTER_DAYS = 1


def _reject(
    reservation: Reservation, action: str, reason: str, field: str = "check_in_status"
) -> InvalidStateTransitionError:
    return InvalidStateTransitionError(
        f"Cannot {action} reservation {reservation.reservation_id}: {reason}",
        field=field,
        current=(reservation.check_in_status, reservation.check_out_status),
        requested=action
    )


def perform_check_in(
    reservation: Reservation,
    at: Optional[datetime] = None,
    notes: Optional[str] = None
) -> None:
    """pending -> checked_in; repeating a check-in is rejected"""
    if reservation.check_in_status != CheckInStatus.PENDING:
        raise _reject(
            reservation, "check-in",
            f"check-in status is {reservation.check_in_status.value}"
        )

    reservation.check_in_status = CheckInStatus.CHECKED_IN
    reservation.actual_check_in = at or dates.now()
    reservation.check_in_notes = notes or ""
    reservation.touch()


def perform_check_out(
    reservation: Reservation,
    at: Optional[datetime] = None,
    notes: Optional[str] = None,
    late: bool = False
) -> None:
    """Requires checked_in and a pending check-out"""
    if reservation.check_in_status != CheckInStatus.CHECKED_IN:
        raise _reject(
            reservation, "check-out",
            f"guest is not checked in (check-in status {reservation.check_in_status.value})"
        )
    if reservation.check_out_status != CheckOutStatus.PENDING:
        raise _reject(
            reservation, "check-out",
            f"check-out status is already {reservation.check_out_status.value}",
            field="check_out_status"
        )

    reservation.check_out_status = CheckOutStatus.LATE_CHECKOUT if late else CheckOutStatus.CHECKED_OUT
    reservation.actual_check_out = at or dates.now()
    reservation.check_out_notes = notes or ""
    reservation.touch()


def mark_late_checkout(reservation: Reservation, at: Optional[datetime] = None) -> None:
    """Flag a check-out as late, either while checking out or afterwards"""
    if reservation.check_out_status == CheckOutStatus.PENDING:
        perform_check_out(reservation, at=at, late=True)
        return
    if reservation.check_out_status != CheckOutStatus.CHECKED_OUT:
        raise _reject(
            reservation, "mark late check-out for",
            f"check-out status is {reservation.check_out_status.value}",
            field="check_out_status"
        )
    reservation.check_out_status = CheckOutStatus.LATE_CHECKOUT
    reservation.touch()


def mark_no_show(reservation: Reservation) -> None:
    """pending -> no_show; terminal, blocks any later check-in"""
    if reservation.check_in_status != CheckInStatus.PENDING:
        raise _reject(
            reservation, "mark no-show for",
            f"check-in status is {reservation.check_in_status.value}"
        )
    reservation.check_in_status = CheckInStatus.NO_SHOW
    reservation.touch()


def mark_confirmation_sent(
    reservation: Reservation,
    method: ConfirmationMethod,
    at: Optional[datetime] = None,
    notes: Optional[str] = None
) -> None:
    """Record that the booking confirmation went out; resending overwrites the previous record"""
    reservation.confirmation_sent = True
    reservation.confirmation_sent_at = at or dates.now()
    reservation.confirmation_method = ConfirmationMethod(method)
    reservation.confirmation_notes = notes or None
    reservation.touch()


def derive_reservation_status(reservation: Reservation, today: Optional[date] = None) -> ReservationStatus:
    """Overall status from the sub-states and the calendar"""
    today = today or dates.today()

    if reservation.is_checked_in and reservation.is_checked_out:
        if dates.nights_between(reservation.check_out, today) >= DEPARTED_AFTER_DAYS:
            return ReservationStatus.DEPARTED
        return ReservationStatus.CHECKED_OUT

    if reservation.is_checked_in and reservation.check_in <= today <= reservation.check_out:
        return ReservationStatus.IN_STAY

    return ReservationStatus.PENDING_CHECKIN


def is_no_show_candidate(reservation: Reservation, today: Optional[date] = None) -> bool:
    """Check-in day has passed without a check-in event"""
    today = today or dates.today()
    return reservation.check_in_status == CheckInStatus.PENDING and reservation.check_in < today


def is_expired(reservation: Reservation, today: Optional[date] = None, grace_days: int = 1) -> bool:
    """Check-out lies at least ``grace_days`` in the past; eligible for deletion"""
    today = today or dates.today()
    return dates.nights_between(reservation.check_out, today) >= grace_days
