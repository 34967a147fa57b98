"""Cabin availability rules.

Conflicts are evaluated on half-open ``[check_in, check_out)`` ranges: a cabin
is released on its check-out day, so a new stay may start that same day.
"""
from datetime import date
from typing import Iterable, List, Optional
from uuid import UUID

from domain.entities import Reservation
from domain.enums import CabinType
from domain.value_objects import (
    AvailabilityResult, CabinAvailability, DateRange, cabin_capacity, cabin_display_name
)


def ranges_overlap(first: DateRange, second: DateRange) -> bool:
    """Symmetric half-open overlap test"""
    return first.overlaps(second)


def _same_cabin(
    reservations: Iterable[Reservation],
    cabin_id: CabinType,
    exclude_reservation_id: Optional[UUID] = None
) -> List[Reservation]:
    return [
        r for r in reservations
        if r.cabin_id == cabin_id
        and (exclude_reservation_id is None or r.reservation_id != exclude_reservation_id)
    ]


def find_conflicts(
    reservations: Iterable[Reservation],
    cabin_id: CabinType,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None
) -> List[Reservation]:
    """Reservations of the same cabin whose stay overlaps the candidate range"""
    return [
        r for r in _same_cabin(reservations, cabin_id, exclude_reservation_id)
        if check_in < r.check_out and check_out > r.check_in
    ]


def is_available(
    reservations: Iterable[Reservation],
    cabin_id: CabinType,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None
) -> bool:
    return not find_conflicts(reservations, cabin_id, check_in, check_out, exclude_reservation_id)


def next_available_date(
    reservations: Iterable[Reservation],
    cabin_id: CabinType,
    preferred_check_in: date,
    exclude_reservation_id: Optional[UUID] = None
) -> date:
    """First date on or after ``preferred_check_in`` the cabin is free to start a stay"""
    upcoming = sorted(
        (
            r for r in _same_cabin(reservations, cabin_id, exclude_reservation_id)
            if r.check_out > preferred_check_in
        ),
        key=lambda r: (r.check_out, r.check_in)
    )

    candidate = preferred_check_in
    for reservation in upcoming:
        if candidate < reservation.check_in:
            return candidate
        if candidate < reservation.check_out:
            candidate = reservation.check_out
    return candidate


def check_availability(
    reservations: Iterable[Reservation],
    cabin_id: CabinType,
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None
) -> AvailabilityResult:
    """Structured availability answer; never raises for a conflict"""
    reservations = list(reservations)
    available = is_available(reservations, cabin_id, check_in, check_out, exclude_reservation_id)
    return AvailabilityResult(
        available=available,
        cabin_id=cabin_id,
        check_in=check_in,
        check_out=check_out,
        next_available_date=None if available else next_available_date(
            reservations, cabin_id, check_in, exclude_reservation_id
        )
    )


def cabin_availability_matrix(
    reservations: Iterable[Reservation],
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None
) -> List[CabinAvailability]:
    """Availability of every cabin for one date range"""
    reservations = list(reservations)
    return [
        CabinAvailability(
            cabin_id=cabin,
            display_name=cabin_display_name(cabin),
            is_available=is_available(reservations, cabin, check_in, check_out, exclude_reservation_id),
            max_capacity=cabin_capacity(cabin)
        )
        for cabin in CabinType
    ]
