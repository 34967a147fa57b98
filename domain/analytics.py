"""Occupancy and revenue figures derived from reservations.

Occupancy rates are percentages of available cabin-nights. Period rates use
the exact number of nights in the window; the per-cabin, per-month and
per-season rates use the fixed approximations below and are capped at 100.
"""
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List

from pydantic import BaseModel

from domain.entities import Reservation
from domain.enums import CabinType, Season
from domain.value_objects import cabin_display_name
from domain import dates

CABIN_COUNT = len(CabinType)
CABIN_WINDOW_NIGHTS = 30
MONTH_NIGHTS = 30
SEASON_NIGHTS = 365 * 0.5
CENTS = Decimal("0.01")


class OccupancyStats(BaseModel):
    """Figures for stays fully inside a period"""
    start: date
    end: date
    total_reservations: int = 0
    total_guests: int = 0
    total_nights: int = 0
    total_revenue: Decimal = Decimal("0")
    average_stay_length: float = 0.0
    occupancy_rate: float = 0.0
    average_revenue_per_night: Decimal = Decimal("0")


class CabinStats(BaseModel):
    cabin_id: CabinType
    display_name: str
    total_reservations: int = 0
    total_revenue: Decimal = Decimal("0")
    occupancy_rate: float = 0.0
    average_guests: float = 0.0


class MonthlyStats(BaseModel):
    month: str
    reservations: int = 0
    revenue: Decimal = Decimal("0")
    guests: int = 0
    occupancy_rate: float = 0.0


class SeasonStats(BaseModel):
    season: Season
    reservations: int = 0
    revenue: Decimal = Decimal("0")
    average_price: Decimal = Decimal("0")
    occupancy_rate: float = 0.0


def _rate(nights: float, available: float, cap: bool = True) -> float:
    if available <= 0:
        return 0.0
    rate = nights / available * 100
    return min(rate, 100.0) if cap else rate


def _revenue(reservations: List[Reservation]) -> Decimal:
    return sum((r.total_price for r in reservations), Decimal("0"))


def _nights(reservations: List[Reservation]) -> int:
    return sum(r.nights for r in reservations)


def _guests(reservations: List[Reservation]) -> int:
    return sum(r.guests.occupancy for r in reservations)


def occupancy_stats(reservations: Iterable[Reservation], start: date, end: date) -> OccupancyStats:
    """Totals for stays with check-in on or after ``start`` and check-out on or before ``end``"""
    inside = [r for r in reservations if r.check_in >= start and r.check_out <= end]
    count = len(inside)
    nights = _nights(inside)
    revenue = _revenue(inside)

    return OccupancyStats(
        start=start,
        end=end,
        total_reservations=count,
        total_guests=_guests(inside),
        total_nights=nights,
        total_revenue=revenue,
        average_stay_length=nights / count if count else 0.0,
        occupancy_rate=_rate(nights, dates.nights_between(start, end) * CABIN_COUNT, cap=False),
        average_revenue_per_night=(revenue / nights).quantize(CENTS) if nights else Decimal("0")
    )


def cabin_stats(reservations: Iterable[Reservation]) -> List[CabinStats]:
    """One row per cabin, in catalog order"""
    reservations = list(reservations)
    rows = []
    for cabin in CabinType:
        booked = [r for r in reservations if r.cabin_id == cabin]
        rows.append(CabinStats(
            cabin_id=cabin,
            display_name=cabin_display_name(cabin),
            total_reservations=len(booked),
            total_revenue=_revenue(booked),
            occupancy_rate=_rate(_nights(booked), CABIN_WINDOW_NIGHTS),
            average_guests=_guests(booked) / len(booked) if booked else 0.0
        ))
    return rows


def monthly_stats(reservations: Iterable[Reservation]) -> List[MonthlyStats]:
    """Stays grouped by check-in month (``YYYY-MM``), oldest first"""
    by_month: Dict[str, List[Reservation]] = {}
    for reservation in reservations:
        by_month.setdefault(reservation.check_in.strftime("%Y-%m"), []).append(reservation)

    return [
        MonthlyStats(
            month=month,
            reservations=len(booked),
            revenue=_revenue(booked),
            guests=_guests(booked),
            occupancy_rate=_rate(_nights(booked), MONTH_NIGHTS * CABIN_COUNT)
        )
        for month, booked in sorted(by_month.items())
    ]


def season_stats(reservations: Iterable[Reservation]) -> List[SeasonStats]:
    """Both seasons are always reported, even without bookings"""
    reservations = list(reservations)
    rows = []
    for season in Season:
        booked = [r for r in reservations if r.season == season]
        revenue = _revenue(booked)
        rows.append(SeasonStats(
            season=season,
            reservations=len(booked),
            revenue=revenue,
            average_price=(revenue / len(booked)).quantize(CENTS) if booked else Decimal("0"),
            occupancy_rate=_rate(_nights(booked), SEASON_NIGHTS * CABIN_COUNT)
        ))
    return rows
