"""Operations dashboard: arrivals and departures around today, cached with a TTL"""
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from domain import dates
from domain.entities import Reservation
from domain.repositories import ReservationRepository

UPCOMING_WINDOW_DAYS = 5
UPCOMING_LIMIT = 5


class DashboardData(BaseModel):
    """Reservation lists shown on the front-desk dashboard"""
    generated_for: date
    all_reservations: List[Reservation] = []
    today_arrivals: List[Reservation] = []
    today_departures: List[Reservation] = []
    tomorrow_arrivals: List[Reservation] = []
    tomorrow_departures: List[Reservation] = []
    upcoming_arrivals: List[Reservation] = []
    upcoming_departures: List[Reservation] = []


def build_dashboard(reservations: List[Reservation], today: Optional[date] = None) -> DashboardData:
    """Bucket reservations by arrival and departure day.

    Upcoming lists cover the days after tomorrow up to ``UPCOMING_WINDOW_DAYS``
    from today, soonest first, at most ``UPCOMING_LIMIT`` each.
    """
    today = today or dates.today()
    tomorrow = dates.add_days(today, 1)
    horizon = dates.add_days(today, UPCOMING_WINDOW_DAYS)

    upcoming_arrivals = sorted(
        (r for r in reservations if tomorrow < r.check_in <= horizon),
        key=lambda r: r.check_in
    )
    upcoming_departures = sorted(
        (r for r in reservations if tomorrow < r.check_out <= horizon),
        key=lambda r: r.check_out
    )

    return DashboardData(
        generated_for=today,
        all_reservations=sorted(reservations, key=lambda r: r.check_in),
        today_arrivals=[r for r in reservations if r.check_in == today],
        today_departures=[r for r in reservations if r.check_out == today],
        tomorrow_arrivals=[r for r in reservations if r.check_in == tomorrow],
        tomorrow_departures=[r for r in reservations if r.check_out == tomorrow],
        upcoming_arrivals=upcoming_arrivals[:UPCOMING_LIMIT],
        upcoming_departures=upcoming_departures[:UPCOMING_LIMIT]
    )


class DashboardCache:
    """
    In-memory dashboard cache with time-to-live (TTL) expiration.

    Entries are keyed by the calendar day they were computed for, so a cached
    dashboard never leaks across midnight. Every mutating reservation use case
    calls ``invalidate()``.

    Example:
        >>> cache = DashboardCache(ttl_seconds=120)
        >>> cache.set(data)
        >>> cache.get(data.generated_for)
        >>> cache.invalidate()
    """

    def __init__(self, ttl_seconds: int = 120, clock: Callable[[], datetime] = dates.now):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._cache: Dict[date, Tuple[DashboardData, datetime]] = {}

    def get(self, day: date) -> Optional[DashboardData]:
        """Cached dashboard for ``day`` if still fresh"""
        if day in self._cache:
            data, expires_at = self._cache[day]
            if self._clock() < expires_at:
                return data
            del self._cache[day]
        return None

    def set(self, data: DashboardData) -> None:
        self._cache[data.generated_for] = (data, self._clock() + self.ttl)

    def invalidate(self, day: Optional[date] = None) -> None:
        """Drop the dashboard for ``day``, or every cached dashboard when omitted"""
        if day is None:
            self._cache.clear()
        else:
            self._cache.pop(day, None)

    def size(self) -> int:
        return len(self._cache)


class DashboardService:
    """Service for the dashboard read model"""

    def __init__(self, repository: ReservationRepository, cache: DashboardCache):
        self.repository = repository
        self.cache = cache

    async def get_dashboard(self, today: Optional[date] = None, refresh: bool = False) -> DashboardData:
        """Serve from cache unless stale or a refresh is requested"""
        today = today or dates.today()
        if not refresh:
            cached = self.cache.get(today)
            if cached is not None:
                return cached

        data = build_dashboard(await self.repository.find_all(), today)
        self.cache.set(data)
        return data
