"""Analytics read model over stored reservations"""
from datetime import date
from typing import List

import structlog

from domain import analytics
from domain.analytics import CabinStats, MonthlyStats, OccupancyStats, SeasonStats
from domain.errors import DomainValidationError
from domain.repositories import Condition, ReservationRepository

logger = structlog.get_logger(__name__)


class AnalyticsService:
    """Service for occupancy and revenue reporting"""

    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    async def occupancy(self, start: date, end: date) -> OccupancyStats:
        if end <= start:
            raise DomainValidationError(
                "End date must be after start date", field="end", current=start, requested=end
            )
        candidates = await self.repository.find_where(
            Condition(field="check_in", op=">=", value=start),
            Condition(field="check_out", op="<=", value=end)
        )
        stats = analytics.occupancy_stats(candidates, start, end)
        logger.debug(
            "analytics.occupancy",
            start=start.isoformat(),
            end=end.isoformat(),
            reservations=stats.total_reservations,
        )
        return stats

    async def cabins(self) -> List[CabinStats]:
        return analytics.cabin_stats(await self.repository.find_all())

    async def monthly(self) -> List[MonthlyStats]:
        return analytics.monthly_stats(await self.repository.find_all())

    async def seasons(self) -> List[SeasonStats]:
        return analytics.season_stats(await self.repository.find_all())
