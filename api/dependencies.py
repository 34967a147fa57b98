"""API Dependencies - service wiring and request context"""
from typing import Optional

from fastapi import Header

from application.analytics import AnalyticsService
from application.dashboard import DashboardCache, DashboardService
from application.services import MaintenanceService, NotificationService, ReservationService
from infrastructure.config import settings
from infrastructure.repositories.in_memory_repositories import (
    InMemoryNotificationRepository, InMemoryReservationRepository
)
from infrastructure.senders import LoggingNotificationSender

SYSTEM_USER = "SYSTEM"

# Initialize repositories
reservation_repo = InMemoryReservationRepository()
notification_repo = InMemoryNotificationRepository()

dashboard_cache = DashboardCache(ttl_seconds=settings.DASHBOARD_CACHE_TTL_SECONDS)
notification_sender = LoggingNotificationSender()

notification_service = NotificationService(
    notification_repo,
    notification_sender,
    anchor_times=settings.anchor_times(),
    default_snooze_hours=settings.DEFAULT_SNOOZE_HOURS,
    max_snooze_hours=settings.MAX_SNOOZE_HOURS,
    reservation_repository=reservation_repo
)
reservation_service = ReservationService(
    reservation_repo,
    notification_service=notification_service,
    cache=dashboard_cache,
    rates=settings.pricing_rates(),
    max_stay_days=settings.MAX_STAY_DAYS,
    booking_horizon_days=settings.BOOKING_HORIZON_DAYS
)
dashboard_service = DashboardService(reservation_repo, dashboard_cache)
analytics_service = AnalyticsService(reservation_repo)
maintenance_service = MaintenanceService(
    reservation_service,
    notification_service,
    auto_mark_no_show=settings.AUTO_MARK_NO_SHOW,
    expiry_grace_days=settings.EXPIRY_GRACE_DAYS
)


# Dependency injection
def get_reservation_service() -> ReservationService:
    return reservation_service


def get_notification_service() -> NotificationService:
    return notification_service


def get_dashboard_service() -> DashboardService:
    return dashboard_service


def get_analytics_service() -> AnalyticsService:
    return analytics_service


def get_maintenance_service() -> MaintenanceService:
    return maintenance_service


async def get_acting_user(x_acting_user: Optional[str] = Header(None)) -> str:
    """Name recorded in audit fields; no authentication is performed"""
    if x_acting_user and x_acting_user.strip():
        return x_acting_user.strip()
    return SYSTEM_USER
