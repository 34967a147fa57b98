from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional
from uuid import UUID

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from api.schemas import (
    # Reservation
    CreateReservationRequest, UpdateReservationRequest, AddPaymentRequest,
    CheckInRequest, CheckOutRequest, ConfirmationRequest, ReservationResponse, reservation_to_response,
    # Availability & pricing
    CheckAvailabilityRequest, AvailabilityResponse, CabinAvailabilityResponse,
    NextAvailableResponse, QuoteRequest, QuoteResponse,
    # Notifications
    CompleteNotificationRequest, SnoozeNotificationRequest, MaintenanceAlertRequest,
    NotificationResponse, notification_to_response,
    # Maintenance & dashboard
    SweepReportResponse, DashboardResponse
)
from api.dependencies import (
    get_acting_user, get_analytics_service, get_dashboard_service, get_maintenance_service,
    get_notification_service, get_reservation_service, maintenance_service
)
from application.analytics import AnalyticsService
from application.dashboard import DashboardService
from application.services import MaintenanceService, NotificationService, ReservationService
from domain.enums import (
    CabinType, NotificationStatus, NotificationType, PaymentMethod, PaymentStatus,
    ReservationStatus, Season
)
from domain.analytics import CabinStats, MonthlyStats, OccupancyStats, SeasonStats
from domain.errors import AvailabilityConflictError, DomainError, NotFoundError
from domain.value_objects import cabin_capacity, cabin_display_name
from infrastructure.config import settings
from infrastructure.logging_config import setup_logging
from infrastructure.scheduler import shutdown_scheduler, start_scheduler

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if settings.MAINTENANCE_ENABLED:
        start_scheduler(maintenance_service.run, settings.MAINTENANCE_INTERVAL_MINUTES)
    logger.info("app.started", app=settings.APP_NAME, version=settings.APP_VERSION)
    yield
    shutdown_scheduler()
    logger.info("app.stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Cabin reservation API: availability, pricing, payments, stay lifecycle and notifications",
    version=settings.APP_VERSION,
    lifespan=lifespan
)


# ============================================================================
# ERROR MAPPING
# ============================================================================

def _status_for(error: DomainError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, AvailabilityConflictError):
        return 409
    return 400


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(
        status_code=_status_for(exc),
        content={"detail": exc.message, **exc.to_dict()}
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}


@app.get("/api/enums/cabins", tags=["Enum Reference"])
async def get_cabins():
    """Get all cabins with their capacity"""
    return {
        "values": [
            {"id": cabin.value, "name": cabin_display_name(cabin), "max_capacity": cabin_capacity(cabin)}
            for cabin in CabinType
        ],
        "description": "Capacity counts adults + children; babies do not count"
    }


@app.get("/api/enums/season", tags=["Enum Reference"])
async def get_seasons():
    """Get all Season enum values with the adult nightly rate"""
    rates = settings.pricing_rates()
    return {
        "values": {season.value: str(rates.adult_rate(season)) for season in Season},
        "child_rate": str(rates.child),
        "currency": rates.currency
    }


@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    return {"values": [item.value for item in PaymentStatus]}


@app.get("/api/enums/payment-method", tags=["Enum Reference"])
async def get_payment_methods():
    return {"values": [item.value for item in PaymentMethod]}


@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    return {"values": [item.value for item in ReservationStatus]}


@app.get("/api/enums/notification-type", tags=["Enum Reference"])
async def get_notification_types():
    return {"values": [item.value for item in NotificationType]}


# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    acting_user: str = Depends(get_acting_user)
):
    """Create new reservation"""
    reservation = await service.create_reservation(
        guest_name=request.guest_name,
        cabin_id=request.cabin_id,
        check_in=request.check_in,
        check_out=request.check_out,
        adults=request.adults,
        children=request.children,
        babies=request.babies,
        season=request.season,
        use_custom_price=request.use_custom_price,
        custom_price=request.custom_price,
        arrival_flight=request.arrival_flight,
        departure_flight=request.departure_flight,
        created_by=acting_user
    )
    return reservation_to_response(reservation)


@app.get("/api/reservations", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_all_reservations(
    cabin_id: Optional[CabinType] = None,
    service: ReservationService = Depends(get_reservation_service)
):
    """Get all reservations, optionally for one cabin"""
    if cabin_id is not None:
        reservations = await service.get_reservations_by_cabin(cabin_id)
    else:
        reservations = await service.get_all_reservations()
    return [reservation_to_response(r) for r in reservations]


@app.get("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def get_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service)
):
    """Get reservation by ID"""
    return reservation_to_response(await service.get_reservation(reservation_id))


@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation(
    reservation_id: UUID,
    request: UpdateReservationRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Modify reservation details; price is recomputed"""
    reservation = await service.update_reservation(reservation_id, **request.model_dump(exclude_unset=True))
    return reservation_to_response(reservation)


@app.delete("/api/reservations/{reservation_id}", tags=["Reservations"])
async def delete_reservation(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service)
):
    """Delete reservation and cancel its pending notifications"""
    await service.delete_reservation(reservation_id)
    return {"message": "Reservation deleted", "reservation_id": str(reservation_id)}


# ============================================================================
# PAYMENT ENDPOINTS
# ============================================================================

@app.post(
    "/api/reservations/{reservation_id}/payments",
    response_model=ReservationResponse, status_code=201, tags=["Payments"]
)
async def add_payment(
    reservation_id: UUID,
    request: AddPaymentRequest,
    service: ReservationService = Depends(get_reservation_service),
    acting_user: str = Depends(get_acting_user)
):
    """Record a payment; amounts above the remaining balance are rejected"""
    reservation = await service.add_payment(
        reservation_id,
        amount=request.amount,
        method=request.method,
        payment_date=request.payment_date,
        notes=request.notes,
        created_by=acting_user
    )
    return reservation_to_response(reservation)


@app.delete(
    "/api/reservations/{reservation_id}/payments/{payment_id}",
    response_model=ReservationResponse, tags=["Payments"]
)
async def remove_payment(
    reservation_id: UUID,
    payment_id: UUID,
    service: ReservationService = Depends(get_reservation_service)
):
    """Remove a payment record"""
    return reservation_to_response(await service.remove_payment(reservation_id, payment_id))


# ============================================================================
# LIFECYCLE ENDPOINTS
# ============================================================================

@app.post("/api/reservations/{reservation_id}/check-in", response_model=ReservationResponse, tags=["Lifecycle"])
async def check_in(
    reservation_id: UUID,
    request: CheckInRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Check in guest"""
    return reservation_to_response(await service.check_in(reservation_id, notes=request.notes))


@app.post("/api/reservations/{reservation_id}/check-out", response_model=ReservationResponse, tags=["Lifecycle"])
async def check_out(
    reservation_id: UUID,
    request: CheckOutRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Check out guest"""
    reservation = await service.check_out(reservation_id, notes=request.notes, late=request.late)
    return reservation_to_response(reservation)


@app.post("/api/reservations/{reservation_id}/late-checkout", response_model=ReservationResponse, tags=["Lifecycle"])
async def mark_late_checkout(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service)
):
    """Flag the check-out as late"""
    return reservation_to_response(await service.mark_late_checkout(reservation_id))


@app.post("/api/reservations/{reservation_id}/no-show", response_model=ReservationResponse, tags=["Lifecycle"])
async def mark_no_show(
    reservation_id: UUID,
    service: ReservationService = Depends(get_reservation_service)
):
    """Mark reservation as no-show"""
    return reservation_to_response(await service.mark_no_show(reservation_id))


@app.post("/api/reservations/{reservation_id}/confirmation", response_model=ReservationResponse, tags=["Lifecycle"])
async def mark_confirmation_sent(
    reservation_id: UUID,
    request: ConfirmationRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Record that the booking confirmation was sent to the guest"""
    reservation = await service.mark_confirmation_sent(reservation_id, request.method, notes=request.notes)
    return reservation_to_response(reservation)


# ============================================================================
# AVAILABILITY & PRICING ENDPOINTS
# ============================================================================

@app.post("/api/availability/check", response_model=AvailabilityResponse, tags=["Availability"])
async def check_availability(
    request: CheckAvailabilityRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Check whether a cabin is free; suggests the next free date when it is not"""
    result = await service.check_availability(
        request.cabin_id, request.check_in, request.check_out, request.exclude_reservation_id
    )
    return AvailabilityResponse(**result.model_dump())


@app.get("/api/availability/cabins", response_model=List[CabinAvailabilityResponse], tags=["Availability"])
async def get_cabin_availability(
    check_in: date,
    check_out: date,
    exclude_reservation_id: Optional[UUID] = None,
    service: ReservationService = Depends(get_reservation_service)
):
    """Availability of every cabin for a date range"""
    rows = await service.cabin_availability(check_in, check_out, exclude_reservation_id)
    return [CabinAvailabilityResponse(**row.model_dump()) for row in rows]


@app.get("/api/availability/{cabin_id}/next", response_model=NextAvailableResponse, tags=["Availability"])
async def get_next_available_date(
    cabin_id: CabinType,
    preferred_check_in: date,
    service: ReservationService = Depends(get_reservation_service)
):
    """First date the cabin is free to start a stay"""
    next_date = await service.next_available_date(cabin_id, preferred_check_in)
    return NextAvailableResponse(
        cabin_id=cabin_id,
        preferred_check_in=preferred_check_in,
        next_available_date=next_date
    )


@app.post("/api/pricing/quote", response_model=QuoteResponse, tags=["Pricing"])
async def quote_price(
    request: QuoteRequest,
    service: ReservationService = Depends(get_reservation_service)
):
    """Price breakdown for a prospective stay"""
    result = service.quote(**request.model_dump())
    return QuoteResponse(**result.model_dump())


# ============================================================================
# NOTIFICATION ENDPOINTS
# ============================================================================

@app.get("/api/notifications", response_model=List[NotificationResponse], tags=["Notifications"])
async def list_notifications(
    status: Optional[NotificationStatus] = None,
    recipient_id: Optional[str] = None,
    reservation_id: Optional[UUID] = None,
    service: NotificationService = Depends(get_notification_service)
):
    """List notifications, soonest first"""
    notifications = await service.list_notifications(
        status=status, recipient_id=recipient_id, reservation_id=reservation_id
    )
    return [notification_to_response(n) for n in notifications]


@app.get("/api/notifications/due", response_model=List[NotificationResponse], tags=["Notifications"])
async def list_due_notifications(service: NotificationService = Depends(get_notification_service)):
    """Notifications the next delivery pass would send"""
    return [notification_to_response(n) for n in await service.get_due()]


@app.post("/api/notifications/maintenance", response_model=Optional[NotificationResponse], tags=["Notifications"])
async def create_maintenance_alert(
    request: MaintenanceAlertRequest,
    service: NotificationService = Depends(get_notification_service)
):
    """Schedule a staff alert 48 hours before maintenance"""
    notification = await service.create_maintenance_alert(
        request.cabin_id, request.maintenance_at, request.description
    )
    return notification_to_response(notification) if notification else None


@app.get("/api/notifications/{notification_id}", response_model=NotificationResponse, tags=["Notifications"])
async def get_notification(
    notification_id: UUID,
    service: NotificationService = Depends(get_notification_service)
):
    return notification_to_response(await service.get_notification(notification_id))


@app.post("/api/notifications/{notification_id}/read", response_model=NotificationResponse, tags=["Notifications"])
async def mark_notification_read(
    notification_id: UUID,
    service: NotificationService = Depends(get_notification_service)
):
    return notification_to_response(await service.mark_read(notification_id))


@app.post("/api/notifications/{notification_id}/complete", response_model=NotificationResponse, tags=["Notifications"])
async def complete_notification(
    notification_id: UUID,
    request: CompleteNotificationRequest,
    service: NotificationService = Depends(get_notification_service),
    acting_user: str = Depends(get_acting_user)
):
    """Resolve a notification; a note is required"""
    notification = await service.complete(notification_id, request.notes, completed_by=acting_user)
    return notification_to_response(notification)


@app.post("/api/notifications/{notification_id}/archive", response_model=NotificationResponse, tags=["Notifications"])
async def archive_notification(
    notification_id: UUID,
    service: NotificationService = Depends(get_notification_service)
):
    return notification_to_response(await service.archive(notification_id))


@app.post("/api/notifications/{notification_id}/cancel", response_model=NotificationResponse, tags=["Notifications"])
async def cancel_notification(
    notification_id: UUID,
    service: NotificationService = Depends(get_notification_service)
):
    return notification_to_response(await service.cancel(notification_id))


@app.post("/api/notifications/{notification_id}/snooze", response_model=NotificationResponse, tags=["Notifications"])
async def snooze_notification(
    notification_id: UUID,
    request: SnoozeNotificationRequest,
    service: NotificationService = Depends(get_notification_service)
):
    """Postpone a notification (default 24 hours)"""
    return notification_to_response(await service.snooze(notification_id, hours=request.hours))


# ============================================================================
# MAINTENANCE & DASHBOARD ENDPOINTS
# ============================================================================

@app.post("/api/maintenance/run", response_model=SweepReportResponse, tags=["Maintenance"])
async def run_maintenance(service: MaintenanceService = Depends(get_maintenance_service)):
    """Run one maintenance sweep now"""
    report = await service.run()
    return SweepReportResponse(**report.model_dump())


@app.get("/api/dashboard", response_model=DashboardResponse, tags=["Dashboard"])
async def get_dashboard(
    refresh: bool = False,
    service: DashboardService = Depends(get_dashboard_service)
):
    """Arrivals and departures for today, tomorrow and the next days"""
    data = await service.get_dashboard(refresh=refresh)
    return DashboardResponse(
        generated_for=data.generated_for,
        total_reservations=len(data.all_reservations),
        today_arrivals=[reservation_to_response(r) for r in data.today_arrivals],
        today_departures=[reservation_to_response(r) for r in data.today_departures],
        tomorrow_arrivals=[reservation_to_response(r) for r in data.tomorrow_arrivals],
        tomorrow_departures=[reservation_to_response(r) for r in data.tomorrow_departures],
        upcoming_arrivals=[reservation_to_response(r) for r in data.upcoming_arrivals],
        upcoming_departures=[reservation_to_response(r) for r in data.upcoming_departures]
    )


# ============================================================================
# ANALYTICS ENDPOINTS
# ============================================================================

@app.get("/api/analytics/occupancy", response_model=OccupancyStats, tags=["Analytics"])
async def get_occupancy(
    start: date,
    end: date,
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Occupancy and revenue for stays inside a period"""
    return await service.occupancy(start, end)


@app.get("/api/analytics/cabins", response_model=List[CabinStats], tags=["Analytics"])
async def get_cabin_stats(service: AnalyticsService = Depends(get_analytics_service)):
    return await service.cabins()


@app.get("/api/analytics/monthly", response_model=List[MonthlyStats], tags=["Analytics"])
async def get_monthly_stats(service: AnalyticsService = Depends(get_analytics_service)):
    """Figures grouped by check-in month"""
    return await service.monthly()


@app.get("/api/analytics/seasons", response_model=List[SeasonStats], tags=["Analytics"])
async def get_season_stats(service: AnalyticsService = Depends(get_analytics_service)):
    return await service.seasons()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
