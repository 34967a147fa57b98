"""Application Services - Business use cases"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from application.dashboard import DashboardCache
from domain import availability, dates, ledger, lifecycle, pricing
from domain.entities import Notification, Reservation
from domain.enums import (
    CabinType, CheckInStatus, ConfirmationMethod, DeliveryChannel, NotificationPriority,
    NotificationStatus, NotificationType, PaymentMethod, Season
)
from domain.errors import (
    CapacityExceededError, DomainError, NotificationNotFoundError, ReservationNotFoundError,
    ReservationValidationError
)
from domain.notifications import (
    DEFAULT_TEMPLATES, NotificationTemplate, build_maintenance_notification,
    build_reservation_notifications
)
from domain.repositories import Condition, NotificationRepository, ReservationRepository
from domain.value_objects import (
    AnchorTimes, AvailabilityResult, CabinAvailability, DateRange, GuestCount, Payment,
    PriceQuote, PricingRates
)
from infrastructure.senders import NotificationSender

logger = structlog.get_logger(__name__)

OPEN_STATUSES = (NotificationStatus.PENDING, NotificationStatus.SNOOZED)
ESCALATED_PRIORITIES = (NotificationPriority.URGENT, NotificationPriority.HIGH)

LIFECYCLE_FIELDS = (
    "check_in_status", "check_out_status", "actual_check_in", "actual_check_out",
    "check_in_notes", "check_out_notes", "updated_at", "version"
)
CONFIRMATION_FIELDS = (
    "confirmation_sent", "confirmation_sent_at", "confirmation_method", "confirmation_notes",
    "updated_at", "version"
)


class DeliveryReport(BaseModel):
    """Outcome of one delivery pass"""
    due: int = 0
    sent: int = 0
    failed: int = 0
    cancelled: int = 0


class SweepReport(BaseModel):
    """Outcome of one maintenance sweep"""
    started_at: datetime
    finished_at: Optional[datetime] = None
    delivery: DeliveryReport = DeliveryReport()
    no_shows_marked: int = 0
    expired_deleted: int = 0


def _changes(entity: BaseModel, fields) -> Dict[str, Any]:
    return {name: getattr(entity, name) for name in fields}


class NotificationService:
    """Service for notification scheduling, delivery and staff actions"""

    def __init__(
        self,
        repository: NotificationRepository,
        sender: NotificationSender,
        anchor_times: AnchorTimes = AnchorTimes(),
        templates: Optional[List[NotificationTemplate]] = None,
        default_snooze_hours: int = 24,
        max_snooze_hours: int = 168,
        reservation_repository: Optional[ReservationRepository] = None
    ):
        self.repository = repository
        self.sender = sender
        self.anchor_times = anchor_times
        self.templates = templates
        self.default_snooze_hours = default_snooze_hours
        self.max_snooze_hours = max_snooze_hours
        self.reservation_repository = reservation_repository

    # ==================== SCHEDULING ====================
    async def schedule_for_reservation(
        self, reservation: Reservation, now: Optional[datetime] = None
    ) -> List[Notification]:
        """Persist every future notification for a reservation"""
        pending = build_reservation_notifications(
            reservation, now=now, templates=self.templates, anchor_times=self.anchor_times
        )
        saved = [await self.repository.save(n) for n in pending]
        logger.info(
            "notification.scheduled",
            reservation_id=str(reservation.reservation_id),
            count=len(saved),
        )
        return saved

    async def schedule_payment_reminder(
        self, reservation: Reservation, now: Optional[datetime] = None
    ) -> List[Notification]:
        """Schedule only the payment reminder, e.g. after a payment was withdrawn"""
        templates = [
            t for t in (self.templates if self.templates is not None else DEFAULT_TEMPLATES)
            if t.type == NotificationType.PAYMENT_REMINDER
        ]
        pending = build_reservation_notifications(
            reservation, now=now, templates=templates, anchor_times=self.anchor_times
        )
        return [await self.repository.save(n) for n in pending]

    async def cancel_for_reservation(
        self,
        reservation_id: UUID,
        now: Optional[datetime] = None,
        types: Optional[Iterable[NotificationType]] = None
    ) -> int:
        """Cancel the reservation's notifications that have not gone out yet.

        ``types`` limits the cancellation to those notification types.
        """
        now = now or dates.now()
        types = None if types is None else set(types)
        open_notifications = await self.repository.find_where(
            Condition(field="metadata.reservation_id", op="==", value=str(reservation_id))
        )
        cancelled = 0
        for notification in open_notifications:
            if notification.status not in OPEN_STATUSES:
                continue
            if types is not None and notification.type not in types:
                continue
            notification.cancel(at=now)
            await self.repository.update(
                notification.notification_id,
                _changes(notification, ("status", "is_active", "updated_at"))
            )
            cancelled += 1
        if cancelled:
            logger.info("notification.cancelled", reservation_id=str(reservation_id), count=cancelled)
        return cancelled

    async def reschedule_for_reservation(
        self, reservation: Reservation, now: Optional[datetime] = None
    ) -> List[Notification]:
        """Replace open notifications after the stay dates moved"""
        await self.cancel_for_reservation(reservation.reservation_id, now=now)
        return await self.schedule_for_reservation(reservation, now=now)

    async def create_maintenance_alert(
        self,
        cabin_id: CabinType,
        maintenance_at: datetime,
        description: str,
        now: Optional[datetime] = None
    ) -> Optional[Notification]:
        notification = build_maintenance_notification(cabin_id, maintenance_at, description, now=now)
        if notification is None:
            logger.info(
                "notification.maintenance_skipped",
                cabin_id=CabinType(cabin_id).value,
                maintenance_at=maintenance_at.isoformat(),
            )
            return None
        return await self.repository.save(notification)

    # ==================== QUERIES ====================
    async def get_notification(self, notification_id: UUID) -> Notification:
        notification = await self.repository.find_by_id(notification_id)
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    async def list_notifications(
        self,
        status: Optional[NotificationStatus] = None,
        recipient_id: Optional[str] = None,
        reservation_id: Optional[UUID] = None
    ) -> List[Notification]:
        """Notifications matching the given filters, soonest first"""
        conditions = []
        if status is not None:
            conditions.append(Condition(field="status", value=status))
        if recipient_id is not None:
            conditions.append(Condition(field="recipient_id", value=recipient_id))
        if reservation_id is not None:
            conditions.append(Condition(field="metadata.reservation_id", value=str(reservation_id)))
        found = await self.repository.find_where(*conditions)
        return sorted(found, key=lambda n: n.scheduled_at)

    async def get_due(self, now: Optional[datetime] = None) -> List[Notification]:
        now = now or dates.now()
        candidates = await self.repository.find_where(
            Condition(field="is_active", value=True),
            Condition(field="scheduled_at", op="<=", value=now)
        )
        return sorted((n for n in candidates if n.is_due(now)), key=lambda n: n.scheduled_at)

    # ==================== DELIVERY ====================
    async def process_due(self, now: Optional[datetime] = None) -> DeliveryReport:
        """Hand every due notification to the sender.

        A sender failure only skips that notification; it stays due and is
        retried on the next pass. Payment reminders for settled or deleted
        reservations are cancelled instead of sent. Storage errors propagate.
        """
        now = now or dates.now()
        due = await self.get_due(now)
        report = DeliveryReport(due=len(due))

        for notification in due:
            if await self._is_obsolete(notification):
                notification.cancel(at=now)
                await self.repository.update(
                    notification.notification_id,
                    _changes(notification, ("status", "is_active", "updated_at"))
                )
                logger.info(
                    "notification.obsolete_cancelled",
                    notification_id=str(notification.notification_id),
                    reservation_id=notification.reservation_id,
                )
                report.cancelled += 1
                continue

            if not await self._deliver(notification, DeliveryChannel.PRIMARY):
                report.failed += 1
                continue

            notification.mark_sent(at=now)
            await self.repository.update(
                notification.notification_id,
                _changes(notification, ("status", "sent_at", "snoozed_until", "updated_at"))
            )
            report.sent += 1

            if notification.priority in ESCALATED_PRIORITIES:
                await self._deliver(notification, DeliveryChannel.SECONDARY)

        logger.info("notification.delivery.completed", **report.model_dump())
        return report

    async def _is_obsolete(self, notification: Notification) -> bool:
        """A payment reminder whose reservation has nothing left to pay"""
        if notification.type != NotificationType.PAYMENT_REMINDER:
            return False
        if self.reservation_repository is None or not notification.reservation_id:
            return False
        reservation = await self.reservation_repository.find_by_id(UUID(notification.reservation_id))
        return reservation is None or reservation.remaining_balance <= 0

    async def _deliver(self, notification: Notification, channel: DeliveryChannel) -> bool:
        try:
            accepted = await self.sender.send(notification, channel)
        except Exception as exc:
            logger.warning(
                "notification.delivery_failed",
                notification_id=str(notification.notification_id),
                channel=channel.value,
                error=str(exc),
            )
            return False
        if not accepted:
            logger.warning(
                "notification.delivery_rejected",
                notification_id=str(notification.notification_id),
                channel=channel.value,
            )
        return bool(accepted)

    # ==================== STAFF ACTIONS ====================
    async def mark_read(self, notification_id: UUID, at: Optional[datetime] = None) -> Notification:
        notification = await self.get_notification(notification_id)
        notification.mark_read(at=at)
        return await self._store(notification, "read", ("status", "read_at", "updated_at"))

    async def complete(
        self,
        notification_id: UUID,
        note: str,
        completed_by: str = "SYSTEM",
        at: Optional[datetime] = None
    ) -> Notification:
        notification = await self.get_notification(notification_id)
        notification.complete(note, completed_by=completed_by, at=at)
        return await self._store(
            notification, "completed",
            ("status", "notes", "action_taken", "completed_at", "completed_by", "updated_at")
        )

    async def archive(self, notification_id: UUID, at: Optional[datetime] = None) -> Notification:
        notification = await self.get_notification(notification_id)
        notification.archive(at=at)
        return await self._store(notification, "archived", ("status", "archived_at", "is_active", "updated_at"))

    async def cancel(self, notification_id: UUID, at: Optional[datetime] = None) -> Notification:
        notification = await self.get_notification(notification_id)
        notification.cancel(at=at)
        return await self._store(notification, "cancelled", ("status", "is_active", "updated_at"))

    async def snooze(
        self,
        notification_id: UUID,
        hours: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Notification:
        notification = await self.get_notification(notification_id)
        notification.snooze(
            now or dates.now(),
            self.default_snooze_hours if hours is None else hours,
            max_hours=self.max_snooze_hours
        )
        return await self._store(notification, "snoozed", ("status", "snoozed_until", "updated_at"))

    async def _store(self, notification: Notification, action: str, fields) -> Notification:
        stored = await self.repository.update(notification.notification_id, _changes(notification, fields))
        logger.info(f"notification.{action}", notification_id=str(notification.notification_id))
        return stored


class ReservationService:
    """Service for Reservation business use cases"""

    def __init__(
        self,
        repository: ReservationRepository,
        notification_service: Optional[NotificationService] = None,
        cache: Optional[DashboardCache] = None,
        rates: PricingRates = pricing.DEFAULT_RATES,
        max_stay_days: int = pricing.MAX_STAY_DAYS,
        booking_horizon_days: int = pricing.BOOKING_HORIZON_DAYS
    ):
        self.repository = repository
        self.notification_service = notification_service
        self.cache = cache
        self.rates = rates
        self.max_stay_days = max_stay_days
        self.booking_horizon_days = booking_horizon_days

    # ==================== VALIDATION ====================
    def _validate_request(
        self,
        cabin_id: CabinType,
        check_in: date,
        check_out: date,
        guests: GuestCount,
        today: date
    ) -> None:
        dates_result = pricing.validate_reservation_dates(
            check_in, check_out, today=today,
            max_stay_days=self.max_stay_days,
            booking_horizon_days=self.booking_horizon_days
        )
        if not dates_result.is_valid:
            raise ReservationValidationError(
                dates_result.error,
                field=dates_result.field,
                current=dates_result.current,
                requested=dates_result.requested
            )

        capacity_result = pricing.validate_cabin_capacity(
            cabin_id, guests.adults, guests.children, guests.babies
        )
        if not capacity_result.is_valid:
            raise CapacityExceededError(
                capacity_result.error,
                field=capacity_result.field,
                current=capacity_result.current,
                requested=capacity_result.requested
            )

    def _invalidate_cache(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    async def _schedule_notifications(self, reservation: Reservation, reschedule: bool = False) -> None:
        """Generation failures are logged; the reservation write already succeeded"""
        if self.notification_service is None:
            return
        try:
            if reschedule:
                await self.notification_service.reschedule_for_reservation(reservation)
            else:
                await self.notification_service.schedule_for_reservation(reservation)
        except Exception:
            logger.exception(
                "notification.generation_failed",
                reservation_id=str(reservation.reservation_id),
            )

    # ==================== AVAILABILITY & PRICING ====================
    async def _cabin_reservations(self, cabin_id: CabinType) -> List[Reservation]:
        return await self.repository.find_where(Condition(field="cabin_id", value=CabinType(cabin_id)))

    async def check_availability(
        self,
        cabin_id: CabinType,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None
    ) -> AvailabilityResult:
        return availability.check_availability(
            await self._cabin_reservations(cabin_id),
            cabin_id, check_in, check_out, exclude_reservation_id
        )

    async def cabin_availability(
        self,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[UUID] = None
    ) -> List[CabinAvailability]:
        return availability.cabin_availability_matrix(
            await self.repository.find_all(), check_in, check_out, exclude_reservation_id
        )

    async def next_available_date(
        self,
        cabin_id: CabinType,
        preferred_check_in: date,
        exclude_reservation_id: Optional[UUID] = None
    ) -> date:
        return availability.next_available_date(
            await self._cabin_reservations(cabin_id), cabin_id, preferred_check_in, exclude_reservation_id
        )

    def quote(
        self,
        cabin_id: CabinType,
        season: Season,
        check_in: date,
        check_out: date,
        adults: int,
        children: int = 0,
        babies: int = 0,
        use_custom_price: bool = False,
        custom_price: Optional[Decimal] = None,
        today: Optional[date] = None
    ) -> PriceQuote:
        """Validated price breakdown; nothing is persisted"""
        guests = GuestCount(adults=adults, children=children, babies=babies)
        self._validate_request(cabin_id, check_in, check_out, guests, today or dates.today())
        return pricing.quote(
            season, check_in, check_out, adults, children, babies,
            use_custom_price=use_custom_price, custom_price=custom_price, rates=self.rates
        )

    # ==================== CRUD ====================
    async def create_reservation(
        self,
        guest_name: str,
        cabin_id: CabinType,
        check_in: date,
        check_out: date,
        adults: int,
        children: int = 0,
        babies: int = 0,
        season: Season = Season.HIGH,
        use_custom_price: bool = False,
        custom_price: Optional[Decimal] = None,
        arrival_flight: Optional[str] = None,
        departure_flight: Optional[str] = None,
        created_by: str = "SYSTEM",
        today: Optional[date] = None
    ) -> Reservation:
        """Create new reservation with full validation"""
        guests = GuestCount(adults=adults, children=children, babies=babies)
        self._validate_request(cabin_id, check_in, check_out, guests, today or dates.today())

        date_range = DateRange(check_in=check_in, check_out=check_out)
        total_price = pricing.resolve_total_price(
            season, date_range.nights(), adults, children,
            use_custom_price=use_custom_price, custom_price=custom_price, rates=self.rates
        )

        reservation = Reservation.create(
            guest_name=guest_name,
            cabin_id=cabin_id,
            date_range=date_range,
            guests=guests,
            season=season,
            total_price=total_price,
            use_custom_price=use_custom_price,
            custom_price=custom_price,
            arrival_flight=arrival_flight,
            departure_flight=departure_flight,
            created_by=created_by
        )

        try:
            saved = await self.repository.insert_if_available(reservation)
        except DomainError as exc:
            logger.info("reservation.rejected", cabin_id=CabinType(cabin_id).value, reason=exc.message)
            raise

        self._invalidate_cache()
        logger.info(
            "reservation.created",
            reservation_id=str(saved.reservation_id),
            cabin_id=saved.cabin_id.value,
            check_in=saved.check_in.isoformat(),
            check_out=saved.check_out.isoformat(),
            total_price=str(saved.total_price),
        )
        await self._schedule_notifications(saved)
        return saved

    async def get_reservation(self, reservation_id: UUID) -> Reservation:
        """Get reservation by ID"""
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    async def get_all_reservations(self) -> List[Reservation]:
        """Get all reservations, earliest stay first"""
        return sorted(await self.repository.find_all(), key=lambda r: (r.check_in, r.cabin_id.value))

    async def get_reservations_by_cabin(self, cabin_id: CabinType) -> List[Reservation]:
        return sorted(await self._cabin_reservations(cabin_id), key=lambda r: r.check_in)

    async def update_reservation(
        self,
        reservation_id: UUID,
        guest_name: Optional[str] = None,
        cabin_id: Optional[CabinType] = None,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        adults: Optional[int] = None,
        children: Optional[int] = None,
        babies: Optional[int] = None,
        season: Optional[Season] = None,
        use_custom_price: Optional[bool] = None,
        custom_price: Optional[Decimal] = None,
        arrival_flight: Optional[str] = None,
        departure_flight: Optional[str] = None,
        today: Optional[date] = None
    ) -> Reservation:
        """Edit a reservation; the price is recomputed from the resulting fields.

        A stay that already started keeps its original check-in, so unless the
        check-in actually moves the "not in the past" rule is applied relative
        to that check-in. The new total may not drop below what was already
        paid.
        """
        current = await self.get_reservation(reservation_id)
        today = today or dates.today()

        new_check_in = check_in or current.check_in
        new_check_out = check_out or current.check_out
        new_cabin = cabin_id or current.cabin_id
        guests = GuestCount(
            adults=current.guests.adults if adults is None else adults,
            children=current.guests.children if children is None else children,
            babies=current.guests.babies if babies is None else babies
        )
        reference_day = today if new_check_in != current.check_in else min(today, current.check_in)
        self._validate_request(new_cabin, new_check_in, new_check_out, guests, reference_day)

        new_season = season or current.season
        new_use_custom = current.use_custom_price if use_custom_price is None else use_custom_price
        new_custom = custom_price if custom_price is not None else current.custom_price
        date_range = DateRange(check_in=new_check_in, check_out=new_check_out)
        new_total = pricing.resolve_total_price(
            new_season, date_range.nights(), guests.adults, guests.children,
            use_custom_price=new_use_custom, custom_price=new_custom, rates=self.rates
        )
        if current.total_paid > new_total:
            raise ReservationValidationError(
                f"Accepted payments ({current.total_paid}) exceed the new total price ({new_total})",
                field="total_price",
                current=current.total_paid,
                requested=new_total
            )

        updated = current.model_copy(update={
            "guest_name": (guest_name or current.guest_name).strip(),
            "cabin_id": new_cabin,
            "date_range": date_range,
            "guests": guests,
            "season": new_season,
            "use_custom_price": new_use_custom,
            "custom_price": new_custom if new_use_custom else None,
            "total_price": new_total,
            "arrival_flight": arrival_flight if arrival_flight is not None else current.arrival_flight,
            "departure_flight": departure_flight if departure_flight is not None else current.departure_flight,
        })
        updated.touch()

        saved = await self.repository.update_if_available(updated)
        self._invalidate_cache()
        logger.info("reservation.updated", reservation_id=str(reservation_id), version=saved.version)

        if saved.date_range != current.date_range or saved.cabin_id != current.cabin_id:
            await self._schedule_notifications(saved, reschedule=True)
        return saved

    async def delete_reservation(self, reservation_id: UUID) -> bool:
        """Delete reservation and withdraw its outstanding notifications"""
        await self.get_reservation(reservation_id)
        deleted = await self.repository.delete(reservation_id)
        if self.notification_service is not None:
            await self.notification_service.cancel_for_reservation(reservation_id)
        self._invalidate_cache()
        logger.info("reservation.deleted", reservation_id=str(reservation_id))
        return deleted

    # ==================== PAYMENTS ====================
    async def add_payment(
        self,
        reservation_id: UUID,
        amount: Decimal,
        method: PaymentMethod = PaymentMethod.CASH,
        payment_date: Optional[date] = None,
        notes: Optional[str] = None,
        created_by: str = "SYSTEM"
    ) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        payment = Payment(
            amount=amount,
            method=method,
            payment_date=payment_date or dates.today(),
            notes=notes,
            created_by=created_by
        )
        try:
            updated = ledger.add_payment(reservation, payment)
        except DomainError as exc:
            logger.info(
                "payment.rejected",
                reservation_id=str(reservation_id),
                amount=str(amount),
                remaining_balance=str(reservation.remaining_balance),
                reason=exc.message,
            )
            raise

        saved = await self.repository.update(
            reservation_id, _changes(updated, ("payments", "updated_at", "version"))
        )
        self._invalidate_cache()
        logger.info(
            "payment.recorded",
            reservation_id=str(reservation_id),
            payment_id=str(payment.payment_id),
            amount=str(amount),
            remaining_balance=str(saved.remaining_balance),
        )
        await self._sync_payment_reminder(reservation, saved)
        return saved

    async def remove_payment(self, reservation_id: UUID, payment_id: UUID) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        updated = ledger.remove_payment(reservation, payment_id)
        saved = await self.repository.update(
            reservation_id, _changes(updated, ("payments", "updated_at", "version"))
        )
        self._invalidate_cache()
        logger.info("payment.removed", reservation_id=str(reservation_id), payment_id=str(payment_id))
        await self._sync_payment_reminder(reservation, saved)
        return saved

    async def _sync_payment_reminder(self, before: Reservation, after: Reservation) -> None:
        """Withdraw the reminder once settled; bring it back when a balance reopens"""
        if self.notification_service is None:
            return
        if after.remaining_balance <= 0:
            await self.notification_service.cancel_for_reservation(
                after.reservation_id, types=(NotificationType.PAYMENT_REMINDER,)
            )
        elif before.remaining_balance <= 0 < after.remaining_balance:
            await self.notification_service.schedule_payment_reminder(after)

    # ==================== LIFECYCLE ====================
    async def _apply_lifecycle(self, reservation: Reservation, event: str) -> Reservation:
        saved = await self.repository.update(reservation.reservation_id, _changes(reservation, LIFECYCLE_FIELDS))
        self._invalidate_cache()
        logger.info(
            f"reservation.{event}",
            reservation_id=str(reservation.reservation_id),
            check_in_status=saved.check_in_status.value,
            check_out_status=saved.check_out_status.value,
        )
        return saved

    async def check_in(
        self, reservation_id: UUID, notes: Optional[str] = None, at: Optional[datetime] = None
    ) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        lifecycle.perform_check_in(reservation, at=at, notes=notes)
        return await self._apply_lifecycle(reservation, "checked_in")

    async def check_out(
        self,
        reservation_id: UUID,
        notes: Optional[str] = None,
        at: Optional[datetime] = None,
        late: bool = False
    ) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        lifecycle.perform_check_out(reservation, at=at, notes=notes, late=late)
        return await self._apply_lifecycle(reservation, "checked_out")

    async def mark_late_checkout(self, reservation_id: UUID, at: Optional[datetime] = None) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        lifecycle.mark_late_checkout(reservation, at=at)
        return await self._apply_lifecycle(reservation, "late_checkout")

    async def mark_no_show(self, reservation_id: UUID) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        lifecycle.mark_no_show(reservation)
        saved = await self._apply_lifecycle(reservation, "no_show")
        if self.notification_service is not None:
            await self.notification_service.cancel_for_reservation(reservation_id)
        return saved

    async def mark_confirmation_sent(
        self,
        reservation_id: UUID,
        method: ConfirmationMethod,
        notes: Optional[str] = None,
        at: Optional[datetime] = None
    ) -> Reservation:
        """Record how and when the booking confirmation reached the guest"""
        reservation = await self.get_reservation(reservation_id)
        lifecycle.mark_confirmation_sent(reservation, method, at=at, notes=notes)
        saved = await self.repository.update(reservation_id, _changes(reservation, CONFIRMATION_FIELDS))
        self._invalidate_cache()
        logger.info(
            "reservation.confirmation_sent",
            reservation_id=str(reservation_id),
            method=saved.confirmation_method.value,
        )
        return saved

    # ==================== HOUSEKEEPING ====================
    async def mark_no_shows(self, today: Optional[date] = None) -> List[Reservation]:
        """Flag every stay whose check-in day passed without a check-in"""
        today = today or dates.today()
        candidates = await self.repository.find_where(
            Condition(field="check_in_status", value=CheckInStatus.PENDING),
            Condition(field="check_in", op="<", value=today)
        )
        return [
            await self.mark_no_show(r.reservation_id)
            for r in candidates
            if lifecycle.is_no_show_candidate(r, today)
        ]

    async def delete_expired_reservations(self, today: Optional[date] = None, grace_days: int = 1) -> int:
        """Delete stays whose check-out is at least ``grace_days`` behind us"""
        today = today or dates.today()
        candidates = await self.repository.find_where(
            Condition(field="check_out", op="<=", value=dates.add_days(today, -grace_days))
        )
        deleted = 0
        for reservation in candidates:
            if not lifecycle.is_expired(reservation, today, grace_days=grace_days):
                continue
            await self.delete_reservation(reservation.reservation_id)
            deleted += 1
        if deleted:
            logger.info("reservation.expired_deleted", count=deleted, today=today.isoformat())
        return deleted


class MaintenanceService:
    """Periodic sweep: deliver due notifications, then housekeeping"""

    def __init__(
        self,
        reservation_service: ReservationService,
        notification_service: NotificationService,
        auto_mark_no_show: bool = True,
        expiry_grace_days: int = 1
    ):
        self.reservation_service = reservation_service
        self.notification_service = notification_service
        self.auto_mark_no_show = auto_mark_no_show
        self.expiry_grace_days = expiry_grace_days

    async def run(self, now: Optional[datetime] = None) -> SweepReport:
        """One iteration; a storage failure aborts it and propagates"""
        now = now or dates.now()
        report = SweepReport(started_at=now)

        report.delivery = await self.notification_service.process_due(now)
        if self.auto_mark_no_show:
            report.no_shows_marked = len(await self.reservation_service.mark_no_shows(now.date()))
        report.expired_deleted = await self.reservation_service.delete_expired_reservations(
            now.date(), grace_days=self.expiry_grace_days
        )

        report.finished_at = dates.now()
        logger.info(
            "maintenance.sweep.completed",
            due=report.delivery.due,
            sent=report.delivery.sent,
            failed=report.delivery.failed,
            cancelled=report.delivery.cancelled,
            no_shows_marked=report.no_shows_marked,
            expired_deleted=report.expired_deleted,
        )
        return report
