"""Notification templates and their expansion into scheduled notifications.

Each template fires ``trigger_hours`` relative to an anchor event: the
check-in instant (check-in date at the check-in time) for arrival templates
and the check-out instant for departure templates. Notifications whose
schedule is already in the past at generation time are not created.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pydantic import BaseModel

from domain import dates
from domain.entities import Notification, Reservation
from domain.enums import (
    CabinType, NotificationAnchor, NotificationPriority, NotificationType
)
from domain.value_objects import AnchorTimes, cabin_display_name

STAFF_RECIPIENT = "staff"
MAINTENANCE_LEAD_HOURS = 48


class NotificationTemplate(BaseModel):
    """Template for a reservation-anchored notification"""
    type: NotificationType
    title: str
    message: str
    trigger_hours: int
    anchor: Optional[NotificationAnchor] = None
    enabled: bool = True
    staff_only: bool = False

    class Config:
        frozen = True


DEFAULT_TEMPLATES: List[NotificationTemplate] = [
    NotificationTemplate(
        type=NotificationType.CHECKIN_REMINDER,
        title="Check-in reminder",
        message=(
            "Hello {guest_name}, your check-in is scheduled for tomorrow at {check_in_time}. "
            "We look forward to your arrival! Flight: {arrival_flight}"
        ),
        trigger_hours=-24,
        anchor=NotificationAnchor.CHECK_IN
    ),
    NotificationTemplate(
        type=NotificationType.CHECKOUT_REMINDER,
        title="Check-out reminder",
        message=(
            "Hello {guest_name}, your check-out is tomorrow at {check_out_time}. "
            "Please get your belongings ready. Flight: {departure_flight}"
        ),
        trigger_hours=-24,
        anchor=NotificationAnchor.CHECK_OUT
    ),
    NotificationTemplate(
        type=NotificationType.WELCOME_MESSAGE,
        title="Welcome!",
        message="Welcome {guest_name}! Your {cabin_name} is ready. Enjoy your stay.",
        trigger_hours=0,
        anchor=NotificationAnchor.CHECK_IN
    ),
    NotificationTemplate(
        type=NotificationType.FLIGHT_DELAY,
        title="Flight alert",
        message="{guest_name}, there may be delays on flight {arrival_flight}. Please stay informed.",
        trigger_hours=-2,
        anchor=NotificationAnchor.CHECK_IN
    ),
    NotificationTemplate(
        type=NotificationType.PAYMENT_REMINDER,
        title="Payment reminder",
        message=(
            "Hello {guest_name}, a balance of {remaining_balance} is still due "
            "for your stay starting {check_in}."
        ),
        trigger_hours=-72,
        anchor=NotificationAnchor.CHECK_IN
    ),
    NotificationTemplate(
        type=NotificationType.CLEANING_SCHEDULE,
        title="Cleaning scheduled",
        message="{cabin_name} is vacated today ({check_out}); schedule cleaning before the next arrival.",
        trigger_hours=0,
        anchor=NotificationAnchor.CHECK_OUT,
        staff_only=True
    ),
    NotificationTemplate(
        type=NotificationType.MAINTENANCE_ALERT,
        title="Scheduled maintenance",
        message="Maintenance has been scheduled for {cabin_name}: {description}",
        trigger_hours=-MAINTENANCE_LEAD_HOURS,
        staff_only=True
    ),
]

PRIORITY_BY_TYPE: Dict[NotificationType, NotificationPriority] = {
    NotificationType.FLIGHT_DELAY: NotificationPriority.URGENT,
    NotificationType.MAINTENANCE_ALERT: NotificationPriority.HIGH,
    NotificationType.PAYMENT_REMINDER: NotificationPriority.HIGH,
    NotificationType.CHECKIN_REMINDER: NotificationPriority.MEDIUM,
    NotificationType.CHECKOUT_REMINDER: NotificationPriority.MEDIUM,
    NotificationType.CLEANING_SCHEDULE: NotificationPriority.MEDIUM,
    NotificationType.WELCOME_MESSAGE: NotificationPriority.LOW,
}


class _Placeholders(dict):
    """Leave unknown placeholders visible instead of failing"""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def priority_for(notification_type: NotificationType) -> NotificationPriority:
    return PRIORITY_BY_TYPE.get(notification_type, NotificationPriority.MEDIUM)


def render(template: str, **values) -> str:
    return template.format_map(_Placeholders(
        {k: ("" if v is None else v) for k, v in values.items()}
    ))


def anchor_instant(
    reservation: Reservation,
    anchor: NotificationAnchor,
    anchor_times: AnchorTimes = AnchorTimes()
) -> datetime:
    if anchor == NotificationAnchor.CHECK_IN:
        return dates.at_time(reservation.check_in, anchor_times.check_in)
    return dates.at_time(reservation.check_out, anchor_times.check_out)


def _reservation_placeholders(reservation: Reservation, anchor_times: AnchorTimes) -> dict:
    return {
        "guest_name": reservation.guest_name,
        "cabin_name": cabin_display_name(reservation.cabin_id),
        "arrival_flight": reservation.arrival_flight,
        "departure_flight": reservation.departure_flight,
        "check_in": dates.format_for_display(reservation.check_in),
        "check_out": dates.format_for_display(reservation.check_out),
        "check_in_time": anchor_times.check_in.strftime("%H:%M"),
        "check_out_time": anchor_times.check_out.strftime("%H:%M"),
        "remaining_balance": f"{reservation.remaining_balance:,.0f}",
    }


def build_reservation_notifications(
    reservation: Reservation,
    now: Optional[datetime] = None,
    templates: Optional[List[NotificationTemplate]] = None,
    anchor_times: AnchorTimes = AnchorTimes()
) -> List[Notification]:
    """Materialize every enabled, reservation-anchored template still in the future"""
    now = now or dates.now()
    templates = DEFAULT_TEMPLATES if templates is None else templates
    values = _reservation_placeholders(reservation, anchor_times)
    notifications = []

    for template in templates:
        if not template.enabled or template.anchor is None:
            continue
        if template.type == NotificationType.PAYMENT_REMINDER and reservation.remaining_balance <= 0:
            continue

        scheduled_at = anchor_instant(reservation, template.anchor, anchor_times) + timedelta(
            hours=template.trigger_hours
        )
        if scheduled_at <= now:
            continue

        notifications.append(Notification(
            type=template.type,
            title=template.title,
            message=render(template.message, **values),
            priority=priority_for(template.type),
            recipient_id=STAFF_RECIPIENT if template.staff_only else str(reservation.reservation_id),
            scheduled_at=scheduled_at,
            metadata={
                "reservation_id": str(reservation.reservation_id),
                "cabin_id": reservation.cabin_id.value,
                "flight_number": (
                    reservation.arrival_flight
                    if template.type == NotificationType.FLIGHT_DELAY else None
                ),
                "anchor": template.anchor.value,
                "trigger_hours": template.trigger_hours,
            },
            created_at=now,
            updated_at=now
        ))

    return notifications


def build_maintenance_notification(
    cabin_id: CabinType,
    maintenance_at: datetime,
    description: str,
    now: Optional[datetime] = None,
    lead_hours: int = MAINTENANCE_LEAD_HOURS
) -> Optional[Notification]:
    """Staff alert ``lead_hours`` before maintenance; None if that moment has passed"""
    now = now or dates.now()
    scheduled_at = maintenance_at - timedelta(hours=lead_hours)
    if scheduled_at <= now:
        return None

    template = next(t for t in DEFAULT_TEMPLATES if t.type == NotificationType.MAINTENANCE_ALERT)
    return Notification(
        type=NotificationType.MAINTENANCE_ALERT,
        title=template.title,
        message=render(
            template.message,
            cabin_name=cabin_display_name(cabin_id),
            description=description
        ),
        priority=priority_for(NotificationType.MAINTENANCE_ALERT),
        recipient_id=STAFF_RECIPIENT,
        scheduled_at=scheduled_at,
        metadata={
            "cabin_id": CabinType(cabin_id).value,
            "maintenance_date": maintenance_at.isoformat(),
            "description": description,
        },
        created_at=now,
        updated_at=now
    )
