"""Notification delivery collaborators"""
from abc import ABC, abstractmethod

import structlog

from domain.entities import Notification
from domain.enums import DeliveryChannel

logger = structlog.get_logger(__name__)


class NotificationSender(ABC):
    """Hands a notification to an external transport"""

    @abstractmethod
    async def send(self, notification: Notification, channel: DeliveryChannel) -> bool:
        """Return True once the transport accepted the notification"""
        pass


class LoggingNotificationSender(NotificationSender):
    """Writes the notification to the log instead of transmitting it"""

    async def send(self, notification: Notification, channel: DeliveryChannel) -> bool:
        logger.info(
            "notification.dispatched",
            notification_id=str(notification.notification_id),
            type=notification.type.value,
            priority=notification.priority.value,
            recipient_id=notification.recipient_id,
            channel=channel.value,
            title=notification.title,
        )
        return True
