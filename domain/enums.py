"""Domain Enums"""
from enum import Enum


class CabinType(str, Enum):
    SMALL = "small"
    MEDIUM_1 = "medium_1"
    MEDIUM_2 = "medium_2"
    LARGE = "large"


class Season(str, Enum):
    HIGH = "high"
    LOW = "low"


class CheckInStatus(str, Enum):
    PENDING = "pending"
    CHECKED_IN = "checked_in"
    NO_SHOW = "no_show"


class CheckOutStatus(str, Enum):
    PENDING = "pending"
    CHECKED_OUT = "checked_out"
    LATE_CHECKOUT = "late_checkout"


class ReservationStatus(str, Enum):
    PENDING_CHECKIN = "pending_checkin"
    IN_STAY = "in_stay"
    CHECKED_OUT = "checked_out"
    DEPARTED = "departed"


class PaymentStatus(str, Enum):
    PENDING_DEPOSIT = "pending_deposit"
    DEPOSIT_MADE = "deposit_made"
    PENDING_PAYMENT = "pending_payment"
    FULLY_PAID = "fully_paid"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


class NotificationType(str, Enum):
    CHECKIN_REMINDER = "checkin_reminder"
    CHECKOUT_REMINDER = "checkout_reminder"
    WELCOME_MESSAGE = "welcome_message"
    FLIGHT_DELAY = "flight_delay"
    MAINTENANCE_ALERT = "maintenance_alert"
    PAYMENT_REMINDER = "payment_reminder"
    CLEANING_SCHEDULE = "cleaning_schedule"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    READ = "read"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    CANCELLED = "cancelled"
    SNOOZED = "snoozed"


class NotificationAnchor(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"


class DeliveryChannel(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class ConfirmationMethod(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    MANUAL = "manual"
