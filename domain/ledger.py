"""Payment ledger: append-only payments and the derived payment status"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from domain import dates
from domain.entities import Reservation
from domain.enums import PaymentStatus
from domain.errors import PaymentNotFoundError, PaymentRejectedError
from domain.value_objects import Payment

DEPOSIT_THRESHOLD = Decimal("0.5")
UNPAID_GRACE_DAYS = 7


def total_paid(reservation: Reservation) -> Decimal:
    return reservation.total_paid


def remaining_balance(reservation: Reservation) -> Decimal:
    return reservation.remaining_balance


def derive_payment_status(
    reservation: Reservation,
    today: Optional[date] = None,
    now: Optional[datetime] = None
) -> PaymentStatus:
    """Evaluate the payment rules in order; the first match wins"""
    today = today or dates.today()
    now = now or dates.now()
    paid = reservation.total_paid

    if reservation.remaining_balance == 0:
        return PaymentStatus.FULLY_PAID

    if paid > 0:
        if paid / reservation.total_price >= DEPOSIT_THRESHOLD:
            return PaymentStatus.PENDING_PAYMENT
        return PaymentStatus.DEPOSIT_MADE

    if reservation.check_out < today:
        return PaymentStatus.OVERDUE

    if (now - reservation.created_at).days > UNPAID_GRACE_DAYS:
        return PaymentStatus.PENDING_PAYMENT

    return PaymentStatus.PENDING_DEPOSIT


def add_payment(reservation: Reservation, payment: Payment) -> Reservation:
    """Return a copy of the reservation with the payment appended.

    Rejected payments raise ``PaymentRejectedError`` and leave the given
    reservation untouched; amounts are never clamped to the balance.
    """
    if payment.amount <= 0:
        raise PaymentRejectedError(
            f"Payment amount must be greater than 0; received {payment.amount}",
            field="amount",
            requested=payment.amount
        )

    balance = reservation.remaining_balance
    if payment.amount > balance:
        raise PaymentRejectedError(
            f"Payment amount {payment.amount} exceeds the remaining balance {balance}",
            field="amount",
            current=balance,
            requested=payment.amount
        )

    updated = reservation.model_copy(deep=True)
    updated.payments = [*updated.payments, payment]
    updated.touch()
    return updated


def remove_payment(reservation: Reservation, payment_id: UUID) -> Reservation:
    """Return a copy of the reservation without the given payment"""
    if not any(p.payment_id == payment_id for p in reservation.payments):
        raise PaymentNotFoundError(payment_id)

    updated = reservation.model_copy(deep=True)
    updated.payments = [p for p in updated.payments if p.payment_id != payment_id]
    updated.touch()
    return updated
