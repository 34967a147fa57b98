"""Stay pricing and the request validation that gates it"""
from datetime import date
from decimal import Decimal
from typing import Optional

from domain import dates
from domain.enums import CabinType, Season
from domain.value_objects import (
    PriceQuote, PricingRates, ValidationResult, cabin_capacity, cabin_display_name
)

DEFAULT_RATES = PricingRates()
MAX_STAY_DAYS = 30
BOOKING_HORIZON_DAYS = 730


def compute_price(
    season: Season,
    nights: int,
    adults: int,
    children: int,
    rates: PricingRates = DEFAULT_RATES
) -> Decimal:
    """nights x (adults x adult rate + children x child rate); babies are free"""
    if nights <= 0:
        return Decimal("0")
    per_night = adults * rates.adult_rate(season) + children * rates.child
    return per_night * nights


def resolve_total_price(
    season: Season,
    nights: int,
    adults: int,
    children: int,
    use_custom_price: bool = False,
    custom_price: Optional[Decimal] = None,
    rates: PricingRates = DEFAULT_RATES
) -> Decimal:
    """A positive custom price replaces the computed amount entirely"""
    if use_custom_price and custom_price is not None and custom_price > 0:
        return Decimal(custom_price)
    return compute_price(season, nights, adults, children, rates)


def quote(
    season: Season,
    check_in: date,
    check_out: date,
    adults: int,
    children: int = 0,
    babies: int = 0,
    use_custom_price: bool = False,
    custom_price: Optional[Decimal] = None,
    rates: PricingRates = DEFAULT_RATES
) -> PriceQuote:
    """Price breakdown for a prospective stay"""
    nights = dates.nights_between(check_in, check_out)
    adult_rate = rates.adult_rate(season)
    computed = compute_price(season, nights, adults, children, rates)
    total = resolve_total_price(season, nights, adults, children, use_custom_price, custom_price, rates)
    return PriceQuote(
        season=season,
        nights=nights,
        adults=adults,
        children=children,
        babies=babies,
        adult_rate=adult_rate,
        child_rate=rates.child,
        per_night=adults * adult_rate + children * rates.child,
        computed_total=computed,
        total=total,
        custom_price_applied=bool(use_custom_price and custom_price is not None and custom_price > 0),
        currency=rates.currency
    )


def validate_reservation_dates(
    check_in: date,
    check_out: date,
    today: Optional[date] = None,
    max_stay_days: int = MAX_STAY_DAYS,
    booking_horizon_days: int = BOOKING_HORIZON_DAYS
) -> ValidationResult:
    """Check the requested window; each violation has its own message"""
    today = today or dates.today()

    if check_in < today:
        return ValidationResult.fail(
            f"Check-in date cannot be before today ({dates.format_for_display(today)}); "
            f"requested {dates.format_for_display(check_in)}",
            field="check_in",
            current=today,
            requested=check_in
        )

    if check_out <= check_in:
        return ValidationResult.fail(
            "Check-out date must be at least one day after check-in "
            f"(check-in {dates.format_for_display(check_in)}, "
            f"check-out {dates.format_for_display(check_out)})",
            field="check_out",
            current=check_in,
            requested=check_out
        )

    horizon = dates.add_days(today, booking_horizon_days)
    if check_in > horizon:
        return ValidationResult.fail(
            f"Reservations cannot be made more than {booking_horizon_days} days in advance "
            f"(latest check-in {dates.format_for_display(horizon)})",
            field="check_in",
            current=horizon,
            requested=check_in
        )

    nights = dates.nights_between(check_in, check_out)
    if nights > max_stay_days:
        return ValidationResult.fail(
            f"Maximum stay is {max_stay_days} days; requested {nights}",
            field="check_out",
            current=max_stay_days,
            requested=nights
        )

    return ValidationResult.ok()


def validate_cabin_capacity(
    cabin_id: CabinType,
    adults: int,
    children: int,
    babies: int = 0
) -> ValidationResult:
    """Adults and children count toward capacity; babies do not"""
    limit = cabin_capacity(cabin_id)
    total_guests = adults + children
    if total_guests > limit:
        return ValidationResult.fail(
            f"{cabin_display_name(cabin_id)} allows at most {limit} guests (adults + children), "
            f"but {total_guests} were requested ({adults} adults + {children} children). "
            "Babies do not count toward the limit.",
            field="guests",
            current=limit,
            requested=total_guests
        )
    return ValidationResult.ok()
