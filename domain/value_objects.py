"""Domain Value Objects"""
from pydantic import BaseModel, Field, validator
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID, uuid4
from typing import Any, Optional

from domain import dates
from domain.enums import CabinType, PaymentMethod, Season


CABIN_CAPACITY = {
    CabinType.SMALL: 3,
    CabinType.MEDIUM_1: 4,
    CabinType.MEDIUM_2: 4,
    CabinType.LARGE: 6,
}

CABIN_DISPLAY_NAMES = {
    CabinType.SMALL: "Cabaña Pequeña",
    CabinType.MEDIUM_1: "Cabaña Mediana 1",
    CabinType.MEDIUM_2: "Cabaña Mediana 2",
    CabinType.LARGE: "Cabaña Grande",
}


def cabin_capacity(cabin_id: CabinType) -> int:
    """Maximum adults + children for a cabin"""
    return CABIN_CAPACITY[CabinType(cabin_id)]


def cabin_display_name(cabin_id: CabinType) -> str:
    return CABIN_DISPLAY_NAMES[CabinType(cabin_id)]


class DateRange(BaseModel):
    """Value Object for a stay; check-out day is not occupied"""
    check_in: date
    check_out: date

    @validator('check_out')
    def check_out_after_check_in(cls, v, values):
        if 'check_in' in values and v <= values['check_in']:
            raise ValueError('Check-out must be after check-in')
        return v

    def nights(self) -> int:
        """Calculate number of nights"""
        return dates.nights_between(self.check_in, self.check_out)

    def overlaps(self, other: "DateRange") -> bool:
        """Half-open overlap; same-day turnover is not a conflict"""
        return self.check_in < other.check_out and self.check_out > other.check_in

    def contains(self, day: date) -> bool:
        """Check if a day falls inside the occupied nights"""
        return self.check_in <= day < self.check_out

    class Config:
        frozen = True


class GuestCount(BaseModel):
    """Value Object for guest composition"""
    adults: int = Field(ge=1)
    children: int = Field(ge=0, default=0)
    babies: int = Field(ge=0, default=0)

    @property
    def occupancy(self) -> int:
        """Guests counted toward capacity; babies are excluded"""
        return self.adults + self.children

    class Config:
        frozen = True


class PricingRates(BaseModel):
    """Nightly per-guest rates"""
    adult_high: Decimal = Decimal("30000")
    adult_low: Decimal = Decimal("25000")
    child: Decimal = Decimal("15000")
    currency: str = "CLP"

    def adult_rate(self, season: Season) -> Decimal:
        return self.adult_high if Season(season) == Season.HIGH else self.adult_low

    class Config:
        frozen = True


class AnchorTimes(BaseModel):
    """Wall-clock times that check-in and check-out happen at"""
    check_in: time = time(14, 0)
    check_out: time = time(11, 0)

    class Config:
        frozen = True


class Payment(BaseModel):
    """Child Entity for a single payment in the ledger"""
    payment_id: UUID = Field(default_factory=uuid4)
    amount: Decimal
    payment_date: date = Field(default_factory=dates.today)
    method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = None
    created_by: str = "SYSTEM"
    created_at: datetime = Field(default_factory=dates.now)

    class Config:
        from_attributes = True


class ValidationResult(BaseModel):
    """Outcome of a pure validation rule"""
    is_valid: bool
    error: Optional[str] = None
    field: Optional[str] = None
    current: Any = None
    requested: Any = None

    @staticmethod
    def ok() -> "ValidationResult":
        return ValidationResult(is_valid=True)

    @staticmethod
    def fail(error: str, field: str, current: Any = None, requested: Any = None) -> "ValidationResult":
        return ValidationResult(
            is_valid=False,
            error=error,
            field=field,
            current=current,
            requested=requested
        )


class AvailabilityResult(BaseModel):
    """Outcome of an availability check, with remediation when unavailable"""
    available: bool
    cabin_id: CabinType
    check_in: date
    check_out: date
    next_available_date: Optional[date] = None


class CabinAvailability(BaseModel):
    """One row of the cabin availability matrix"""
    cabin_id: CabinType
    display_name: str
    is_available: bool
    max_capacity: int


class PriceQuote(BaseModel):
    """Fully-derived price for a prospective stay"""
    season: Season
    nights: int
    adults: int
    children: int
    babies: int = 0
    adult_rate: Decimal
    child_rate: Decimal
    per_night: Decimal
    computed_total: Decimal
    total: Decimal
    custom_price_applied: bool = False
    currency: str = "CLP"
