"""
Centralized application configuration
"""
from decimal import Decimal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

from domain import dates
from domain.value_objects import AnchorTimes, PricingRates

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # ============================================
    # Application Settings
    # ============================================
    APP_NAME: str = "Cabin Reservation API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # ============================================
    # Pricing (CLP per guest per night)
    # ============================================
    ADULT_RATE_HIGH: Decimal = Decimal("30000")
    ADULT_RATE_LOW: Decimal = Decimal("25000")
    CHILD_RATE: Decimal = Decimal("15000")
    CURRENCY: str = "CLP"

    # ============================================
    # Booking Window
    # ============================================
    MAX_STAY_DAYS: int = 30
    BOOKING_HORIZON_DAYS: int = 730

    # ============================================
    # Stay Lifecycle
    # ============================================
    CHECK_IN_TIME: str = "14:00"
    CHECK_OUT_TIME: str = "11:00"
    EXPIRY_GRACE_DAYS: int = 1
    AUTO_MARK_NO_SHOW: bool = True

    # ============================================
    # Notifications
    # ============================================
    DEFAULT_SNOOZE_HOURS: int = 24
    MAX_SNOOZE_HOURS: int = 168

    # ============================================
    # Background Work
    # ============================================
    DASHBOARD_CACHE_TTL_SECONDS: int = 120
    MAINTENANCE_INTERVAL_MINUTES: int = 5
    MAINTENANCE_ENABLED: bool = True

    class Config:
        case_sensitive = True
        env_file = ".env"

    def pricing_rates(self) -> PricingRates:
        return PricingRates(
            adult_high=self.ADULT_RATE_HIGH,
            adult_low=self.ADULT_RATE_LOW,
            child=self.CHILD_RATE,
            currency=self.CURRENCY
        )

    def anchor_times(self) -> AnchorTimes:
        return AnchorTimes(
            check_in=dates.parse_time(self.CHECK_IN_TIME),
            check_out=dates.parse_time(self.CHECK_OUT_TIME)
        )


# Create global settings instance
settings = Settings()
