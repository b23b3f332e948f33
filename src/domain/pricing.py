"""
Price calculation. Pure code, no I/O.

A boat has a three-tier rate schedule.  The booking mode picks the tier;
an optional captain adds a fixed surcharge that depends on the mode.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from src.domain.errors import InvalidModeError, ValidationError


class BookingMode(str, Enum):
    PER_HOUR = "per_hour"
    HALF_DAY = "half_day"
    FULL_DAY = "full_day"

    @classmethod
    def parse(cls, value: "BookingMode | str") -> "BookingMode":
        """Return the mode for a raw value, or raise InvalidModeError."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidModeError(f"Unknown booking mode: {value!r}") from None


CAPTAIN_SURCHARGE: dict[BookingMode, Decimal] = {
    BookingMode.PER_HOUR: Decimal("100"),
    BookingMode.HALF_DAY: Decimal("200"),
    BookingMode.FULL_DAY: Decimal("400"),
}


@dataclass(frozen=True)
class RateSchedule:
    """Prices for one boat, in major currency units."""

    hourly_rate: Decimal
    half_day_rate: Decimal
    full_day_rate: Decimal

    def __post_init__(self):
        for name in ("hourly_rate", "half_day_rate", "full_day_rate"):
            value = Decimal(str(getattr(self, name)))
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
            object.__setattr__(self, name, value)


def calculate_price(
    rates: RateSchedule,
    mode: BookingMode | str,
    duration_hours: int,
    include_captain: bool = False,
) -> Decimal:
    """
    Price of one booking.

    duration_hours only affects PER_HOUR bookings; half and full days are
    flat.  Raises InvalidModeError for an unrecognised mode.
    """
    mode = BookingMode.parse(mode)

    if mode is BookingMode.PER_HOUR:
        if duration_hours < 1:
            raise ValidationError(f"duration_hours must be at least 1, got {duration_hours}")
        price = rates.hourly_rate * duration_hours
    elif mode is BookingMode.HALF_DAY:
        price = rates.half_day_rate
    else:
        price = rates.full_day_rate

    if include_captain:
        price += CAPTAIN_SURCHARGE[mode]
    return price


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount to integer cents, rounding half up."""
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)
