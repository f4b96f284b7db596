"""Integer-cents pricing.

Every price in the engine goes through ``price_for_minutes`` so that a
whole booking and its extensions round the same way: half a cent and
above rounds up, below rounds down. No floats are involved.
"""

from ticketing.domain.errors import ErrorCode, ValidationError
from ticketing.domain.value_objects import is_strict_int

MINUTES_PER_HOUR = 60


def round_half_up(numerator: int, denominator: int) -> int:
    """Round ``numerator / denominator`` half-up for non-negative operands."""
    return (2 * numerator + denominator) // (2 * denominator)


def price_for_minutes(hourly_rate_cents: int, minutes: int) -> int:
    if not is_strict_int(hourly_rate_cents) or hourly_rate_cents < 0:
        raise ValidationError(ErrorCode.INVALID_AMOUNT, "Hourly rate must be non-negative cents")
    if not is_strict_int(minutes) or minutes <= 0:
        raise ValidationError(ErrorCode.INVALID_DURATION)
    return round_half_up(hourly_rate_cents * minutes, MINUTES_PER_HOUR)


def billable_minutes(minutes_used: int, minimum: int) -> int:
    return max(minimum, minutes_used)
