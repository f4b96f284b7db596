"""Domain primitives that enforce validity at creation time."""

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Self

from ticketing.domain.errors import ErrorCode, ValidationError

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_SUFFIX_LENGTH = 6

CHECK_IN_PREFIX = "CHK"
BOOKING_PREFIX = "GF"
TOP_UP_PREFIX = "WL"
REFUND_PREFIX = "REF"

_CHECK_IN_PATTERN = re.compile(
    rf"^{CHECK_IN_PREFIX}-[A-Z0-9]{{{CODE_SUFFIX_LENGTH}}}$", re.IGNORECASE
)

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}


def _random_suffix() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))


def is_strict_int(value: object) -> bool:
    """True for ints, excluding bools."""
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Money:
    """Amount in minor currency units."""

    cents: int
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if not is_strict_int(self.cents):
            raise ValueError("Money must be a whole number of cents")
        if self.cents < 0:
            raise ValueError("Money amount cannot be negative")

    def __str__(self) -> str:
        symbol = CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")
        return f"{symbol}{self.cents // 100}.{self.cents % 100:02d}"


@dataclass(frozen=True)
class CheckInCode:
    """Short human-enterable secret, e.g. ``CHK-ABC123``."""

    value: str

    @classmethod
    def generate(cls) -> Self:
        return cls(value=f"{CHECK_IN_PREFIX}-{_random_suffix()}")

    @classmethod
    def from_string(cls, value: str) -> Self:
        if not is_valid_check_in_format(value):
            raise ValidationError(ErrorCode.INVALID_CODE_FORMAT)
        return cls(value=value.strip())

    def matches(self, entered: str) -> bool:
        return self.value.upper() == entered.strip().upper()

    def __str__(self) -> str:
        return self.value


def is_valid_check_in_format(value: object) -> bool:
    return isinstance(value, str) and _CHECK_IN_PATTERN.match(value.strip()) is not None


def new_booking_reference() -> str:
    return f"{BOOKING_PREFIX}-{_random_suffix()}"


def new_top_up_reference() -> str:
    return f"{TOP_UP_PREFIX}-{_random_suffix()}"


def refund_reference(booking_reference: str) -> str:
    return f"{REFUND_PREFIX}-{booking_reference}"


@dataclass(frozen=True)
class SessionWindow:
    """The half-open interval ``[start, end)`` of a session.

    Both ends are timezone-aware and truncated to whole seconds so the
    window survives the token wire format unchanged.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        for moment in (self.start, self.end):
            if not isinstance(moment, datetime) or moment.utcoffset() is None:
                raise ValidationError(
                    ErrorCode.INVALID_WINDOW, "Session times must be timezone-aware"
                )
        if self.end <= self.start:
            raise ValidationError(ErrorCode.INVALID_WINDOW)

    @classmethod
    def starting_at(cls, start: datetime, minutes: int) -> Self:
        if not is_strict_int(minutes) or minutes <= 0:
            raise ValidationError(ErrorCode.INVALID_DURATION)
        if not isinstance(start, datetime):
            raise ValidationError(ErrorCode.INVALID_WINDOW, "Session start must be a datetime")
        start = start.replace(microsecond=0)
        return cls(start=start, end=start + timedelta(minutes=minutes))

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    def extended_by(self, minutes: int) -> "SessionWindow":
        if not is_strict_int(minutes) or minutes <= 0:
            raise ValidationError(ErrorCode.INVALID_DURATION)
        return SessionWindow(start=self.start, end=self.end + timedelta(minutes=minutes))
