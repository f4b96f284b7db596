"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in ticketing/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ticketing.domain.value_objects import SessionWindow


class SessionStatus(str, Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.NO_SHOW}
)


class SessionFilter(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"


class EntryKind(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    REFUND = "refund"


class EntryStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Token:
    """Check-in credential bound to one session and one window.

    ``checksum`` is only meaningful when recomputed by the issuer; a token
    decoded from the wire is untrusted until verified.
    """

    session_id: str
    location_id: str
    user_id: str
    window_start: datetime
    window_end: datetime
    reference_code: str
    checksum: str


@dataclass(frozen=True)
class Session:
    """Domain representation of a booked gym session."""

    id: str
    user_id: str
    location_id: str
    location_name: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    unit_price_per_hour_cents: int
    total_price_cents: int
    currency: str
    status: SessionStatus
    check_in_code: str
    reference_code: str
    token: Token
    created_at: datetime
    updated_at: datetime
    extension_minutes: int = 0
    checked_in_at: datetime | None = None
    checked_out_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    @property
    def window(self) -> SessionWindow:
        return SessionWindow(start=self.start_time, end=self.end_time)


@dataclass(frozen=True)
class LedgerEntry:
    """One append-only wallet transaction. Sign is implied by ``kind``."""

    id: str
    user_id: str
    kind: EntryKind
    amount_cents: int
    balance_before: int
    balance_after: int
    reference_code: str
    status: EntryStatus
    created_at: datetime
    description: str = ""
    related_session_id: str | None = None


@dataclass(frozen=True)
class LocationPricing:
    """Catalog answer for one location."""

    location_id: str
    hourly_rate_cents: int
    currency: str
    name: str = ""
    address: str = ""


@dataclass(frozen=True)
class SessionConfirmation:
    """Summary returned to the caller after a successful booking."""

    session_id: str
    location_id: str
    location_name: str
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    total_price_cents: int
    currency: str
    reference_code: str
    check_in_code: str
    token: str
    created_at: datetime


@dataclass(frozen=True)
class CheckInResult:
    session: Session
    checked_in_at: datetime
    message: str


@dataclass(frozen=True)
class UsageReport:
    """Usage and billing summary of one session, for the location owner."""

    session_id: str
    location_id: str
    user_id: str
    reference_code: str
    booked_start: datetime
    booked_end: datetime
    checked_in_at: datetime | None
    checked_out_at: datetime | None
    booked_minutes: int
    extension_minutes: int
    minutes_used: int
    amount_charged_cents: int
    hourly_rate_cents: int
    currency: str
    status: SessionStatus
