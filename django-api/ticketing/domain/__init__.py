from ticketing.domain.models import (
    CheckInResult,
    EntryKind,
    EntryStatus,
    LedgerEntry,
    LocationPricing,
    Session,
    SessionConfirmation,
    SessionFilter,
    SessionStatus,
    Token,
    UsageReport,
)
from ticketing.domain.status import as_of, effective_status, is_active
from ticketing.domain.value_objects import CheckInCode, Money, SessionWindow

__all__ = [
    "CheckInCode",
    "CheckInResult",
    "EntryKind",
    "EntryStatus",
    "LedgerEntry",
    "LocationPricing",
    "Money",
    "Session",
    "SessionConfirmation",
    "SessionFilter",
    "SessionStatus",
    "SessionWindow",
    "Token",
    "UsageReport",
    "as_of",
    "effective_status",
    "is_active",
]
