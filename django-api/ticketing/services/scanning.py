"""Owner-side scan validation.

A location's scanner decodes the token shown by a member and asks whether
the member may enter. Scanning is read-only: the check-in itself goes
through ``CheckInValidator``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ticketing.domain import SessionStatus, effective_status
from ticketing.domain.errors import ValidationError
from ticketing.services.tokens import TokenIssuer
from ticketing.stores.interfaces import SessionStore

logger = logging.getLogger(__name__)


class ScanStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    WRONG_LOCATION = "wrong_location"
    CANCELLED = "cancelled"
    ALREADY_CHECKED_IN = "already_checked_in"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"

    @property
    def allowed(self) -> bool:
        return self in (ScanStatus.VALID, ScanStatus.ALREADY_CHECKED_IN)


SCAN_MESSAGES = {
    ScanStatus.VALID: "Valid booking. Entry allowed.",
    ScanStatus.INVALID: "Invalid ticket. This code is not recognised.",
    ScanStatus.WRONG_LOCATION: "This booking is for a different location.",
    ScanStatus.CANCELLED: "This booking has been cancelled.",
    ScanStatus.ALREADY_CHECKED_IN: "Member already checked in. Re-entry allowed.",
    ScanStatus.NOT_STARTED: "This session has not started yet.",
    ScanStatus.EXPIRED: "This session has ended.",
}


@dataclass(frozen=True)
class ScanResult:
    status: ScanStatus
    message: str
    session_id: str | None = None
    user_id: str | None = None
    remaining_minutes: int = 0

    @property
    def allowed(self) -> bool:
        return self.status.allowed


class ScanValidator:
    def __init__(self, store: SessionStore, issuer: TokenIssuer) -> None:
        self._store = store
        self._issuer = issuer

    def validate(self, wire: str, location_id: str, now: datetime) -> ScanResult:
        result = self._validate(wire, location_id, now)
        if result.allowed:
            logger.info("Scan at %s accepted for session %s", location_id, result.session_id)
        else:
            logger.warning("Scan at %s rejected: %s", location_id, result.status.value)
        return result

    def _validate(self, wire: str, location_id: str, now: datetime) -> ScanResult:
        try:
            token = self._issuer.deserialize(wire)
        except ValidationError:
            return _result(ScanStatus.INVALID)
        if not self._issuer.verify(token):
            return _result(ScanStatus.INVALID, "Invalid ticket. Integrity check failed.")
        if token.location_id != location_id:
            return _result(ScanStatus.WRONG_LOCATION, session_id=token.session_id)

        session = self._store.get(token.session_id)
        if session is None:
            return _result(ScanStatus.INVALID)
        if session.token.checksum != token.checksum:
            return _result(
                ScanStatus.INVALID,
                "Invalid ticket. A newer ticket was issued for this booking.",
                session_id=session.id,
            )

        ids = {"session_id": session.id, "user_id": session.user_id}
        if session.status == SessionStatus.CANCELLED:
            return _result(ScanStatus.CANCELLED, **ids)
        status = effective_status(session, now)
        if self._issuer.is_expired(token, now) or status in (
            SessionStatus.COMPLETED,
            SessionStatus.NO_SHOW,
        ):
            return _result(ScanStatus.EXPIRED, **ids)
        if self._issuer.is_not_started(token, now):
            return _result(ScanStatus.NOT_STARTED, **ids)

        remaining = self._issuer.remaining_minutes(token, now)
        if status == SessionStatus.CHECKED_IN:
            return _result(ScanStatus.ALREADY_CHECKED_IN, remaining_minutes=remaining, **ids)
        return _result(ScanStatus.VALID, remaining_minutes=remaining, **ids)


def _result(status: ScanStatus, message: str | None = None, **fields) -> ScanResult:
    return ScanResult(status=status, message=message or SCAN_MESSAGES[status], **fields)
