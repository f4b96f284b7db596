"""Check-in validation.

``CheckInValidator.check_in`` runs a fixed sequence of checks and stops at
the first failure, each failure carrying its own error code:

1. code format                      -> INVALID_CODE_FORMAT
2. session exists                   -> SESSION_NOT_FOUND
3. session not cancelled            -> SESSION_CANCELLED
4. session not already checked in   -> ALREADY_CHECKED_IN
5. effective status is confirmed    -> SESSION_NOT_ACTIVATABLE
6. code matches the stored code     -> CODE_MISMATCH
7. commit through the store         -> SESSION_NOT_STARTED and the above
   when the compare-and-swap loses a race or the window is not open yet

The format check runs before any store lookup.
"""

import logging
from datetime import datetime

from ticketing.domain import CheckInCode, CheckInResult, Session, SessionStatus, effective_status
from ticketing.domain.errors import (
    CheckInError,
    ErrorCode,
    NotFoundError,
    StateError,
    ValidationError,
)
from ticketing.services.faults import FaultInjector
from ticketing.stores.interfaces import SessionStore

logger = logging.getLogger(__name__)

CHECK_IN_MESSAGE = "Successfully checked in! Enjoy your workout at {location}."


class CheckInValidator:
    def __init__(self, store: SessionStore, faults: FaultInjector | None = None) -> None:
        self._store = store
        self._faults = faults or FaultInjector()

    def check_in(self, entered_code: str, session_id: str, now: datetime) -> CheckInResult:
        """Validate ``entered_code`` against a session and check it in.

        Raises:
            CheckInError: With the code of the first failed step.
        """
        try:
            return self._check_in(entered_code, session_id, now)
        except CheckInError as exc:
            logger.warning("Check-in rejected for session %s: %s", session_id, exc.code.value)
            raise

    def _check_in(self, entered_code: str, session_id: str, now: datetime) -> CheckInResult:
        try:
            entered = CheckInCode.from_string(entered_code)
        except ValidationError as exc:
            raise CheckInError(ErrorCode.INVALID_CODE_FORMAT) from exc
        self._faults.before_check_in(entered_code, session_id)

        session = self._store.get(session_id)
        if session is None:
            raise CheckInError(ErrorCode.SESSION_NOT_FOUND)
        self._reject_unusable(session, now)

        if not entered.matches(session.check_in_code):
            raise CheckInError(ErrorCode.CODE_MISMATCH)

        try:
            updated = self._store.mark_checked_in(session_id, now)
        except NotFoundError as exc:
            raise CheckInError(ErrorCode.SESSION_NOT_FOUND) from exc
        except StateError as exc:
            raise self._commit_failure(exc, session_id, now) from exc

        logger.info("Session %s checked in at %s", session_id, now.isoformat())
        return CheckInResult(
            session=updated,
            checked_in_at=now,
            message=CHECK_IN_MESSAGE.format(location=updated.location_name or updated.location_id),
        )

    @staticmethod
    def _reject_unusable(session: Session, now: datetime) -> None:
        if session.status == SessionStatus.CANCELLED:
            raise CheckInError(ErrorCode.SESSION_CANCELLED)
        if session.checked_in_at is not None or session.status == SessionStatus.CHECKED_IN:
            raise CheckInError(ErrorCode.ALREADY_CHECKED_IN)
        if effective_status(session, now) != SessionStatus.CONFIRMED:
            raise CheckInError(ErrorCode.SESSION_NOT_ACTIVATABLE)

    def _commit_failure(self, exc: StateError, session_id: str, now: datetime) -> CheckInError:
        if exc.code == ErrorCode.ALREADY_CHECKED_IN:
            return CheckInError(ErrorCode.ALREADY_CHECKED_IN)
        if exc.code == ErrorCode.OUTSIDE_WINDOW:
            session = self._store.get(session_id)
            if session is not None and now < session.start_time:
                return CheckInError(ErrorCode.SESSION_NOT_STARTED)
            return CheckInError(ErrorCode.SESSION_NOT_ACTIVATABLE)
        # lost the compare-and-swap: report what the winner left behind
        session = self._store.get(session_id)
        if session is None:
            return CheckInError(ErrorCode.SESSION_NOT_FOUND)
        try:
            self._reject_unusable(session, now)
        except CheckInError as reason:
            return reason
        return CheckInError(ErrorCode.SESSION_NOT_ACTIVATABLE)
