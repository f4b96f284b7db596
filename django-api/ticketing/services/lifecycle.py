"""Session lifecycle coordinator - the engine's public surface.

The coordinator orchestrates but owns no data: session rows change only
through the ``SessionStore`` and money moves only through the ``Ledger``.

Operations that touch both run inside ``ledger.hold(user_id)`` and take
the session lock inside it, never the other way round. Catalog lookups
and input validation happen before the lock is taken. When a step fails
after money has moved, a compensating refund is appended and the
original error is re-raised.
"""

import logging
import uuid
from datetime import datetime

from ticketing.domain import (
    CheckInCode,
    CheckInResult,
    LedgerEntry,
    Session,
    SessionConfirmation,
    SessionFilter,
    SessionStatus,
    SessionWindow,
    UsageReport,
    as_of,
    effective_status,
)
from ticketing.domain.errors import ConflictError, ErrorCode, StateError, ValidationError
from ticketing.domain.pricing import billable_minutes, price_for_minutes
from ticketing.domain.value_objects import (
    is_strict_int,
    new_booking_reference,
    refund_reference,
)
from ticketing.services.checkin import CheckInValidator
from ticketing.services.faults import FaultInjector
from ticketing.services.ledger import Ledger
from ticketing.services.scanning import ScanResult, ScanValidator
from ticketing.services.tokens import TokenIssuer
from ticketing.stores.interfaces import Catalog, Clock, SessionStore

logger = logging.getLogger(__name__)


def _require_id(value: object, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(ErrorCode.INVALID_INPUT, f"{label} is required")
    return value


class SessionLifecycleCoordinator:
    """Facade over ledger, token issuer, session store and validators."""

    def __init__(
        self,
        sessions: SessionStore,
        ledger: Ledger,
        issuer: TokenIssuer,
        catalog: Catalog,
        clock: Clock,
        *,
        faults: FaultInjector | None = None,
        max_session_minutes: int = 480,
        minimum_billable_minutes: int = 15,
    ) -> None:
        self._sessions = sessions
        self._ledger = ledger
        self._issuer = issuer
        self._catalog = catalog
        self._clock = clock
        self._faults = faults or FaultInjector()
        self._max_session_minutes = max_session_minutes
        self._minimum_billable_minutes = minimum_billable_minutes
        self._validator = CheckInValidator(sessions, self._faults)
        self._scanner = ScanValidator(sessions, issuer)

    @property
    def currency(self) -> str:
        return self._ledger.currency

    # -- writes ---------------------------------------------------------

    def create_session(
        self,
        user_id: str,
        location_id: str,
        start: datetime,
        duration_minutes: int,
    ) -> SessionConfirmation:
        """Book, pay for and issue a session.

        Raises:
            ValidationError: For bad ids, durations or windows.
            NotFoundError: If the location is unknown.
            ConflictError: If the user already has an active session.
            FundsError: If the wallet cannot cover the price. Nothing is
                written in that case.
        """
        _require_id(user_id, "User id")
        _require_id(location_id, "Location id")
        if not is_strict_int(duration_minutes) or not (
            0 < duration_minutes <= self._max_session_minutes
        ):
            raise ValidationError(
                ErrorCode.INVALID_DURATION,
                f"Duration must be between 1 and {self._max_session_minutes} minutes",
            )
        window = SessionWindow.starting_at(start, duration_minutes)
        now = self._clock.now()
        if window.end <= now:
            raise ValidationError(ErrorCode.INVALID_WINDOW, "Session must end in the future")

        pricing = self._catalog.pricing_for(location_id)
        total = price_for_minutes(pricing.hourly_rate_cents, duration_minutes)
        location_name = pricing.name or location_id

        with self._ledger.hold(user_id):
            if self._sessions.active_for_user(user_id, now) is not None:
                logger.warning("Booking rejected for user %s: active session exists", user_id)
                raise ConflictError(ErrorCode.ACTIVE_SESSION_EXISTS)

            session_id = str(uuid.uuid4())
            reference = new_booking_reference()
            if total > 0:
                self._ledger.debit(
                    user_id,
                    total,
                    reference,
                    related_session_id=session_id,
                    description=f"Gym session at {location_name}",
                )
            try:
                token = self._issuer.issue(
                    session_id, location_id, user_id, window.start, window.end, reference
                )
                session = Session(
                    id=session_id,
                    user_id=user_id,
                    location_id=location_id,
                    location_name=location_name,
                    start_time=window.start,
                    end_time=window.end,
                    duration_minutes=duration_minutes,
                    unit_price_per_hour_cents=pricing.hourly_rate_cents,
                    total_price_cents=total,
                    currency=pricing.currency,
                    status=SessionStatus.CONFIRMED,
                    check_in_code=CheckInCode.generate().value,
                    reference_code=reference,
                    token=token,
                    created_at=now,
                    updated_at=now,
                )
                self._faults.before_insert(session)
                session = self._sessions.insert(session, now)
            except Exception:
                self._compensate(user_id, total, reference, session_id, "booking")
                raise

        logger.info(
            "Session %s (%s) created for user %s at %s, %s cents",
            session.id,
            reference,
            user_id,
            location_id,
            total,
        )
        return SessionConfirmation(
            session_id=session.id,
            location_id=session.location_id,
            location_name=session.location_name,
            start_time=session.start_time,
            end_time=session.end_time,
            duration_minutes=session.duration_minutes,
            total_price_cents=session.total_price_cents,
            currency=session.currency,
            reference_code=session.reference_code,
            check_in_code=session.check_in_code,
            token=self._issuer.serialize(session.token),
            created_at=session.created_at,
        )

    def check_in(self, session_id: str, entered_code: str) -> CheckInResult:
        return self._validator.check_in(entered_code, session_id, self._clock.now())

    def extend_session(self, session_id: str, additional_minutes: int) -> Session:
        """Widen a checked-in session and charge for the extra minutes.

        The debit happens before the window changes; if the wallet cannot
        cover it the session is left untouched.

        Raises:
            ValidationError: For a non-positive or too long extension.
            StateError: If the session is not checked in or has ended.
            FundsError: If the wallet cannot cover the extension.
        """
        if not is_strict_int(additional_minutes) or additional_minutes <= 0:
            raise ValidationError(ErrorCode.INVALID_DURATION)
        owner = self._sessions.find_by_id(session_id).user_id
        now = self._clock.now()

        with self._ledger.hold(owner):
            session = self._sessions.find_by_id(session_id)
            if session.status != SessionStatus.CHECKED_IN:
                raise StateError(ErrorCode.UNEXPECTED_STATUS, "Only checked-in sessions can be extended")
            if now >= session.end_time:
                raise StateError(ErrorCode.OUTSIDE_WINDOW)
            if session.duration_minutes + additional_minutes > self._max_session_minutes:
                raise ValidationError(
                    ErrorCode.INVALID_DURATION,
                    f"Sessions cannot exceed {self._max_session_minutes} minutes",
                )

            price = price_for_minutes(session.unit_price_per_hour_cents, additional_minutes)
            window = session.window.extended_by(additional_minutes)
            token = self._issuer.issue(
                session.id,
                session.location_id,
                session.user_id,
                window.start,
                window.end,
                session.reference_code,
            )
            if price > 0:
                self._ledger.debit(
                    owner,
                    price,
                    session.reference_code,
                    related_session_id=session.id,
                    description=(
                        f"Extension of {additional_minutes} minutes at {session.location_name}"
                    ),
                )
            try:
                updated = self._sessions.extend(session_id, token, additional_minutes, price, now)
            except Exception:
                self._compensate(owner, price, session.reference_code, session.id, "extension")
                raise

        logger.info(
            "Session %s extended by %s minutes to %s, %s cents",
            session_id,
            additional_minutes,
            updated.end_time.isoformat(),
            price,
        )
        return as_of(updated, now)

    def check_out(self, session_id: str) -> Session:
        now = self._clock.now()
        updated = self._sessions.mark_completed(session_id, now)
        logger.info("Session %s checked out at %s", session_id, now.isoformat())
        return updated

    def cancel_session(self, session_id: str, reason: str | None = None) -> Session:
        """Cancel a confirmed session before it starts and refund it in full.

        Raises:
            NotFoundError: If the session does not exist.
            StateError: If it is not confirmed or has already started.
        """
        owner = self._sessions.find_by_id(session_id).user_id
        now = self._clock.now()
        with self._ledger.hold(owner):
            updated = self._sessions.cancel(session_id, reason, now)
            if updated.total_price_cents > 0:
                self._ledger.refund(
                    owner,
                    updated.total_price_cents,
                    refund_reference(updated.reference_code),
                    related_session_id=updated.id,
                    description=f"Refund for cancelled session at {updated.location_name}",
                )
        logger.info("Session %s cancelled, refunded %s cents", session_id, updated.total_price_cents)
        return updated

    def top_up(self, user_id: str, amount_cents: int) -> LedgerEntry:
        _require_id(user_id, "User id")
        return self._ledger.top_up(user_id, amount_cents)

    # -- reads ----------------------------------------------------------

    def get_session(self, session_id: str) -> Session:
        return as_of(self._sessions.find_by_id(session_id), self._clock.now())

    def list_sessions(self, user_id: str, session_filter: SessionFilter | str) -> list[Session]:
        try:
            session_filter = SessionFilter(session_filter)
        except ValueError as exc:
            raise ValidationError(
                ErrorCode.INVALID_INPUT, "Filter must be 'upcoming' or 'past'"
            ) from exc
        now = self._clock.now()
        return [as_of(s, now) for s in self._sessions.list_for_user(user_id, session_filter, now)]

    def active_session(self, user_id: str) -> Session | None:
        now = self._clock.now()
        session = self._sessions.active_for_user(user_id, now)
        return as_of(session, now) if session is not None else None

    def get_balance(self, user_id: str) -> int:
        return self._ledger.current_balance(user_id)

    def list_ledger(self, user_id: str) -> list[LedgerEntry]:
        return self._ledger.entries(user_id)

    def validate_scan(self, wire: str, location_id: str) -> ScanResult:
        return self._scanner.validate(wire, location_id, self._clock.now())

    def usage_report(self, session_id: str) -> UsageReport:
        session = self._sessions.find_by_id(session_id)
        now = self._clock.now()
        status = effective_status(session, now)

        minutes_used = 0
        if session.checked_in_at is not None:
            until = session.checked_out_at or min(now, session.end_time)
            elapsed = int((until - session.checked_in_at).total_seconds() // 60)
            minutes_used = billable_minutes(elapsed, self._minimum_billable_minutes)

        charged = 0 if status == SessionStatus.CANCELLED else session.total_price_cents
        return UsageReport(
            session_id=session.id,
            location_id=session.location_id,
            user_id=session.user_id,
            reference_code=session.reference_code,
            booked_start=session.start_time,
            booked_end=session.end_time,
            checked_in_at=session.checked_in_at,
            checked_out_at=session.checked_out_at,
            booked_minutes=session.duration_minutes - session.extension_minutes,
            extension_minutes=session.extension_minutes,
            minutes_used=minutes_used,
            amount_charged_cents=charged,
            hourly_rate_cents=session.unit_price_per_hour_cents,
            currency=session.currency,
            status=status,
        )

    # -- helpers --------------------------------------------------------

    def _compensate(
        self, user_id: str, amount_cents: int, reference: str, session_id: str, what: str
    ) -> None:
        if amount_cents <= 0:
            return
        self._ledger.refund(
            user_id,
            amount_cents,
            refund_reference(reference),
            related_session_id=session_id,
            description=f"Reversal of failed {what}",
        )
        logger.warning(
            "Compensated %s cents to user %s after failed %s of session %s",
            amount_cents,
            user_id,
            what,
            session_id,
        )
