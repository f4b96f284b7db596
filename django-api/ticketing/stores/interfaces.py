"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. The abstract methods
are the atomic primitives a backend has to provide; the concrete methods
on ``SessionStore`` encode the session state machine on top of them so
every backend enforces the same guard table.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import replace
from datetime import datetime

from ticketing.domain import (
    LedgerEntry,
    LocationPricing,
    Session,
    SessionFilter,
    SessionStatus,
    Token,
    is_active,
)
from ticketing.domain.errors import ErrorCode, NotFoundError, StateError

SessionChange = Callable[[Session], Session]


class SessionStore(ABC):
    """Interface for session persistence operations."""

    @abstractmethod
    def insert(self, session: Session, now: datetime) -> Session:
        """Persist a new session.

        Raises:
            ConflictError: If the user already has an active session at
                ``now``. The check runs in the same critical section as
                the write.
        """
        ...

    @abstractmethod
    def get(self, session_id: str) -> Session | None:
        """Return a session by ID, or None if not found."""
        ...

    @abstractmethod
    def sessions_for_user(self, user_id: str) -> list[Session]:
        """Return every session of a user, in no particular order."""
        ...

    @abstractmethod
    def transition(
        self,
        session_id: str,
        expected_status: SessionStatus,
        change: SessionChange,
    ) -> Session:
        """Compare-and-swap update of one session.

        Inside the session's critical section the stored status must equal
        ``expected_status``; ``change`` then maps the stored session to its
        replacement, which is persisted.

        Raises:
            NotFoundError: If the session does not exist.
            StateError: If the status does not match, or ``change`` rejects
                the transition.
        """
        ...

    def find_by_id(self, session_id: str) -> Session:
        session = self.get(session_id)
        if session is None:
            raise NotFoundError(ErrorCode.SESSION_NOT_FOUND)
        return session

    def active_for_user(self, user_id: str, now: datetime) -> Session | None:
        active = [s for s in self.sessions_for_user(user_id) if is_active(s, now)]
        active.sort(key=lambda s: (s.start_time, s.id))
        return active[0] if active else None

    def list_for_user(
        self, user_id: str, session_filter: SessionFilter, now: datetime
    ) -> list[Session]:
        """Upcoming: not cancelled and not yet ended, soonest first.
        Past: everything else, most recent first. Ties break on id."""
        sessions = self.sessions_for_user(user_id)
        upcoming = [
            s
            for s in sessions
            if s.status != SessionStatus.CANCELLED and s.end_time > now
        ]
        if session_filter == SessionFilter.UPCOMING:
            return sorted(upcoming, key=lambda s: (s.start_time, s.id))
        upcoming_ids = {s.id for s in upcoming}
        past = [s for s in sessions if s.id not in upcoming_ids]
        # two stable passes: id descending, then start descending
        past.sort(key=lambda s: s.id, reverse=True)
        past.sort(key=lambda s: s.start_time, reverse=True)
        return past

    def mark_checked_in(self, session_id: str, at: datetime) -> Session:
        def change(session: Session) -> Session:
            if session.checked_in_at is not None:
                raise StateError(ErrorCode.ALREADY_CHECKED_IN)
            if not session.window.contains(at):
                raise StateError(ErrorCode.OUTSIDE_WINDOW)
            return replace(
                session,
                status=SessionStatus.CHECKED_IN,
                checked_in_at=at,
                updated_at=at,
            )

        return self.transition(session_id, SessionStatus.CONFIRMED, change)

    def mark_completed(self, session_id: str, at: datetime) -> Session:
        # no window guard: a session left open past its end still gets
        # its checkout stamped
        def change(session: Session) -> Session:
            return replace(
                session,
                status=SessionStatus.COMPLETED,
                checked_out_at=at,
                updated_at=at,
            )

        return self.transition(session_id, SessionStatus.CHECKED_IN, change)

    def cancel(self, session_id: str, reason: str | None, now: datetime) -> Session:
        def change(session: Session) -> Session:
            if now >= session.start_time:
                raise StateError(ErrorCode.CANCELLATION_CLOSED)
            return replace(
                session,
                status=SessionStatus.CANCELLED,
                cancelled_at=now,
                cancellation_reason=reason,
                updated_at=now,
            )

        return self.transition(session_id, SessionStatus.CONFIRMED, change)

    def extend(
        self,
        session_id: str,
        token: Token,
        added_minutes: int,
        added_price_cents: int,
        at: datetime,
    ) -> Session:
        """Widen a checked-in session to ``token.window_end``."""

        def change(session: Session) -> Session:
            if at >= session.end_time:
                raise StateError(ErrorCode.OUTSIDE_WINDOW)
            if token.window_end <= session.end_time:
                raise StateError(ErrorCode.INVALID_WINDOW)
            return replace(
                session,
                end_time=token.window_end,
                duration_minutes=session.duration_minutes + added_minutes,
                extension_minutes=session.extension_minutes + added_minutes,
                total_price_cents=session.total_price_cents + added_price_cents,
                token=token,
                updated_at=at,
            )

        return self.transition(session_id, SessionStatus.CHECKED_IN, change)


class LedgerStore(ABC):
    """Interface for per-user wallet ledgers."""

    @abstractmethod
    def hold(self, user_id: str) -> AbstractContextManager[None]:
        """Critical section over one user's ledger. Reentrant.

        Callers that also touch sessions acquire this first.
        """
        ...

    @abstractmethod
    def append(self, user_id: str, build: Callable[[int], LedgerEntry]) -> LedgerEntry:
        """Append the entry ``build(current_balance)`` atomically.

        ``build`` may raise to abort without writing anything. Completed
        entries move the running balance to their ``balance_after``.
        """
        ...

    @abstractmethod
    def balance(self, user_id: str) -> int:
        """Return the running balance in cents (zero for unknown users)."""
        ...

    @abstractmethod
    def entries(self, user_id: str) -> list[LedgerEntry]:
        """Return all entries of a user, newest first."""
        ...


class Catalog(ABC):
    """Interface for location pricing lookups."""

    @abstractmethod
    def get_pricing(self, location_id: str) -> LocationPricing | None:
        """Return pricing for a location, or None if not found."""
        ...

    def pricing_for(self, location_id: str) -> LocationPricing:
        pricing = self.get_pricing(location_id)
        if pricing is None:
            raise NotFoundError(ErrorCode.LOCATION_NOT_FOUND)
        return pricing


class Clock(ABC):
    """Source of the current instant (timezone-aware)."""

    @abstractmethod
    def now(self) -> datetime: ...
