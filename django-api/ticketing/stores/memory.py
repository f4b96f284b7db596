"""In-memory store implementations.

Each instance is isolated, so tests build a fresh set per run instead of
sharing process-wide state.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from datetime import datetime

from ticketing.domain import EntryStatus, LedgerEntry, LocationPricing, Session, SessionStatus
from ticketing.domain.errors import ConflictError, ErrorCode, NotFoundError, StateError
from ticketing.stores.interfaces import Catalog, LedgerStore, SessionChange, SessionStore
from ticketing.stores.locks import KeyedLock

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Session store backed by a dict.

    Inserts serialize per user so the active-session check and the write
    happen in one critical section; transitions serialize per session.
    """

    def __init__(self) -> None:
        self._rows: dict[str, Session] = {}
        self._rows_lock = threading.Lock()
        self._user_locks = KeyedLock()
        self._session_locks = KeyedLock()

    def insert(self, session: Session, now: datetime) -> Session:
        with self._user_locks.hold(session.user_id):
            if self.get(session.id) is not None:
                raise ConflictError(ErrorCode.INVALID_INPUT, "Session id already exists")
            if self.active_for_user(session.user_id, now) is not None:
                raise ConflictError(ErrorCode.ACTIVE_SESSION_EXISTS)
            with self._rows_lock:
                self._rows[session.id] = session
        logger.debug("Stored session %s for user %s", session.id, session.user_id)
        return session

    def get(self, session_id: str) -> Session | None:
        with self._rows_lock:
            return self._rows.get(session_id)

    def sessions_for_user(self, user_id: str) -> list[Session]:
        with self._rows_lock:
            return [s for s in self._rows.values() if s.user_id == user_id]

    def transition(
        self,
        session_id: str,
        expected_status: SessionStatus,
        change: SessionChange,
    ) -> Session:
        with self._session_locks.hold(session_id):
            current = self.get(session_id)
            if current is None:
                raise NotFoundError(ErrorCode.SESSION_NOT_FOUND)
            if current.status != expected_status:
                raise StateError(ErrorCode.UNEXPECTED_STATUS)
            updated = change(current)
            with self._rows_lock:
                self._rows[session_id] = updated
        return updated


class InMemoryLedgerStore(LedgerStore):
    """Ledger store keeping a running balance next to each entry list."""

    def __init__(self) -> None:
        self._entries: dict[str, list[LedgerEntry]] = defaultdict(list)
        self._balances: dict[str, int] = {}
        self._locks = KeyedLock()

    def hold(self, user_id: str) -> AbstractContextManager[None]:
        return self._locks.hold(user_id)

    def append(self, user_id: str, build: Callable[[int], LedgerEntry]) -> LedgerEntry:
        with self._locks.hold(user_id):
            entry = build(self._balances.get(user_id, 0))
            self._entries[user_id].append(entry)
            if entry.status == EntryStatus.COMPLETED:
                self._balances[user_id] = entry.balance_after
        return entry

    def balance(self, user_id: str) -> int:
        return self._balances.get(user_id, 0)

    def entries(self, user_id: str) -> list[LedgerEntry]:
        with self._locks.hold(user_id):
            return list(reversed(self._entries.get(user_id, [])))


class InMemoryCatalog(Catalog):
    def __init__(self, locations: Iterable[LocationPricing] = ()) -> None:
        self._locations = {loc.location_id: loc for loc in locations}

    def get_pricing(self, location_id: str) -> LocationPricing | None:
        return self._locations.get(location_id)
