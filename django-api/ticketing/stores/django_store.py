"""Django ORM implementations of the store interfaces.

Critical sections are database transactions: the per-user ``Wallet`` row
is locked with ``select_for_update`` for ledger appends and session
inserts, and the session row is locked for transitions. Nested
``atomic`` blocks become savepoints, so ``hold`` can wrap several
appends and inserts in one transaction.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from django.db import transaction

from ticketing import models as orm
from ticketing.domain import (
    EntryKind,
    EntryStatus,
    LedgerEntry,
    LocationPricing,
    Session,
    SessionStatus,
)
from ticketing.domain.errors import ConflictError, ErrorCode, NotFoundError, StateError
from ticketing.services.tokens import deserialize_token, serialize_token
from ticketing.stores.interfaces import Catalog, LedgerStore, SessionChange, SessionStore

logger = logging.getLogger(__name__)

_SESSION_FIELDS = (
    "user_id",
    "location_id",
    "location_name",
    "start_time",
    "end_time",
    "duration_minutes",
    "extension_minutes",
    "unit_price_per_hour_cents",
    "total_price_cents",
    "currency",
    "check_in_code",
    "reference_code",
    "checked_in_at",
    "checked_out_at",
    "cancelled_at",
    "cancellation_reason",
    "created_at",
    "updated_at",
)


def _lock_wallet(user_id: str) -> orm.Wallet:
    orm.Wallet.objects.get_or_create(user_id=user_id)
    return orm.Wallet.objects.select_for_update().get(user_id=user_id)


def _session_to_domain(row: orm.Session) -> Session:
    return Session(
        id=row.id,
        status=SessionStatus(row.status),
        token=deserialize_token(row.token),
        **{name: getattr(row, name) for name in _SESSION_FIELDS},
    )


def _copy_session(session: Session, row: orm.Session) -> orm.Session:
    for name in _SESSION_FIELDS:
        setattr(row, name, getattr(session, name))
    row.status = session.status.value
    row.token = serialize_token(session.token)
    return row


def _entry_to_domain(row: orm.LedgerEntry) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        kind=EntryKind(row.kind),
        amount_cents=row.amount_cents,
        balance_before=row.balance_before,
        balance_after=row.balance_after,
        reference_code=row.reference_code,
        status=EntryStatus(row.status),
        created_at=row.created_at,
        description=row.description,
        related_session_id=row.related_session_id,
    )


class DjangoSessionStore(SessionStore):
    """Database-backed session store using Django ORM."""

    def insert(self, session: Session, now: datetime) -> Session:
        with transaction.atomic():
            _lock_wallet(session.user_id)
            if orm.Session.objects.filter(pk=session.id).exists():
                raise ConflictError(ErrorCode.INVALID_INPUT, "Session id already exists")
            if self.active_for_user(session.user_id, now) is not None:
                raise ConflictError(ErrorCode.ACTIVE_SESSION_EXISTS)
            _copy_session(session, orm.Session(id=session.id)).save(force_insert=True)
        logger.debug("Stored session %s for user %s", session.id, session.user_id)
        return session

    def get(self, session_id: str) -> Session | None:
        row = orm.Session.objects.filter(pk=session_id).first()
        return _session_to_domain(row) if row is not None else None

    def sessions_for_user(self, user_id: str) -> list[Session]:
        return [_session_to_domain(row) for row in orm.Session.objects.filter(user_id=user_id)]

    def transition(
        self,
        session_id: str,
        expected_status: SessionStatus,
        change: SessionChange,
    ) -> Session:
        with transaction.atomic():
            row = orm.Session.objects.select_for_update().filter(pk=session_id).first()
            if row is None:
                raise NotFoundError(ErrorCode.SESSION_NOT_FOUND)
            if row.status != expected_status.value:
                raise StateError(ErrorCode.UNEXPECTED_STATUS)
            updated = change(_session_to_domain(row))
            _copy_session(updated, row).save()
        return updated


class DjangoLedgerStore(LedgerStore):
    """Database-backed ledger; the wallet row keeps the running balance."""

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        with transaction.atomic():
            _lock_wallet(user_id)
            yield

    def append(self, user_id: str, build: Callable[[int], LedgerEntry]) -> LedgerEntry:
        with transaction.atomic():
            wallet = _lock_wallet(user_id)
            entry = build(wallet.balance_cents)
            wallet.entry_count += 1
            orm.LedgerEntry.objects.create(
                id=entry.id,
                user_id=user_id,
                sequence=wallet.entry_count,
                kind=entry.kind.value,
                amount_cents=entry.amount_cents,
                balance_before=entry.balance_before,
                balance_after=entry.balance_after,
                reference_code=entry.reference_code,
                status=entry.status.value,
                description=entry.description,
                related_session_id=entry.related_session_id,
                created_at=entry.created_at,
            )
            if entry.status == EntryStatus.COMPLETED:
                wallet.balance_cents = entry.balance_after
            wallet.save(update_fields=["balance_cents", "entry_count"])
        return entry

    def balance(self, user_id: str) -> int:
        balance = (
            orm.Wallet.objects.filter(user_id=user_id)
            .values_list("balance_cents", flat=True)
            .first()
        )
        return balance or 0

    def entries(self, user_id: str) -> list[LedgerEntry]:
        rows = orm.LedgerEntry.objects.filter(user_id=user_id).order_by("-sequence")
        return [_entry_to_domain(row) for row in rows]


class DjangoCatalog(Catalog):
    """Catalog backed by the ``Location`` table."""

    def get_pricing(self, location_id: str) -> LocationPricing | None:
        row = orm.Location.objects.filter(pk=location_id).first()
        if row is None:
            return None
        return LocationPricing(
            location_id=row.id,
            hourly_rate_cents=row.hourly_rate_cents,
            currency=row.currency,
            name=row.name,
            address=row.address,
        )
