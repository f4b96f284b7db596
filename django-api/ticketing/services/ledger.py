"""Ledger service - the only component that moves money.

Every balance change is one append to the user's ledger, computed from
the running balance inside the store's per-user critical section. All
amounts are positive integer cents; the sign comes from the entry kind.
"""

import logging
import uuid
from contextlib import AbstractContextManager

from ticketing.domain import EntryKind, EntryStatus, LedgerEntry, Money
from ticketing.domain.errors import ErrorCode, FundsError, ValidationError
from ticketing.domain.value_objects import is_strict_int, new_top_up_reference
from ticketing.services.faults import FaultInjector
from ticketing.stores.interfaces import Clock, LedgerStore

logger = logging.getLogger(__name__)


def _require_positive_cents(amount_cents: int) -> None:
    if not is_strict_int(amount_cents) or amount_cents <= 0:
        raise ValidationError(ErrorCode.INVALID_AMOUNT)


class Ledger:
    """Wallet operations over a ``LedgerStore``."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock,
        *,
        currency: str = "EUR",
        max_balance_cents: int = 100_000,
        min_top_up_cents: int = 500,
        max_top_up_cents: int = 20_000,
        faults: FaultInjector | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self.currency = currency
        self._max_balance_cents = max_balance_cents
        self._min_top_up_cents = min_top_up_cents
        self._max_top_up_cents = max_top_up_cents
        self._faults = faults or FaultInjector()

    def hold(self, user_id: str) -> AbstractContextManager[None]:
        """The ledger-for-user critical section (see ``LedgerStore.hold``)."""
        return self._store.hold(user_id)

    def current_balance(self, user_id: str) -> int:
        return self._store.balance(user_id)

    def entries(self, user_id: str) -> list[LedgerEntry]:
        return self._store.entries(user_id)

    def debit(
        self,
        user_id: str,
        amount_cents: int,
        reference_code: str,
        related_session_id: str | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Take money out of the wallet.

        Raises:
            ValidationError: If the amount is not positive integer cents.
            FundsError: If the amount exceeds the current balance.
        """
        _require_positive_cents(amount_cents)
        self._faults.before_debit(user_id, amount_cents)

        def build(balance: int) -> LedgerEntry:
            if amount_cents > balance:
                raise FundsError(ErrorCode.INSUFFICIENT_FUNDS)
            return self._entry(
                user_id,
                EntryKind.DEBIT,
                amount_cents,
                balance,
                balance - amount_cents,
                reference_code,
                related_session_id,
                description,
            )

        try:
            entry = self._store.append(user_id, build)
        except FundsError:
            logger.warning(
                "Debit of %s for user %s rejected: insufficient funds",
                amount_cents,
                user_id,
            )
            raise
        logger.info(
            "Debited %s from user %s (ref %s), balance %s",
            amount_cents,
            user_id,
            reference_code,
            entry.balance_after,
        )
        return entry

    def credit(
        self,
        user_id: str,
        amount_cents: int,
        reference_code: str,
        related_session_id: str | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Add money to the wallet, up to the configured balance ceiling.

        Raises:
            ValidationError: For a bad amount, or when the ceiling would be
                exceeded.
        """
        _require_positive_cents(amount_cents)

        def build(balance: int) -> LedgerEntry:
            if balance + amount_cents > self._max_balance_cents:
                raise ValidationError(ErrorCode.BALANCE_LIMIT_EXCEEDED)
            return self._entry(
                user_id,
                EntryKind.CREDIT,
                amount_cents,
                balance,
                balance + amount_cents,
                reference_code,
                related_session_id,
                description,
            )

        entry = self._store.append(user_id, build)
        logger.info(
            "Credited %s to user %s (ref %s), balance %s",
            amount_cents,
            user_id,
            reference_code,
            entry.balance_after,
        )
        return entry

    def refund(
        self,
        user_id: str,
        amount_cents: int,
        reference_code: str,
        related_session_id: str | None = None,
        description: str = "",
    ) -> LedgerEntry:
        """Return previously debited money. Never bounded by the ceiling,
        so compensations cannot fail on it."""
        _require_positive_cents(amount_cents)

        def build(balance: int) -> LedgerEntry:
            return self._entry(
                user_id,
                EntryKind.REFUND,
                amount_cents,
                balance,
                balance + amount_cents,
                reference_code,
                related_session_id,
                description,
            )

        entry = self._store.append(user_id, build)
        logger.info(
            "Refunded %s to user %s (ref %s), balance %s",
            amount_cents,
            user_id,
            reference_code,
            entry.balance_after,
        )
        return entry

    def top_up(self, user_id: str, amount_cents: int) -> LedgerEntry:
        """Load the wallet from an external payment.

        Raises:
            ValidationError: If the amount is outside the top-up limits or
                the balance ceiling would be exceeded.
            FundsError: If the payment is declined. A failed entry is
                recorded first so the attempt stays visible in the history.
        """
        _require_positive_cents(amount_cents)
        if not self._min_top_up_cents <= amount_cents <= self._max_top_up_cents:
            low = Money(self._min_top_up_cents, self.currency)
            high = Money(self._max_top_up_cents, self.currency)
            raise ValidationError(
                ErrorCode.INVALID_AMOUNT, f"Top-up amount must be between {low} and {high}"
            )
        reference_code = new_top_up_reference()

        if self._faults.declines_payment(user_id, amount_cents):
            self._store.append(
                user_id,
                lambda balance: self._entry(
                    user_id,
                    EntryKind.CREDIT,
                    amount_cents,
                    balance,
                    balance,
                    reference_code,
                    None,
                    "Wallet top-up",
                    status=EntryStatus.FAILED,
                ),
            )
            logger.warning("Top-up %s for user %s declined", reference_code, user_id)
            raise FundsError(ErrorCode.PAYMENT_DECLINED)

        return self.credit(user_id, amount_cents, reference_code, description="Wallet top-up")

    def _entry(
        self,
        user_id: str,
        kind: EntryKind,
        amount_cents: int,
        balance_before: int,
        balance_after: int,
        reference_code: str,
        related_session_id: str | None,
        description: str,
        status: EntryStatus = EntryStatus.COMPLETED,
    ) -> LedgerEntry:
        return LedgerEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            kind=kind,
            amount_cents=amount_cents,
            balance_before=balance_before,
            balance_after=balance_after,
            reference_code=reference_code,
            status=status,
            created_at=self._clock.now(),
            description=description,
            related_session_id=related_session_id,
        )
