"""Unit tests for the Ledger service over the in-memory store."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from ticketing.domain import EntryKind, EntryStatus
from ticketing.domain.errors import ErrorCode, FundsError, ValidationError
from ticketing.services.faults import SentinelFaultInjector
from ticketing.services.ledger import Ledger


def signed_total(entries):
    total = 0
    for entry in entries:
        if entry.status != EntryStatus.COMPLETED:
            continue
        total += -entry.amount_cents if entry.kind == EntryKind.DEBIT else entry.amount_cents
    return total


class TestDebit:
    def test_debit_reduces_balance(self, ledger, fund):
        """A debit records before and after balances."""
        fund("u1", 1000)
        entry = ledger.debit("u1", 300, "GF-ABC123", related_session_id="s1")
        assert entry.kind == EntryKind.DEBIT
        assert (entry.balance_before, entry.balance_after) == (1000, 700)
        assert ledger.current_balance("u1") == 700

    def test_insufficient_funds_writes_nothing(self, ledger, fund):
        """A rejected debit leaves no entry and no balance change."""
        fund("u1", 100)
        with pytest.raises(FundsError) as exc:
            ledger.debit("u1", 101, "GF-ABC123")
        assert exc.value.code == ErrorCode.INSUFFICIENT_FUNDS
        assert ledger.current_balance("u1") == 100
        assert len(ledger.entries("u1")) == 1

    def test_unknown_user_has_zero_balance(self, ledger):
        """Unknown users start at zero and cannot be debited."""
        assert ledger.current_balance("nobody") == 0
        with pytest.raises(FundsError):
            ledger.debit("nobody", 1, "GF-ABC123")

    @pytest.mark.parametrize("amount", [0, -5, 1.5, True, "10"])
    def test_amount_must_be_positive_cents(self, ledger, fund, amount):
        """Amounts must be positive integers."""
        fund("u1", 1000)
        with pytest.raises(ValidationError) as exc:
            ledger.debit("u1", amount, "GF-ABC123")
        assert exc.value.code == ErrorCode.INVALID_AMOUNT


class TestCredit:
    def test_credit_respects_ceiling(self, ledger_store, clock):
        """Credits past the balance ceiling are refused."""
        ledger = Ledger(ledger_store, clock, max_balance_cents=1000)
        ledger.credit("u1", 1000, "SEED")
        with pytest.raises(ValidationError) as exc:
            ledger.credit("u1", 1, "SEED")
        assert exc.value.code == ErrorCode.BALANCE_LIMIT_EXCEEDED
        assert ledger.current_balance("u1") == 1000

    def test_refund_ignores_ceiling(self, ledger_store, clock):
        """Refunds return money already taken, so the ceiling does not apply."""
        ledger = Ledger(ledger_store, clock, max_balance_cents=1000)
        ledger.credit("u1", 1000, "SEED")
        entry = ledger.refund("u1", 50, "REF-GF-ABC123", description="Refund")
        assert entry.kind == EntryKind.REFUND
        assert ledger.current_balance("u1") == 1050

    def test_entries_newest_first(self, ledger, fund):
        """Entries are listed newest first."""
        fund("u1", 1000)
        ledger.debit("u1", 100, "GF-AAAAAA")
        ledger.refund("u1", 100, "REF-GF-AAAAAA")
        kinds = [e.kind for e in ledger.entries("u1")]
        assert kinds == [EntryKind.REFUND, EntryKind.DEBIT, EntryKind.CREDIT]

    def test_entries_chain_balances(self, ledger, fund):
        """Each entry starts where the previous one ended."""
        fund("u1", 1000)
        ledger.debit("u1", 250, "GF-AAAAAA")
        ledger.credit("u1", 75, "WL-AAAAAA")
        chronological = list(reversed(ledger.entries("u1")))
        for prev, nxt in zip(chronological, chronological[1:]):
            assert nxt.balance_before == prev.balance_after
        assert ledger.current_balance("u1") == signed_total(chronological) == 825


class TestTopUp:
    def test_top_up_credits_with_wallet_reference(self, ledger):
        """A top-up is a credit with a WL- reference."""
        entry = ledger.top_up("u1", 2000)
        assert entry.reference_code.startswith("WL-")
        assert entry.kind == EntryKind.CREDIT
        assert entry.description == "Wallet top-up"
        assert ledger.current_balance("u1") == 2000

    @pytest.mark.parametrize("amount", [499, 20001])
    def test_top_up_limits(self, ledger, amount):
        """Top-ups outside the allowed range are refused."""
        with pytest.raises(ValidationError) as exc:
            ledger.top_up("u1", amount)
        assert exc.value.code == ErrorCode.INVALID_AMOUNT
        assert ledger.entries("u1") == []

    def test_declined_payment_records_failed_entry(self, ledger_store, clock):
        """A declined top-up is visible in history but moves no money."""
        ledger = Ledger(ledger_store, clock, faults=SentinelFaultInjector())
        ledger.top_up("u1", 1000)
        with pytest.raises(FundsError) as exc:
            ledger.top_up("u1", 1337)
        assert exc.value.code == ErrorCode.PAYMENT_DECLINED
        failed = ledger.entries("u1")[0]
        assert failed.status == EntryStatus.FAILED
        assert failed.balance_before == failed.balance_after == 1000
        assert ledger.current_balance("u1") == 1000

    def test_injected_debit_fault(self, ledger_store, clock):
        """The sentinel user id forces a debit failure."""
        ledger = Ledger(ledger_store, clock, faults=SentinelFaultInjector())
        ledger.credit("FAIL-user", 1000, "SEED")
        with pytest.raises(FundsError) as exc:
            ledger.debit("FAIL-user", 100, "GF-ABC123")
        assert exc.value.code == ErrorCode.INJECTED_FAULT
        assert ledger.current_balance("FAIL-user") == 1000


class TestConcurrency:
    def test_parallel_debits_never_overdraw(self, ledger, fund):
        """200 debits of 100 against 10000: exactly 100 succeed."""
        fund("u1", 10_000)

        def attempt(i):
            try:
                ledger.debit("u1", 100, f"GF-{i:06d}")
                return True
            except FundsError:
                return False

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(200)))

        assert sum(results) == 100
        assert ledger.current_balance("u1") == 0
        assert all(e.balance_after >= 0 for e in ledger.entries("u1"))

    def test_interleaved_credits_and_debits_are_exact(self, ledger, fund):
        """Balance equals the signed sum of entries after concurrent writes."""
        fund("u1", 5_000)

        def work(i):
            if i % 2:
                ledger.credit("u1", 37, f"WL-{i:06d}")
            else:
                try:
                    ledger.debit("u1", 53, f"GF-{i:06d}")
                except FundsError:
                    pass

        with ThreadPoolExecutor(max_workers=16) as pool:
            list(pool.map(work, range(400)))

        assert ledger.current_balance("u1") == signed_total(ledger.entries("u1"))
