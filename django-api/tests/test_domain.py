"""Unit tests for domain primitives, pricing and status derivation.

These test pure logic with no database access.
Run with: pytest tests/test_domain.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from ticketing.domain import (
    CheckInCode,
    Money,
    SessionStatus,
    SessionWindow,
    as_of,
    effective_status,
    is_active,
)
from ticketing.domain.errors import (
    DomainError,
    ErrorCode,
    FundsError,
    StateError,
    ValidationError,
)
from ticketing.domain.pricing import billable_minutes, price_for_minutes, round_half_up
from ticketing.domain.value_objects import (
    is_valid_check_in_format,
    new_booking_reference,
    new_top_up_reference,
    refund_reference,
)

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class TestErrors:
    def test_default_message_comes_from_code(self):
        """Each kind falls back to the stable message of its code."""
        err = FundsError()
        assert err.code == ErrorCode.INSUFFICIENT_FUNDS
        assert "top up" in err.message

    def test_str_is_code_and_message(self):
        """str() renders CODE: message."""
        err = StateError(ErrorCode.CANCELLATION_CLOSED, "too late")
        assert str(err) == "CANCELLATION_CLOSED: too late"

    def test_kinds_are_domain_errors(self):
        """All kinds can be caught as DomainError."""
        with pytest.raises(DomainError):
            raise ValidationError(ErrorCode.INVALID_WINDOW)


class TestMoney:
    def test_formats_with_symbol(self):
        """Money renders with its currency symbol and two decimals."""
        assert str(Money(350)) == "€3.50"
        assert str(Money(5, "USD")) == "$0.05"

    def test_rejects_negative_and_fractional(self):
        """Money only holds non-negative whole cents."""
        with pytest.raises(ValueError):
            Money(-1)
        with pytest.raises(ValueError):
            Money(1.5)


class TestCheckInCode:
    def test_generate_matches_format(self):
        """Generated codes are CHK- plus six alphanumerics."""
        code = CheckInCode.generate()
        assert is_valid_check_in_format(code.value)
        assert code.value.startswith("CHK-")

    @pytest.mark.parametrize("value", ["CHK-ABC123", "chk-abc123", " CHK-000000 "])
    def test_valid_formats(self, value):
        """Format check is case-insensitive and ignores surrounding spaces."""
        assert is_valid_check_in_format(value)

    @pytest.mark.parametrize("value", ["", "CHK-ABC12", "CHK-ABC1234", "CHKABC123", "XYZ-ABC123", None, 12])
    def test_invalid_formats(self, value):
        """Wrong prefix, separator, length or type is rejected."""
        assert not is_valid_check_in_format(value)

    def test_from_string_rejects_bad_format(self):
        """from_string raises INVALID_CODE_FORMAT."""
        with pytest.raises(ValidationError) as exc:
            CheckInCode.from_string("nope")
        assert exc.value.code == ErrorCode.INVALID_CODE_FORMAT

    def test_matches_case_insensitively(self):
        """Stored lowercase code matches uppercase entry."""
        assert CheckInCode("chk-abc123").matches("CHK-ABC123")
        assert not CheckInCode("chk-abc123").matches("CHK-ABC124")


class TestReferences:
    def test_prefixes(self):
        """References carry their kind prefix."""
        assert new_booking_reference().startswith("GF-")
        assert new_top_up_reference().startswith("WL-")
        assert refund_reference("GF-ABC123") == "REF-GF-ABC123"

    def test_booking_references_differ(self):
        """Suffixes are random."""
        assert len({new_booking_reference() for _ in range(20)}) > 1


class TestSessionWindow:
    def test_end_must_follow_start(self):
        """A window with end <= start is rejected."""
        with pytest.raises(ValidationError) as exc:
            SessionWindow(T0, T0)
        assert exc.value.code == ErrorCode.INVALID_WINDOW

    def test_naive_datetimes_rejected(self):
        """Windows need timezone-aware datetimes."""
        with pytest.raises(ValidationError):
            SessionWindow(datetime(2026, 1, 1, 9), datetime(2026, 1, 1, 10))

    def test_starting_at_truncates_to_seconds(self):
        """starting_at drops microseconds and adds the duration."""
        window = SessionWindow.starting_at(T0.replace(microsecond=999), 45)
        assert window.start == T0
        assert window.end == T0 + timedelta(minutes=45)
        assert window.duration_minutes == 45

    @pytest.mark.parametrize("minutes", [0, -5, 1.5, True])
    def test_starting_at_rejects_bad_duration(self, minutes):
        """Durations must be positive integers."""
        with pytest.raises(ValidationError) as exc:
            SessionWindow.starting_at(T0, minutes)
        assert exc.value.code == ErrorCode.INVALID_DURATION

    def test_contains_is_half_open(self):
        """Start is inside the window, end is not."""
        window = SessionWindow.starting_at(T0, 60)
        assert window.contains(T0)
        assert window.contains(T0 + timedelta(minutes=59, seconds=59))
        assert not window.contains(T0 + timedelta(minutes=60))
        assert not window.contains(T0 - timedelta(seconds=1))

    def test_extended_by(self):
        """Extension keeps the start and moves the end."""
        window = SessionWindow.starting_at(T0, 60).extended_by(30)
        assert window.start == T0
        assert window.duration_minutes == 90


class TestPricing:
    def test_full_hour(self):
        """60 minutes cost exactly the hourly rate."""
        assert price_for_minutes(300, 60) == 300

    def test_rounds_half_up(self):
        """Half a cent rounds up, less rounds down."""
        assert price_for_minutes(250, 45) == 188  # 187.5
        assert price_for_minutes(100, 1) == 2  # 1.67
        assert price_for_minutes(10, 1) == 0  # 0.17

    def test_round_half_up_exact(self):
        """Halves round up, exact quotients stay exact."""
        assert round_half_up(5, 2) == 3
        assert round_half_up(4, 2) == 2
        assert round_half_up(7, 4) == 2

    def test_extension_prices_like_a_booking(self):
        """An extension is priced with the same rule as a fresh booking."""
        assert price_for_minutes(450, 30) == 225

    def test_rejects_bad_inputs(self):
        """Negative rates and non-positive minutes are rejected."""
        with pytest.raises(ValidationError):
            price_for_minutes(-1, 60)
        with pytest.raises(ValidationError):
            price_for_minutes(300, 0)

    def test_billable_minutes_floor(self):
        """Short visits are billed at the minimum."""
        assert billable_minutes(3, 15) == 15
        assert billable_minutes(40, 15) == 40


class TestEffectiveStatus:
    def test_confirmed_before_end_stays_confirmed(self, make_session):
        """Before the end a confirmed session is still confirmed and active."""
        session = make_session(start=T0, minutes=60)
        assert effective_status(session, T0 + timedelta(minutes=30)) == SessionStatus.CONFIRMED
        assert is_active(session, T0 + timedelta(minutes=30))

    def test_unattended_window_is_no_show(self, make_session):
        """A confirmed session never checked in becomes NoShow at its end."""
        session = make_session(start=T0, minutes=60)
        later = T0 + timedelta(minutes=60)
        assert effective_status(session, later) == SessionStatus.NO_SHOW
        assert not is_active(session, later)
        assert session.status == SessionStatus.CONFIRMED

    def test_checked_in_past_end_is_completed(self, make_session):
        """A checked-in session past its end reads as completed."""
        session = make_session(start=T0, status=SessionStatus.CHECKED_IN, checked_in_at=T0)
        assert effective_status(session, T0 + timedelta(hours=2)) == SessionStatus.COMPLETED

    def test_terminal_statuses_unchanged(self, make_session):
        """Terminal statuses are not rewritten by the clock."""
        session = make_session(start=T0, status=SessionStatus.CANCELLED)
        assert effective_status(session, T0 + timedelta(hours=2)) == SessionStatus.CANCELLED
        assert SessionStatus.CANCELLED.is_terminal
        assert not SessionStatus.CHECKED_IN.is_terminal

    def test_as_of_returns_copy_with_effective_status(self, make_session):
        """as_of copies only when the effective status differs."""
        session = make_session(start=T0, minutes=60)
        shown = as_of(session, T0 + timedelta(hours=2))
        assert shown.status == SessionStatus.NO_SHOW
        assert as_of(session, T0) is session
