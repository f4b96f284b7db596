"""Deterministic fault injection.

The engine consults a ``FaultInjector`` at fixed points (ledger debit,
top-up payment, check-in, session insert). The default injector never
fails. ``SentinelFaultInjector`` fails whenever an input carries a
configured sentinel, which lets tests and demos drive every failure path
through the public operations without mocking internals. It is only
installed when explicitly configured.
"""

import logging

from ticketing.config import EngineSettings
from ticketing.domain import Session
from ticketing.domain.errors import CheckInError, ConflictError, ErrorCode, FundsError

logger = logging.getLogger(__name__)


class FaultInjector:
    """No-op injector."""

    def before_debit(self, user_id: str, amount_cents: int) -> None:
        pass

    def declines_payment(self, user_id: str, amount_cents: int) -> bool:
        return False

    def before_check_in(self, code: str, session_id: str) -> None:
        pass

    def before_insert(self, session: Session) -> None:
        pass


class SentinelFaultInjector(FaultInjector):
    """Fails on inputs containing ``sentinel`` (case-insensitive).

    - debit: user id contains the sentinel -> ``FundsError``
    - top-up: amount equals ``declined_amount_cents`` -> payment declined
    - check-in: entered code contains the sentinel -> ``CheckInError``
    - insert: location id contains the sentinel -> ``ConflictError``,
      raised after the debit so the compensation path runs
    """

    def __init__(self, sentinel: str = "FAIL", declined_amount_cents: int = 1337) -> None:
        self.sentinel = sentinel.upper()
        self.declined_amount_cents = declined_amount_cents

    def _hit(self, value: str) -> bool:
        return self.sentinel in value.upper()

    def before_debit(self, user_id: str, amount_cents: int) -> None:
        if self._hit(user_id):
            logger.warning("Injected debit failure for user %s", user_id)
            raise FundsError(ErrorCode.INJECTED_FAULT)

    def declines_payment(self, user_id: str, amount_cents: int) -> bool:
        return amount_cents == self.declined_amount_cents

    def before_check_in(self, code: str, session_id: str) -> None:
        if self._hit(code):
            logger.warning("Injected check-in failure for session %s", session_id)
            raise CheckInError(ErrorCode.INJECTED_FAULT)

    def before_insert(self, session: Session) -> None:
        if self._hit(session.location_id):
            logger.warning("Injected insert failure for session %s", session.id)
            raise ConflictError(ErrorCode.INJECTED_FAULT)


def fault_injector_from_settings(settings: EngineSettings) -> FaultInjector:
    if not settings.fault_injection_enabled:
        return FaultInjector()
    return SentinelFaultInjector(
        sentinel=settings.fault_sentinel,
        declined_amount_cents=settings.declined_top_up_cents,
    )
