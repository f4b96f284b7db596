"""Wiring of the engine for the HTTP adapter.

The only place that reads ``EngineSettings``; services receive every
tunable through their constructors.
"""

from ticketing.clock import SystemClock
from ticketing.config import get_settings
from ticketing.services.faults import fault_injector_from_settings
from ticketing.services.ledger import Ledger
from ticketing.services.lifecycle import SessionLifecycleCoordinator
from ticketing.services.tokens import TokenIssuer
from ticketing.stores.django_store import DjangoCatalog, DjangoLedgerStore, DjangoSessionStore
from ticketing.stores.interfaces import Clock


def get_clock() -> Clock:
    return SystemClock()


def get_coordinator() -> SessionLifecycleCoordinator:
    settings = get_settings()
    clock = get_clock()
    faults = fault_injector_from_settings(settings)
    ledger = Ledger(
        DjangoLedgerStore(),
        clock,
        currency=settings.currency,
        max_balance_cents=settings.max_balance_cents,
        min_top_up_cents=settings.min_top_up_cents,
        max_top_up_cents=settings.max_top_up_cents,
        faults=faults,
    )
    return SessionLifecycleCoordinator(
        DjangoSessionStore(),
        ledger,
        TokenIssuer(settings.checksum_secret, settings.checksum_length),
        DjangoCatalog(),
        clock,
        faults=faults,
        max_session_minutes=settings.max_session_minutes,
        minimum_billable_minutes=settings.minimum_billable_minutes,
    )
