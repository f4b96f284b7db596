"""Pytest configuration and shared fixtures."""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from rest_framework.test import APIClient

from ticketing.clock import FixedClock
from ticketing.config import reset_settings
from ticketing.domain import LocationPricing, Session, SessionStatus, SessionWindow
from ticketing.domain.pricing import price_for_minutes
from ticketing.domain.value_objects import new_booking_reference
from ticketing.services.faults import FaultInjector, SentinelFaultInjector
from ticketing.services.ledger import Ledger
from ticketing.services.lifecycle import SessionLifecycleCoordinator
from ticketing.services.tokens import TokenIssuer
from ticketing.stores.memory import InMemoryCatalog, InMemoryLedgerStore, InMemorySessionStore

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

LOCATIONS = [
    LocationPricing("gym_1", 300, "EUR", name="Downtown Gym", address="1 Main St"),
    LocationPricing("gym_2", 450, "EUR", name="Riverside Fitness", address="8 Quay Rd"),
    LocationPricing("gym_FAIL", 300, "EUR", name="Broken Gym"),
]


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(LOCATIONS)


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def faults() -> FaultInjector:
    return FaultInjector()


@pytest.fixture
def ledger(ledger_store, clock, faults) -> Ledger:
    return Ledger(ledger_store, clock, faults=faults)


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer()


@pytest.fixture
def coordinator(session_store, ledger, issuer, catalog, clock, faults):
    return SessionLifecycleCoordinator(
        session_store, ledger, issuer, catalog, clock, faults=faults
    )


@pytest.fixture
def faulty(ledger_store, session_store, issuer, catalog, clock):
    """Coordinator wired with the sentinel fault injector."""
    injector = SentinelFaultInjector()
    ledger = Ledger(ledger_store, clock, faults=injector)
    return SessionLifecycleCoordinator(
        session_store, ledger, issuer, catalog, clock, faults=injector
    )


@pytest.fixture
def fund(ledger):
    def _fund(user_id: str, cents: int) -> None:
        ledger.credit(user_id, cents, "SEED", description="Test funding")

    return _fund


@pytest.fixture
def make_session(issuer, clock):
    """Build a stored-shape Session directly, bypassing the coordinator."""

    def _make(
        user_id="u1",
        location_id="gym_1",
        start=None,
        minutes=60,
        status=SessionStatus.CONFIRMED,
        code="CHK-ABC123",
        **overrides,
    ) -> Session:
        window = SessionWindow.starting_at(start or clock.now() + timedelta(hours=1), minutes)
        session_id = overrides.pop("id", str(uuid.uuid4()))
        reference = overrides.pop("reference_code", new_booking_reference())
        token = issuer.issue(session_id, location_id, user_id, window.start, window.end, reference)
        session = Session(
            id=session_id,
            user_id=user_id,
            location_id=location_id,
            location_name="Downtown Gym",
            start_time=window.start,
            end_time=window.end,
            duration_minutes=minutes,
            unit_price_per_hour_cents=300,
            total_price_cents=price_for_minutes(300, minutes),
            currency="EUR",
            status=status,
            check_in_code=code,
            reference_code=reference,
            token=token,
            created_at=clock.now(),
            updated_at=clock.now(),
        )
        return replace(session, **overrides) if overrides else session

    return _make
