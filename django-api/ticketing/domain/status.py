"""Logical session status.

Stored status only changes through explicit transitions. Time-driven
outcomes (no-show, elapsed check-in) are derived here on every read so
that all components agree on what a session currently is.
"""

from dataclasses import replace
from datetime import datetime

from ticketing.domain.models import Session, SessionStatus


def effective_status(session: Session, now: datetime) -> SessionStatus:
    """Reconcile the stored status with the session window at ``now``."""
    if now < session.end_time:
        return session.status
    if session.status == SessionStatus.CONFIRMED and session.checked_in_at is None:
        return SessionStatus.NO_SHOW
    if session.status == SessionStatus.CHECKED_IN:
        return SessionStatus.COMPLETED
    return session.status


def is_active(session: Session, now: datetime) -> bool:
    """Confirmed with a future end, or checked in with time left."""
    return not effective_status(session, now).is_terminal


def as_of(session: Session, now: datetime) -> Session:
    """Copy of ``session`` carrying its effective status, for display."""
    status = effective_status(session, now)
    if status == session.status:
        return session
    return replace(session, status=status)
