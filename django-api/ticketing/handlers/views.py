"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call the coordinator for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ticketing.domain import Money
from ticketing.domain.errors import (
    CheckInError,
    ConflictError,
    DomainError,
    ErrorCode,
    FundsError,
    IntegrityError,
    NotFoundError,
    StateError,
    ValidationError,
)
from ticketing.handlers import dependencies
from ticketing.handlers.serializers import (
    CancelSessionSerializer,
    CheckInResultSerializer,
    CheckInSerializer,
    CreateSessionSerializer,
    ExtendSessionSerializer,
    LedgerEntrySerializer,
    ScanResultSerializer,
    ScanSerializer,
    SessionConfirmationSerializer,
    SessionFilterSerializer,
    SessionSerializer,
    TopUpSerializer,
    UsageReportSerializer,
)
from ticketing.services.lifecycle import SessionLifecycleCoordinator

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StateError, status.HTTP_409_CONFLICT),
    (FundsError, status.HTTP_402_PAYMENT_REQUIRED),
    (IntegrityError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (CheckInError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_for(exc: DomainError) -> int:
    if isinstance(exc, CheckInError) and exc.code == ErrorCode.SESSION_NOT_FOUND:
        return status.HTTP_404_NOT_FOUND
    for kind, http_status in _STATUS_BY_KIND:
        if isinstance(exc, kind):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def error_response(code: str, message: str, http_status: int, **extra) -> Response:
    return Response({"error": {"code": code, "message": message, **extra}}, status=http_status)


class EngineView(APIView):
    """Base view: builds the coordinator and renders domain errors."""

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, DomainError):
            http_status = status_for(exc)
            logger.info("%s %s -> %s %s", self.request.method, self.request.path, http_status, exc.code.value)
            return error_response(exc.code.value, exc.message, http_status)
        return super().handle_exception(exc)

    @property
    def coordinator(self) -> SessionLifecycleCoordinator:
        return dependencies.get_coordinator()

    def parse(self, serializer_class, data):
        """Validate ``data``; return (validated, None) or (None, error response)."""
        serializer = serializer_class(data=data)
        if serializer.is_valid():
            return serializer.validated_data, None
        return None, error_response(
            ErrorCode.INVALID_INPUT.value,
            "Request is missing fields or has fields of the wrong type",
            status.HTTP_400_BAD_REQUEST,
            fields=serializer.errors,
        )


class SessionListView(EngineView):
    """Handler for POST /api/sessions"""

    def post(self, request: Request) -> Response:
        data, error = self.parse(CreateSessionSerializer, request.data)
        if error:
            return error
        confirmation = self.coordinator.create_session(
            data["user_id"], data["location_id"], data["start_time"], data["duration_minutes"]
        )
        return Response(
            SessionConfirmationSerializer(confirmation).data, status=status.HTTP_201_CREATED
        )


class SessionDetailView(EngineView):
    """Handler for GET /api/sessions/{session_id}"""

    def get(self, request: Request, session_id: str) -> Response:
        return Response(SessionSerializer(self.coordinator.get_session(session_id)).data)


class CheckInView(EngineView):
    """Handler for POST /api/sessions/{session_id}/check-in"""

    def post(self, request: Request, session_id: str) -> Response:
        data, error = self.parse(CheckInSerializer, request.data)
        if error:
            return error
        result = self.coordinator.check_in(session_id, data["code"])
        return Response(CheckInResultSerializer(result).data)


class ExtendSessionView(EngineView):
    """Handler for POST /api/sessions/{session_id}/extend"""

    def post(self, request: Request, session_id: str) -> Response:
        data, error = self.parse(ExtendSessionSerializer, request.data)
        if error:
            return error
        session = self.coordinator.extend_session(session_id, data["additional_minutes"])
        return Response(SessionSerializer(session).data)


class CheckOutView(EngineView):
    """Handler for POST /api/sessions/{session_id}/check-out"""

    def post(self, request: Request, session_id: str) -> Response:
        return Response(SessionSerializer(self.coordinator.check_out(session_id)).data)


class CancelSessionView(EngineView):
    """Handler for POST /api/sessions/{session_id}/cancel"""

    def post(self, request: Request, session_id: str) -> Response:
        data, error = self.parse(CancelSessionSerializer, request.data)
        if error:
            return error
        session = self.coordinator.cancel_session(session_id, data.get("reason") or None)
        return Response(SessionSerializer(session).data)


class UsageReportView(EngineView):
    """Handler for GET /api/sessions/{session_id}/usage"""

    def get(self, request: Request, session_id: str) -> Response:
        return Response(UsageReportSerializer(self.coordinator.usage_report(session_id)).data)


class ScanView(EngineView):
    """Handler for POST /api/scans"""

    def post(self, request: Request) -> Response:
        data, error = self.parse(ScanSerializer, request.data)
        if error:
            return error
        result = self.coordinator.validate_scan(data["token"], data["location_id"])
        return Response(ScanResultSerializer(result).data)


class UserSessionListView(EngineView):
    """Handler for GET /api/users/{user_id}/sessions?filter=upcoming|past"""

    def get(self, request: Request, user_id: str) -> Response:
        data, error = self.parse(SessionFilterSerializer, request.query_params)
        if error:
            return error
        sessions = self.coordinator.list_sessions(user_id, data["filter"])
        return Response(SessionSerializer(sessions, many=True).data)


class ActiveSessionView(EngineView):
    """Handler for GET /api/users/{user_id}/sessions/active"""

    def get(self, request: Request, user_id: str) -> Response:
        session = self.coordinator.active_session(user_id)
        if session is None:
            return Response({"session": None})
        return Response({"session": SessionSerializer(session).data})


class BalanceView(EngineView):
    """Handler for GET /api/users/{user_id}/balance"""

    def get(self, request: Request, user_id: str) -> Response:
        coordinator = self.coordinator
        balance = coordinator.get_balance(user_id)
        return Response(
            {
                "user_id": user_id,
                "balance_cents": balance,
                "currency": coordinator.currency,
                "display": str(Money(balance, coordinator.currency)),
            }
        )


class LedgerView(EngineView):
    """Handler for GET /api/users/{user_id}/ledger"""

    def get(self, request: Request, user_id: str) -> Response:
        entries = self.coordinator.list_ledger(user_id)
        return Response(LedgerEntrySerializer(entries, many=True).data)


class TopUpView(EngineView):
    """Handler for POST /api/users/{user_id}/top-ups"""

    def post(self, request: Request, user_id: str) -> Response:
        data, error = self.parse(TopUpSerializer, request.data)
        if error:
            return error
        entry = self.coordinator.top_up(user_id, data["amount_cents"])
        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)
