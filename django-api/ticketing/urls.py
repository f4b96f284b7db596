from django.urls import path

from ticketing.handlers import (
    ActiveSessionView,
    BalanceView,
    CancelSessionView,
    CheckInView,
    CheckOutView,
    ExtendSessionView,
    LedgerView,
    ScanView,
    SessionDetailView,
    SessionListView,
    TopUpView,
    UsageReportView,
    UserSessionListView,
)

urlpatterns = [
    path("sessions", SessionListView.as_view(), name="session-list"),
    path("sessions/<str:session_id>", SessionDetailView.as_view(), name="session-detail"),
    path("sessions/<str:session_id>/check-in", CheckInView.as_view(), name="session-check-in"),
    path("sessions/<str:session_id>/extend", ExtendSessionView.as_view(), name="session-extend"),
    path("sessions/<str:session_id>/check-out", CheckOutView.as_view(), name="session-check-out"),
    path("sessions/<str:session_id>/cancel", CancelSessionView.as_view(), name="session-cancel"),
    path("sessions/<str:session_id>/usage", UsageReportView.as_view(), name="session-usage"),
    path("scans", ScanView.as_view(), name="scan"),
    path("users/<str:user_id>/sessions", UserSessionListView.as_view(), name="user-sessions"),
    path(
        "users/<str:user_id>/sessions/active",
        ActiveSessionView.as_view(),
        name="user-active-session",
    ),
    path("users/<str:user_id>/balance", BalanceView.as_view(), name="user-balance"),
    path("users/<str:user_id>/ledger", LedgerView.as_view(), name="user-ledger"),
    path("users/<str:user_id>/top-ups", TopUpView.as_view(), name="user-top-ups"),
]
