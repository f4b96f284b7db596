from ticketing.handlers.views import (
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

__all__ = [
    "ActiveSessionView",
    "BalanceView",
    "CancelSessionView",
    "CheckInView",
    "CheckOutView",
    "ExtendSessionView",
    "LedgerView",
    "ScanView",
    "SessionDetailView",
    "SessionListView",
    "TopUpView",
    "UsageReportView",
    "UserSessionListView",
]
