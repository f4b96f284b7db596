"""Domain error codes and error kinds for the ticketing module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_WINDOW = "INVALID_WINDOW"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_CODE_FORMAT = "INVALID_CODE_FORMAT"
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    BALANCE_LIMIT_EXCEEDED = "BALANCE_LIMIT_EXCEEDED"
    ACTIVE_SESSION_EXISTS = "ACTIVE_SESSION_EXISTS"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    LOCATION_NOT_FOUND = "LOCATION_NOT_FOUND"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    PAYMENT_DECLINED = "PAYMENT_DECLINED"
    TOKEN_TAMPERED = "TOKEN_TAMPERED"
    UNEXPECTED_STATUS = "UNEXPECTED_STATUS"
    OUTSIDE_WINDOW = "OUTSIDE_WINDOW"
    CANCELLATION_CLOSED = "CANCELLATION_CLOSED"
    SESSION_CANCELLED = "SESSION_CANCELLED"
    SESSION_NOT_ACTIVATABLE = "SESSION_NOT_ACTIVATABLE"
    SESSION_NOT_STARTED = "SESSION_NOT_STARTED"
    CODE_MISMATCH = "CODE_MISMATCH"
    INJECTED_FAULT = "INJECTED_FAULT"


MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_INPUT: "Invalid input",
    ErrorCode.INVALID_AMOUNT: "Amount must be a positive whole number of cents",
    ErrorCode.INVALID_WINDOW: "Session end must be after its start",
    ErrorCode.INVALID_DURATION: "Session duration is outside the allowed range",
    ErrorCode.INVALID_CODE_FORMAT: (
        "Invalid check-in code format. Code should be CHK- followed by 6 characters."
    ),
    ErrorCode.MALFORMED_TOKEN: "Check-in token could not be decoded",
    ErrorCode.BALANCE_LIMIT_EXCEEDED: "Wallet balance limit would be exceeded",
    ErrorCode.ACTIVE_SESSION_EXISTS: (
        "You already have an active session. End or cancel it before booking another."
    ),
    ErrorCode.ALREADY_CHECKED_IN: "This booking has already been checked in.",
    ErrorCode.SESSION_NOT_FOUND: "Booking not found. Please verify your booking details.",
    ErrorCode.LOCATION_NOT_FOUND: "Location not found",
    ErrorCode.INSUFFICIENT_FUNDS: "Insufficient wallet balance. Please top up your wallet.",
    ErrorCode.PAYMENT_DECLINED: "Payment declined. Please try a different amount or contact support.",
    ErrorCode.TOKEN_TAMPERED: "Check-in token failed integrity verification",
    ErrorCode.UNEXPECTED_STATUS: "Session status does not allow this operation",
    ErrorCode.OUTSIDE_WINDOW: "Operation is only allowed inside the session window",
    ErrorCode.CANCELLATION_CLOSED: "Sessions can only be cancelled before they start",
    ErrorCode.SESSION_CANCELLED: "This booking has been cancelled and cannot be checked in.",
    ErrorCode.SESSION_NOT_ACTIVATABLE: (
        "This booking cannot be checked in. It may have expired or not started yet."
    ),
    ErrorCode.SESSION_NOT_STARTED: "This session has not started yet.",
    ErrorCode.CODE_MISMATCH: "Check-in code does not match. Please verify and try again.",
    ErrorCode.INJECTED_FAULT: "Simulated failure. Please try again.",
}


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised for malformed input (bad amounts, windows, codes, tokens)."""

    def __init__(
        self, code: ErrorCode = ErrorCode.INVALID_INPUT, message: str | None = None
    ) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])


class ConflictError(DomainError):
    """Raised when an operation collides with existing state."""

    def __init__(
        self, code: ErrorCode = ErrorCode.ACTIVE_SESSION_EXISTS, message: str | None = None
    ) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])


class NotFoundError(DomainError):
    """Raised when a session or location does not exist."""

    def __init__(
        self, code: ErrorCode = ErrorCode.SESSION_NOT_FOUND, message: str | None = None
    ) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])


class FundsError(DomainError):
    """Raised when the wallet cannot cover a debit or a payment is declined."""

    def __init__(
        self, code: ErrorCode = ErrorCode.INSUFFICIENT_FUNDS, message: str | None = None
    ) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])


class IntegrityError(DomainError):
    """Raised when a token checksum does not match its fields."""

    def __init__(
        self, code: ErrorCode = ErrorCode.TOKEN_TAMPERED, message: str | None = None
    ) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])


class StateError(DomainError):
    """Raised when a transition is attempted from a status that forbids it."""

    def __init__(
        self, code: ErrorCode = ErrorCode.UNEXPECTED_STATUS, message: str | None = None
    ) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])


class CheckInError(DomainError):
    """Raised by the check-in validator; the code names the failed step."""

    def __init__(self, code: ErrorCode, message: str | None = None) -> None:
        super().__init__(code=code, message=message or MESSAGES[code])
