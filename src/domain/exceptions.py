"""
Domain exceptions.

Every error carries the HTTP status code it surfaces as, so the API layer
can render all of them through a single exception handler.  Messages are
safe to show to callers: no internal identifiers or stack traces.
"""


class BookingPlatformError(Exception):
    """Base class for all errors raised by the pricing and ledger core."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


# ── Pricing ───────────────────────────────────────────────────────────


class InvalidDestination(BookingPlatformError):
    default_message = "Invalid destination code"


class InvalidPassengerCount(BookingPlatformError):
    default_message = "Passenger count must be at least 1"


# ── Bookings ──────────────────────────────────────────────────────────


class InvalidBookingRequest(BookingPlatformError):
    default_message = "Invalid booking request"


# ── Ledger ────────────────────────────────────────────────────────────


class InsufficientBalance(BookingPlatformError):
    default_message = "Insufficient balance"


class AlreadyPaid(BookingPlatformError):
    default_message = "Booking already paid"


class BookingNotPayable(BookingPlatformError):
    """Refunded or cancelled bookings take no further payments."""

    default_message = "Booking can no longer be paid"


class UnsupportedPaymentMethod(BookingPlatformError):
    default_message = "Unsupported payment method"


class RefundNotAllowed(BookingPlatformError):
    default_message = "Booking cannot be refunded"


class InvalidTransactionRequest(BookingPlatformError):
    default_message = "Invalid transaction request"


class InvalidStateTransition(BookingPlatformError):
    """Raised when a transaction status change violates the state machine."""

    status_code = 409
    default_message = "Invalid status transition"


class TransactionAlreadyProcessed(InvalidStateTransition):
    default_message = "Transaction has already been processed"


class PaymentInProgress(InvalidStateTransition):
    default_message = "A bank transfer for this booking is awaiting review"


# ── Lookup / access ───────────────────────────────────────────────────


class NotFound(BookingPlatformError):
    status_code = 404
    default_message = "Not found"


class BookingNotFound(NotFound):
    default_message = "Booking not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class TransactionNotFound(NotFound):
    default_message = "Transaction not found"


class Unauthorized(BookingPlatformError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(BookingPlatformError):
    status_code = 403
    default_message = "Access denied"


# ── Storage ───────────────────────────────────────────────────────────


class StorageFailure(BookingPlatformError):
    """The atomic unit could not commit; nothing was written."""

    status_code = 500
    default_message = "An error occurred processing the request. Please try again."
