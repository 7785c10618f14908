"""CondoPark-Engine exception hierarchy.

Every error carries a stable ``code`` and the HTTP ``status_code`` the API
boundary maps it to.
"""


class CondoParkError(Exception):
    """Base exception for all CondoPark errors."""

    status_code = 400

    def __init__(self, message: str = "", code: str = "CONDOPARK_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


# ── Identity & tenancy ──


class UnauthenticatedError(CondoParkError):
    """Missing, malformed, expired or revoked session token."""

    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="UNAUTHENTICATED")


class NoTenantAssignedError(CondoParkError):
    """A valid token that carries no tenant claim."""

    status_code = 403

    def __init__(self, message: str = "No community assigned"):
        super().__init__(message, code="NO_TENANT")


class CrossTenantAccessDeniedError(CondoParkError):
    """The requested tenant differs from the caller's tenant."""

    status_code = 403

    def __init__(self, message: str = "Access denied to other communities"):
        super().__init__(message, code="CROSS_TENANT_DENIED")


class InvalidCredentialsError(CondoParkError):
    """Single externally visible login failure.

    Unknown community, unknown email, wrong password and throttled attempts
    all raise this with the same message.
    """

    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class RateLimitedError(CondoParkError):
    """Signup throttled. Carries the limiter state for response headers."""

    status_code = 429

    def __init__(self, result=None, message: str = "Too many attempts. Try again later."):
        self.result = result
        super().__init__(message, code="RATE_LIMITED")


class RegistrationRejectedError(CondoParkError):
    status_code = 400

    def __init__(
        self,
        message: str = "Invalid registration credentials. Please verify your information and try again.",
    ):
        super().__init__(message, code="REGISTRATION_REJECTED")


class EmailAlreadyRegisteredError(CondoParkError):
    status_code = 409

    def __init__(
        self,
        message: str = "This email is already registered. Please use a different email or contact support.",
    ):
        super().__init__(message, code="EMAIL_TAKEN")


class UnitAlreadyRegisteredError(CondoParkError):
    status_code = 409

    def __init__(self, message: str = "This unit is already registered in the community"):
        super().__init__(message, code="UNIT_TAKEN")


# ── Pricing ──


class InvalidIntervalError(CondoParkError):
    status_code = 422

    def __init__(self, message: str = "End time must be after start time"):
        super().__init__(message, code="INVALID_INTERVAL")


class DurationTooLongError(CondoParkError):
    status_code = 422

    def __init__(self, message: str = "Booking duration exceeds the maximum"):
        super().__init__(message, code="DURATION_TOO_LONG")


class InvalidRateError(CondoParkError):
    status_code = 422

    def __init__(self, message: str = "Rate per hour must be greater than 0"):
        super().__init__(message, code="INVALID_RATE")


class InvalidStatusError(CondoParkError):
    """Unknown slot or community status value."""

    status_code = 422

    def __init__(self, message: str = "Invalid status"):
        super().__init__(message, code="INVALID_STATUS")


# ── Slots & bookings ──


class SlotNotFoundError(CondoParkError):
    status_code = 404

    def __init__(self, message: str = "Slot not found"):
        super().__init__(message, code="SLOT_NOT_FOUND")


class DuplicateSlotNumberError(CondoParkError):
    status_code = 409

    def __init__(self, message: str = "Slot number already exists in this community"):
        super().__init__(message, code="SLOT_NUMBER_TAKEN")


class BookingNotFoundError(CondoParkError):
    status_code = 404

    def __init__(self, message: str = "Booking not found"):
        super().__init__(message, code="BOOKING_NOT_FOUND")


class ResourceUnavailableError(CondoParkError):
    status_code = 409

    def __init__(self, message: str = "Slot is not available for booking"):
        super().__init__(message, code="RESOURCE_UNAVAILABLE")


class SlotConflictError(CondoParkError):
    status_code = 409

    def __init__(self, message: str = "Slot is already booked for this time period"):
        super().__init__(message, code="SLOT_CONFLICT")


class ReservationBusyError(CondoParkError):
    """Lock wait exceeded; the caller should retry."""

    status_code = 503

    def __init__(self, message: str = "Slot is busy, try again"):
        super().__init__(message, code="TRY_AGAIN")


class NotSlotOwnerError(CondoParkError):
    status_code = 403

    def __init__(self, message: str = "Only the slot owner can do this"):
        super().__init__(message, code="NOT_SLOT_OWNER")


class NotBookingPartyError(CondoParkError):
    status_code = 403

    def __init__(self, message: str = "Not authorized to change this booking"):
        super().__init__(message, code="NOT_BOOKING_PARTY")


class InvalidTransitionError(CondoParkError):
    status_code = 409

    def __init__(self, message: str = "Booking is no longer pending"):
        super().__init__(message, code="INVALID_TRANSITION")


# ── Community code rotation ──


class UnknownCodeError(CondoParkError):
    status_code = 404

    def __init__(self, message: str = "Community code not found"):
        super().__init__(message, code="UNKNOWN_CODE")


class CodeAlreadyInUseError(CondoParkError):
    status_code = 409

    def __init__(self, message: str = "Community code already in use"):
        super().__init__(message, code="CODE_IN_USE")


class InvalidCodeFormatError(CondoParkError):
    status_code = 422

    def __init__(self, message: str = "Expected format: {acronym}_{random} (e.g., lmr_x7k9p2)"):
        super().__init__(message, code="INVALID_CODE_FORMAT")


# ── Fatal ──


class PersistenceFailure(CondoParkError):
    """Unexpected storage error. The transaction has been rolled back."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="PERSISTENCE_FAILURE")
