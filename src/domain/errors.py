"""
Error taxonomy for booking and settlement.

Every failure the core can report is a BookingError subclass.  The HTTP
layer maps each class to a status code in one place; the core itself never
retries any of them.

Note that an already-settled reservation is NOT an error: the store reports
it as SettleOutcome.ALREADY_SETTLED.
"""


class BookingError(Exception):
    """Base class for all errors surfaced by the booking core."""

    code = "booking_error"


# -- caller input ------------------------------------------------------------


class ValidationError(BookingError):
    """Bad input that the caller can fix."""

    code = "validation_error"


class InvalidModeError(ValidationError):
    """Booking mode is not one of per_hour, half_day, full_day."""

    code = "invalid_mode"


# -- referential -------------------------------------------------------------


class AssetNotFoundError(BookingError):
    """The boat referenced by a booking does not exist (anymore)."""

    code = "asset_not_found"


class UnknownReservationError(BookingError):
    """No reservation exists for the given id."""

    code = "unknown_reservation"


class ReservationAlreadySettledError(BookingError):
    """Payment was requested for a reservation that is already paid."""

    code = "already_settled"


class ForbiddenError(BookingError):
    """The authenticated caller may not act for the requester named in the request."""

    code = "forbidden"


# -- gateway -----------------------------------------------------------------


class GatewayUnavailableError(BookingError):
    """Transport failure, timeout or 5xx from the payment gateway. Retryable by the user."""

    code = "gateway_unavailable"


class GatewayError(BookingError):
    """The gateway understood the request and refused it."""

    code = "gateway_error"


# -- webhook integrity -------------------------------------------------------


class SignatureInvalidError(BookingError):
    """Confirmation event signature missing, malformed, stale or wrong."""

    code = "signature_invalid"


class MissingCorrelationError(BookingError):
    """Confirmation event carries no reservation id in its metadata."""

    code = "missing_correlation"


# -- startup -----------------------------------------------------------------


class ConfigurationError(BookingError):
    """Required configuration is missing. Fatal at startup."""

    code = "configuration_error"
