from typing import Optional


class BookingError(Exception):
    """Base exception for booking failures.

    ``status_code`` is the HTTP status the API layer answers with and ``code``
    is a stable machine-readable identifier for clients.
    """

    status_code = 500
    code = "booking_error"

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


class ValidationError(BookingError):
    """Malformed input or missing required fields. Fixable by resubmitting."""

    status_code = 400
    code = "validation_error"


class PolicyViolation(BookingError):
    """Well-formed request for a day or hour that is not bookable."""

    status_code = 400
    code = "policy_violation"


class ConflictError(BookingError):
    """The requested slot overlaps an existing booking."""

    status_code = 409
    code = "slot_conflict"

    def __init__(
        self,
        message: str = "Selected time overlaps with another appointment at this hospital. Please choose a different time.",
        field: Optional[str] = "time_slot",
    ):
        super().__init__(message, field)


class ReferenceCollision(BookingError):
    """The generated reference hit the uniqueness constraint. Safe to retry."""

    status_code = 409
    code = "reference_collision"

    def __init__(self, message: str = "Duplicate reference generated. Please try again.", field: Optional[str] = "reference"):
        super().__init__(message, field)


class ResourceUnavailable(BookingError):
    """The reference sequence does not exist on this database."""

    status_code = 503
    code = "resource_unavailable"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class CatalogConflict(BookingError):
    """A catalogue change clashes with existing data, e.g. deleting a hospital that has bookings."""

    status_code = 409
    code = "catalog_conflict"
