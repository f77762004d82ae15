class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class NotFoundError(DomainError):
    """Raised when a referenced shift, entry or request does not exist."""

    kind = "not_found"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    kind = "authentication_error"


class PermissionDeniedError(DomainError):
    """Raised when the actor (or the store on its behalf) refuses a write."""

    kind = "permission_denied"


class AlreadyClockedInError(DomainError):
    """Raised when an employee already has an active clock entry."""

    kind = "already_clocked_in"


class NoActiveEntryError(DomainError):
    """Raised when a clock entry is missing or already closed."""

    kind = "no_active_entry"


class DuplicateRequestError(DomainError):
    """Raised when a pending coverage request exists for the same shift and employee."""

    kind = "duplicate_request"


class LocationUnavailableError(DomainError):
    """Raised by location capture only; callers must recover locally."""

    kind = "location_unavailable"


class StoreUnavailableError(DomainError):
    """Transient storage failure. Callers retry on their own cadence."""

    kind = "store_unavailable"
