"""Error taxonomy for RateIt."""


class RateItError(Exception):
    """Base class for all domain errors.

    Each subclass carries a stable ``code`` so callers can show a targeted
    message instead of a generic failure.
    """

    code = "ERROR"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class NotAuthenticatedError(RateItError):
    code = "NOT_AUTHENTICATED"
    default_message = "Not authenticated"


class MaxPinnedError(RateItError):
    code = "MAX_PINNED"
    default_message = "You can pin at most 5 items"


class DuplicateTitleError(RateItError):
    code = "DUPLICATE_TITLE"
    default_message = "An item with that title already exists"


class ConflictError(RateItError):
    code = "CONFLICT"
    default_message = "Conflicting record already exists"


class NotFoundError(RateItError):
    code = "NOT_FOUND"
    default_message = "Not found"


class TransientError(RateItError):
    code = "TRANSIENT"
    default_message = "Service unavailable, try again"


class ValidationError(RateItError):
    code = "VALIDATION"
    default_message = "Invalid input"


class ConfigurationError(RateItError):
    code = "CONFIGURATION"
    default_message = "Missing or invalid configuration"
