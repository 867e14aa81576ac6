"""Application exceptions mapped to HTTP error responses."""


class AppException(Exception):
    """Base application exception."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        """Initialize exception with message and optional status override."""
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Requested row does not exist or is not visible to the caller."""

    status_code = 404

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class UnauthorizedException(AppException):
    """Missing, invalid or revoked credentials."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class ForbiddenException(AppException):
    """Authenticated caller lacks the role or ownership required."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class BadRequestException(AppException):
    """Malformed request that passed schema validation."""

    status_code = 400

    def __init__(self, message: str = "Bad request"):
        super().__init__(message)


class ConflictException(AppException):
    """Write rejected because of the current state of a row."""

    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)


class ValidationException(AppException):
    """Business validation failure."""

    status_code = 422

    def __init__(self, message: str = "Validation error"):
        super().__init__(message)


class RateLimitException(AppException):
    """Too many attempts within the rate-limit window."""

    status_code = 429

    def __init__(self, message: str = "Too many attempts, try again later"):
        super().__init__(message)


class SlotUnavailableException(ConflictException):
    """Slot was booked by someone else or withdrawn by its doctor."""

    def __init__(self, slot_id: object):
        self.slot_id = slot_id
        super().__init__("Slot is no longer available")


class InvalidTransitionException(ConflictException):
    """Appointment status transition not allowed from the current state."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change appointment status from '{current}' to '{target}'")
