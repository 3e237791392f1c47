"""Domain errors raised by services and rendered by the API layer."""


class ServiceError(Exception):
    """Base error for business rule violations."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BadRequestError(ServiceError):
    """Request violates a business rule."""

    status_code = 400


class UnauthorizedError(ServiceError):
    """Missing or invalid credentials."""

    status_code = 401


class ForbiddenError(ServiceError):
    """Authenticated but not allowed."""

    status_code = 403


class NotFoundError(ServiceError):
    """Requested entity does not exist or is not visible to the caller."""

    status_code = 404


class ConflictError(ServiceError):
    """Entity already exists."""

    status_code = 409


class TooManyRequestsError(ServiceError):
    """Per-identifier rate limit hit (OTP cooldowns etc.)."""

    status_code = 429
