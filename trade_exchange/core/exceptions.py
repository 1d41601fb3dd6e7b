"""
Application error taxonomy.

Services raise these; the handlers registered in ``trade_exchange.main``
render every one of them as ``{"error": message}`` with ``status_code``.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# 401 / 403
# ---------------------------------------------------------------------------

class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class InvalidTokenError(UnauthorizedError):
    default_message = "Invalid token"


class BadSignatureError(UnauthorizedError):
    default_message = "Invalid token signature"


class ExpiredTokenError(UnauthorizedError):
    default_message = "Token has expired"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


# ---------------------------------------------------------------------------
# 4xx
# ---------------------------------------------------------------------------

class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidActionError(InvalidInputError):
    default_message = "Invalid action"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


# ---------------------------------------------------------------------------
# Upstream failures (never leak internal detail to the client)
# ---------------------------------------------------------------------------

class UpstreamUnavailableError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Service temporarily unavailable"


class StorageUnavailableError(UpstreamUnavailableError):
    default_message = "Storage unavailable"


class PaymentFailedError(UpstreamUnavailableError):
    default_message = "Payment failed, please retry"
