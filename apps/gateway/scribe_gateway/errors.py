"""Application exception types."""

from scribe_gateway.schemas.error import ErrorResponse


class GatewayError(Exception):
    """Structured gateway error that maps directly to the ``{"error": ...}`` payload."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message
        self.payload = ErrorResponse(error=message)
        super().__init__(message)


class Unauthenticated(GatewayError):
    status_code = 401
    code = "UNAUTHENTICATED"


class Forbidden(GatewayError):
    status_code = 403
    code = "FORBIDDEN"


class BadRequest(GatewayError):
    status_code = 400
    code = "BAD_REQUEST"


class NotFound(GatewayError):
    status_code = 404
    code = "NOT_FOUND"


class BackendRejected(GatewayError):
    """Backend answered with a non-2xx status; message and status pass through."""

    code = "BACKEND_REJECTED"

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message, status_code=status_code)


class TransportFailure(GatewayError):
    status_code = 502
    code = "TRANSPORT_FAILURE"


class InternalError(GatewayError):
    status_code = 500
    code = "INTERNAL_ERROR"


__all__ = [
    "BackendRejected",
    "BadRequest",
    "Forbidden",
    "GatewayError",
    "InternalError",
    "NotFound",
    "TransportFailure",
    "Unauthenticated",
]
