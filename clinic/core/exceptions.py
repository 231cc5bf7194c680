"""Tagged errors raised by the scheduling services.

Every error is an ``HTTPException`` so routers can let it propagate; the
application handler in ``clinic.main`` adds the ``code`` tag to the body.
"""
from enum import Enum

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SLOT_TAKEN = "SLOT_TAKEN"
    CONFLICT = "CONFLICT"
    NO_CAPACITY = "NO_CAPACITY"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    ALREADY_COMPLETED = "ALREADY_COMPLETED"
    SERVER_ERROR = "SERVER_ERROR"


class ClinicError(HTTPException):
    code: ErrorCode = ErrorCode.SERVER_ERROR
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.http_status, detail=message)
        self.message = message


class BookingValidationError(ClinicError):
    code = ErrorCode.VALIDATION_ERROR
    http_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(ClinicError):
    code = ErrorCode.NOT_FOUND
    http_status = status.HTTP_404_NOT_FOUND


class SlotTakenError(ClinicError):
    code = ErrorCode.SLOT_TAKEN
    http_status = status.HTTP_409_CONFLICT


class ConflictError(ClinicError):
    code = ErrorCode.CONFLICT
    http_status = status.HTTP_409_CONFLICT


class NoCapacityError(ClinicError):
    code = ErrorCode.NO_CAPACITY
    http_status = status.HTTP_409_CONFLICT


class NotAuthorizedError(ClinicError):
    code = ErrorCode.NOT_AUTHORIZED
    http_status = status.HTTP_403_FORBIDDEN


class AlreadyCancelledError(ClinicError):
    code = ErrorCode.ALREADY_CANCELLED
    http_status = status.HTTP_400_BAD_REQUEST


class AlreadyCompletedError(ClinicError):
    code = ErrorCode.ALREADY_COMPLETED
    http_status = status.HTTP_400_BAD_REQUEST


class ServerError(ClinicError):
    code = ErrorCode.SERVER_ERROR
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
