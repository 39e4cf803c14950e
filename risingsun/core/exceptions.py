"""
Typed errors raised by the attendance & payroll engine.

Every error carries a machine-readable ``code`` and the HTTP status the API
answers with, so callers branch on the type, never on the message text:

    AttendanceEngineError
    +-- ConflictError          (clock-in while a session is open)
    +-- NotFoundError          (unknown session / advance / user id)
    +-- AlreadyClosedError     (clock-out on a closed session)
    +-- ValidationError        (bad input rejected before the store)
    +-- InfrastructureError    (the store itself failed)
"""
from typing import Any, Dict, Optional


class AttendanceEngineError(Exception):
    """Base class for all engine failures."""

    code: str = "ENGINE_ERROR"
    status_code: int = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "detail": self.message}
        if self.details:
            out["details"] = self.details
        return out


class ConflictError(AttendanceEngineError):
    code = "CONFLICT"
    status_code = 409


class NotFoundError(AttendanceEngineError):
    code = "NOT_FOUND"
    status_code = 404


class AlreadyClosedError(AttendanceEngineError):
    code = "ALREADY_CLOSED"
    status_code = 409


class ValidationError(AttendanceEngineError):
    code = "VALIDATION_ERROR"
    status_code = 422


class InfrastructureError(AttendanceEngineError):
    """The persistence layer failed; the driver message is kept verbatim."""

    code = "INFRASTRUCTURE_ERROR"
    status_code = 503

    def __init__(self, message: str, cause: Optional[BaseException] = None, **details: Any):
        super().__init__(message, **details)
        self.cause = cause
