# salon_scheduler/errors.py

"""
Error taxonomy for scheduling operations.

Services raise these; the handler registered in ``main.py`` turns them into
``{"error": ..., "kind": ...}`` responses with the mapped HTTP status.
"""
from datetime import datetime
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    kind = "SchedulingError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message, "kind": self.kind}
        body.update(self.detail())
        return body


class AuthenticationRequired(SchedulingError):
    kind = "AuthenticationRequired"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationDenied(SchedulingError):
    kind = "AuthorizationDenied"
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFound(SchedulingError):
    kind = "NotFound"
    status_code = 404


class ValidationError(SchedulingError):
    kind = "ValidationError"
    status_code = 400


class ConflictError(SchedulingError):
    kind = "ConflictError"
    status_code = 422

    def __init__(
        self,
        message: str = "Time unavailable for this professional",
        professional_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        conflict_with: Optional[str] = None,
    ):
        super().__init__(message)
        self.professional_id = professional_id
        self.start_time = start_time
        self.end_time = end_time
        self.conflict_with = conflict_with

    def detail(self) -> Dict[str, Any]:
        return {
            "professionalId": self.professional_id,
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "conflictWith": self.conflict_with,
        }


class DuplicateCustomer(ConflictError):
    """Another booking created the same (tenant, phone) customer first."""
    kind = "DuplicateCustomer"

    def __init__(self, message: str = "Customer was registered concurrently, please retry"):
        super().__init__(message)

    def detail(self) -> Dict[str, Any]:
        return {}


class ServerMisconfigured(SchedulingError):
    kind = "ServerMisconfigured"
    status_code = 500


class InvalidStateTransition(SchedulingError):
    kind = "InvalidStateTransition"
    status_code = 422

    def __init__(self, message: str, current_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status

    def detail(self) -> Dict[str, Any]:
        return {"currentStatus": self.current_status}
