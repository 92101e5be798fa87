"""
Domain exceptions for the scheduling and treatment-tracking services.

Every exception is an ``HTTPException`` so services can raise them directly
and FastAPI renders the matching status code. Callers outside a request
(scripts, tests) can catch them by class.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class carrying a status code, a message and optional details."""

    status_code_default = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=self.status_code_default,
            detail={"message": message, "error": self.error, "details": self.details},
        )

    def __str__(self) -> str:
        return self.message


class NotFoundError(DomainError):
    """Referenced entity does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND
    error = "Not Found"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} with ID {identifier} not found",
            {"resource": resource, "id": identifier},
        )


class BadRequestError(DomainError):
    """Structurally invalid request for the current operation."""


class ValidationError(BadRequestError):
    """A field value is out of its allowed range or format."""

    error = "Validation Error"


class ConflictError(DomainError):
    """Request conflicts with the current state of the data."""

    status_code_default = status.HTTP_409_CONFLICT
    error = "Conflict"


class ScheduleConflictError(ConflictError):
    error = "Schedule Setting Conflict"

    def __init__(self, day_of_week: int, existing_setting_id: int):
        super().__init__(
            f"Active schedule setting for day {day_of_week} already exists (ID: {existing_setting_id})",
            {"day_of_week": day_of_week, "existing_setting_id": existing_setting_id},
        )


class NoScheduleConfiguredError(NotFoundError):
    error = "No Schedule Configured"

    def __init__(self, day_of_week: int):
        DomainError.__init__(
            self,
            f"No active schedule setting configured for day {day_of_week}",
            {"day_of_week": day_of_week},
        )


class OutsideOperatingHoursError(ConflictError):
    error = "Outside Operating Hours"

    def __init__(self, scheduled_date: str, scheduled_time: str, start_time: str, end_time: str):
        super().__init__(
            f"Time {scheduled_time} on {scheduled_date} is outside operating hours {start_time}-{end_time}",
            {
                "scheduled_date": scheduled_date,
                "scheduled_time": scheduled_time,
                "start_time": start_time,
                "end_time": end_time,
            },
        )


class CapacityExceededError(ConflictError):
    error = "Capacity Exceeded"

    def __init__(self, scheduled_date: str, scheduled_time: str, attendance_type: str, capacity: int):
        super().__init__(
            f"No available slots for {attendance_type} attendance on {scheduled_date} at {scheduled_time} "
            f"(capacity {capacity})",
            {
                "scheduled_date": scheduled_date,
                "scheduled_time": scheduled_time,
                "type": attendance_type,
                "capacity": capacity,
            },
        )


class InvalidStatusTransitionError(ConflictError):
    error = "Invalid Status Transition"

    def __init__(self, attendance_id: int, current_status: str, target_status: str):
        super().__init__(
            f"Invalid status transition for attendance {attendance_id}: "
            f"cannot change from '{current_status}' to '{target_status}'",
            {
                "attendance_id": attendance_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class InvalidStateForRescheduleError(ConflictError):
    error = "Invalid State For Reschedule"

    def __init__(self, record_id: int, current_status: str):
        super().__init__(
            f"Session record {record_id} is {current_status} and cannot be rescheduled",
            {"record_id": record_id, "current_status": current_status},
        )
