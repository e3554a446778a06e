# tutoring_scheduler/core/exceptions.py
"""
Domain exceptions for the booking engine.

Services raise these; the API layer renders them as JSON with the family
status code of each class so callers can tell validation,
not-found, authorization and conflict failures apart.
"""
from __future__ import annotations

from typing import Any

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictException(DomainException):
    """Raised when a request collides with existing data or state."""

    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailableException(DomainException):
    """Raised on transient infrastructure failures; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# Time input


class InvalidFormat(ValidationException):
    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Invalid time format: {value!r} (expected HH:MM)",
            code="INVALID_FORMAT",
            details={"value": value},
        )


class InvalidRange(ValidationException):
    def __init__(self, start: str, end: str) -> None:
        super().__init__(
            "End time must be after start time",
            code="INVALID_RANGE",
            details={"start_time": start, "end_time": end},
        )


# References


class NotFound(NotFoundException):
    def __init__(self, resource: str, resource_id: Any) -> None:
        super().__init__(
            f"{resource} not found",
            code="NOT_FOUND",
            details={"resource": resource, "id": resource_id},
        )


# Availability


class TeacherNotAvailableThatDay(ValidationException):
    def __init__(self, teacher_id: int, day_of_week: int, day_name: str) -> None:
        super().__init__(
            f"Teacher is not available on {day_name}s",
            code="TEACHER_NOT_AVAILABLE_THAT_DAY",
            details={"teacher_id": teacher_id, "day_of_week": day_of_week},
        )


class OutsideAvailability(ValidationException):
    def __init__(self, teacher_id: int, day_of_week: int, windows: list[str]) -> None:
        super().__init__(
            "Booking time must be within teacher's available slots. "
            f"Available: {', '.join(windows)}",
            code="OUTSIDE_AVAILABILITY",
            details={
                "teacher_id": teacher_id,
                "day_of_week": day_of_week,
                "available": windows,
            },
        )


# Conflicts


class StudentDoubleBooked(ConflictException):
    def __init__(self, student_id: int, booking_ids: list[int]) -> None:
        super().__init__(
            "Student already has an overlapping booking",
            code="STUDENT_DOUBLE_BOOKED",
            details={"student_id": student_id, "booking_ids": booking_ids},
        )


class CapacityExceeded(ConflictException):
    def __init__(self, overlapping: int, max_capacity: int) -> None:
        super().__init__(
            f"Teacher is fully booked for this time slot ({overlapping}/{max_capacity})",
            code="CAPACITY_EXCEEDED",
            details={"overlapping": overlapping, "max_capacity": max_capacity},
        )


class NoMatchingDates(ValidationException):
    def __init__(self, day_of_week: int, month: int, year: int) -> None:
        super().__init__(
            "No dates found for the given weekday in this month",
            code="NO_MATCHING_DATES",
            details={"day_of_week": day_of_week, "month": month, "year": year},
        )


# State machine


class AlreadyConfirmed(ConflictException):
    def __init__(self, booking_id: int) -> None:
        super().__init__(
            "Booking is already confirmed",
            code="ALREADY_CONFIRMED",
            details={"booking_id": booking_id},
        )


class NotConfirmed(ConflictException):
    def __init__(self, booking_id: int, current_status: str) -> None:
        super().__init__(
            "Attendance can only be marked on confirmed bookings",
            code="NOT_CONFIRMED",
            details={"booking_id": booking_id, "status": current_status},
        )


class Forbidden(ForbiddenException):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, code="FORBIDDEN")


class StorageUnavailable(ServiceUnavailableException):
    def __init__(self, operation: str) -> None:
        super().__init__(
            "Storage is temporarily unavailable, retry the operation",
            code="STORAGE_UNAVAILABLE",
            details={"operation": operation},
        )
