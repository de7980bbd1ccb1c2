"""Domain error codes for the registrations module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_ID = "INVALID_ID"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    APPLICANT_NOT_FOUND = "APPLICANT_NOT_FOUND"
    DATE_NOT_FOUND = "DATE_NOT_FOUND"
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    CONFIRMATION_NOT_FOUND = "CONFIRMATION_NOT_FOUND"
    NOT_A_SELECTED_DATE = "NOT_A_SELECTED_DATE"
    POLICY_VIOLATION = "POLICY_VIOLATION"
    CROSS_EVENT_EDIT = "CROSS_EVENT_EDIT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"
    MALFORMED_BATCH = "MALFORMED_BATCH"
    MISSING_FIELD = "MISSING_FIELD"
    UNEXPECTED = "UNEXPECTED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidIdError(DomainError):
    """Raised when an identifier is not a valid UUID."""

    def __init__(self, field: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_ID,
            message=f"Invalid {field} format",
        )
        self.field = field


class EventNotFoundError(DomainError):
    """Raised when an event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        self.event_id = event_id


class ApplicantNotFoundError(DomainError):
    """Raised when an applicant is not found."""

    def __init__(self, applicant_id: str) -> None:
        super().__init__(
            code=ErrorCode.APPLICANT_NOT_FOUND,
            message="Applicant not found",
        )
        self.applicant_id = applicant_id


class DateNotFoundError(DomainError):
    """Raised when a date does not resolve to a slot of the event."""

    def __init__(self, date_ref: str, message: str = "Date is not part of this event") -> None:
        super().__init__(code=ErrorCode.DATE_NOT_FOUND, message=message)
        self.date_ref = date_ref


class CourseNotFoundError(DomainError):
    """Raised when a course name or id does not resolve."""

    def __init__(self, course_ref: str) -> None:
        super().__init__(
            code=ErrorCode.COURSE_NOT_FOUND,
            message="Course is not offered on this date",
        )
        self.course_ref = course_ref


class ConfirmationNotFoundError(DomainError):
    """Raised when an unconfirm finds nothing to remove."""

    def __init__(self, applicant_id: str) -> None:
        super().__init__(
            code=ErrorCode.CONFIRMATION_NOT_FOUND,
            message="No confirmation found",
        )
        self.applicant_id = applicant_id


class NotASelectedDateError(DomainError):
    """Raised when a date is not among the applicant's selections."""

    def __init__(self, applicant_id: str, date_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_A_SELECTED_DATE,
            message="Date was not selected by the applicant",
        )
        self.applicant_id = applicant_id
        self.date_id = date_id


class PolicyViolationError(DomainError):
    """Raised when a request breaks the event's participation policy."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.POLICY_VIOLATION, message=message)


class CrossEventEditError(DomainError):
    """Raised when an edit would move a selection to another event."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CROSS_EVENT_EDIT,
            message="Cannot move a selection to a date of a different event",
        )


class CapacityExceededError(DomainError):
    """Raised when strict capacity is enabled and a slot is full."""

    def __init__(self, slot: str) -> None:
        super().__init__(
            code=ErrorCode.CAPACITY_EXCEEDED,
            message="Capacity has been reached",
        )
        self.slot = slot


class InvariantViolationError(DomainError):
    """Raised when a counter would drift below zero."""

    def __init__(self, slot: str) -> None:
        super().__init__(
            code=ErrorCode.INVARIANT_VIOLATION,
            message="Confirmed count is out of sync",
        )
        self.slot = slot


class MalformedBatchError(DomainError):
    """Raised when a reconciliation batch is structurally unusable."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.MALFORMED_BATCH, message=message)


class MissingFieldError(DomainError):
    """Raised when a required field is empty."""

    def __init__(self, fields: tuple[str, ...]) -> None:
        super().__init__(
            code=ErrorCode.MISSING_FIELD,
            message=f"Missing required field: {', '.join(fields)}",
        )
        self.fields = fields
