"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager

from registrations.domain import (
    Applicant,
    ApplicantFields,
    ApplicantId,
    ApplicantStatus,
    CandidateSelection,
    Confirmation,
    Course,
    CourseDateCount,
    CourseId,
    DateCount,
    DateSlot,
    DateSlotId,
    Event,
    EventId,
    LogAction,
    RequestOrigin,
)
from registrations.domain.transitions import LedgerOp, LedgerStep


class TransactionManager(ABC):
    """Interface for grouping store calls into one unit of work."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Return a context manager that commits or rolls back as one unit."""
        ...


class EventStore(ABC):
    """Interface for event catalog lookups."""

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def get_date_slot(self, date_id: DateSlotId) -> DateSlot | None:
        """Return a date slot by ID, or None if not found."""
        ...

    @abstractmethod
    def list_date_slots(self, event_id: EventId) -> list[DateSlot]:
        """Return the event's date slots ordered by date ascending."""
        ...

    @abstractmethod
    def get_course(self, course_id: CourseId) -> Course | None:
        """Return a course with the dates it is offered on, or None."""
        ...

    @abstractmethod
    def find_course_by_name(self, event_id: EventId, name: str) -> Course | None:
        """Return the event's course with exactly this name, or None."""
        ...


class RegistrationStore(ABC):
    """Interface for applicant and candidate selection persistence."""

    @abstractmethod
    def get_applicant(self, applicant_id: ApplicantId, *, for_update: bool = False) -> Applicant | None:
        """Return an applicant with selections ordered by priority.

        With ``for_update`` the applicant row stays locked until the
        surrounding transaction ends.
        """
        ...

    @abstractmethod
    def create_applicant(
        self,
        event_id: EventId,
        fields: ApplicantFields,
        selections: list[CandidateSelection],
    ) -> Applicant:
        """Persist an applicant together with its selections."""
        ...

    @abstractmethod
    def replace_selection(
        self, applicant_id: ApplicantId, old_date_id: DateSlotId, selection: CandidateSelection
    ) -> None:
        """Overwrite the selection on ``old_date_id`` in place."""
        ...

    @abstractmethod
    def email_has_selection(
        self, event_id: EventId, email: str, date_ids: list[DateSlotId]
    ) -> bool:
        """Return True if an applicant of the event with this email already
        selected any of ``date_ids``. Emails compare case-insensitively."""
        ...

    @abstractmethod
    def record_log(
        self,
        applicant_id: ApplicantId,
        action: LogAction,
        details: dict,
        origin: RequestOrigin | None = None,
    ) -> None:
        """Append an audit log entry for the applicant."""
        ...

    @abstractmethod
    def set_status(self, applicant_id: ApplicantId, status: ApplicantStatus) -> None:
        """Update the denormalized applicant status."""
        ...

    @abstractmethod
    def delete_applicant(self, applicant_id: ApplicantId) -> bool:
        """Delete an applicant and everything it owns. Return False if absent."""
        ...


class ConfirmationStore(ABC):
    """Interface for confirmation record persistence."""

    @abstractmethod
    def list_for_applicant(self, applicant_id: ApplicantId) -> list[Confirmation]:
        """Return all confirmations held by an applicant."""
        ...

    @abstractmethod
    def create(
        self,
        applicant_id: ApplicantId,
        date_id: DateSlotId,
        course_id: CourseId | None,
        confirmed_by: str,
    ) -> Confirmation:
        """Insert a confirmation row."""
        ...

    @abstractmethod
    def retarget(
        self,
        applicant_id: ApplicantId,
        date_id: DateSlotId,
        *,
        new_date_id: DateSlotId,
        course_id: CourseId | None,
    ) -> Confirmation:
        """Point an existing confirmation at another date/course and bump updated_at."""
        ...

    @abstractmethod
    def delete(self, applicant_id: ApplicantId, date_ids: list[DateSlotId]) -> int:
        """Delete the applicant's confirmations on ``date_ids``. Return the count."""
        ...


class CapacityLedger(ABC):
    """Sole writer of confirmed counters.

    Every mutation must be atomic with respect to concurrent callers.
    """

    @abstractmethod
    def increment_date(self, date_id: DateSlotId) -> None:
        ...

    @abstractmethod
    def decrement_date(self, date_id: DateSlotId) -> None:
        """Raises InvariantViolationError if the counter is already zero."""
        ...

    @abstractmethod
    def increment_course_date(self, course_id: CourseId, date_id: DateSlotId) -> None:
        """Increment the course-date counter and the date counter together."""
        ...

    @abstractmethod
    def decrement_course_date(self, course_id: CourseId, date_id: DateSlotId) -> None:
        """Decrement the course-date counter and the date counter together."""
        ...

    @abstractmethod
    def move_course(
        self,
        date_id: DateSlotId,
        old_course_id: CourseId | None,
        new_course_id: CourseId | None,
    ) -> None:
        """Shift one seat between courses of a date. The date counter is untouched."""
        ...

    @abstractmethod
    def get_date_counts(self, event_id: EventId) -> list[DateCount]:
        ...

    @abstractmethod
    def get_course_date_counts(self, event_id: EventId) -> list[CourseDateCount]:
        ...

    def claim(self, date_id: DateSlotId, course_id: CourseId | None) -> None:
        if course_id is None:
            self.increment_date(date_id)
        else:
            self.increment_course_date(course_id, date_id)

    def release(self, date_id: DateSlotId, course_id: CourseId | None) -> None:
        if course_id is None:
            self.decrement_date(date_id)
        else:
            self.decrement_course_date(course_id, date_id)

    def apply(self, step: LedgerStep) -> None:
        if step.op is LedgerOp.CLAIM:
            self.claim(step.date_id, step.course_id)
        elif step.op is LedgerOp.RELEASE:
            self.release(step.date_id, step.course_id)
        else:
            self.move_course(step.date_id, step.previous_course_id, step.course_id)
