"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in registrations/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime

from registrations.domain.value_objects import (
    ApplicantId,
    ApplicantStatus,
    Capacity,
    CourseId,
    DateSlotId,
    EventId,
    EventPolicy,
    Priority,
)


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    name: str
    policy: EventPolicy
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class DateSlot:
    """Domain representation of a DateSlot."""

    id: DateSlotId
    event_id: EventId
    date: date
    capacity: Capacity
    confirmed_count: int


@dataclass(frozen=True)
class Course:
    """Domain representation of a Course."""

    id: CourseId
    event_id: EventId
    name: str
    date_ids: frozenset[DateSlotId] = frozenset()

    def is_offered_on(self, date_id: DateSlotId) -> bool:
        return date_id in self.date_ids


@dataclass(frozen=True)
class CandidateSelection:
    """An applicant's declared interest in a (date, course) pair."""

    date_id: DateSlotId
    course_id: CourseId | None
    priority: Priority


@dataclass(frozen=True)
class Applicant:
    """Domain representation of an Applicant and its ranked selections."""

    id: ApplicantId
    event_id: EventId
    name: str
    email: str
    status: ApplicantStatus
    created_at: datetime
    selections: tuple[CandidateSelection, ...] = ()

    def selection_for(self, date_id: DateSlotId) -> CandidateSelection | None:
        for selection in self.selections:
            if selection.date_id == date_id:
                return selection
        return None


@dataclass(frozen=True)
class Confirmation:
    """Capacity-consuming record locking one selection as attending."""

    applicant_id: ApplicantId
    date_id: DateSlotId
    course_id: CourseId | None
    confirmed_by: str
    confirmed_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ApplicantFields:
    """Validated intake data for a new applicant."""

    name: str
    email: str
    kana_name: str = ""
    phone: str = ""
    school_name: str = ""
    grade: str = ""


@dataclass(frozen=True)
class RequestOrigin:
    """Where an intake or edit request came from, kept in the audit log."""

    ip_address: str | None = None
    user_agent: str = ""


@dataclass(frozen=True)
class DateCount:
    """Snapshot of a date-level counter."""

    date_id: DateSlotId
    date: date
    capacity: int
    confirmed_count: int

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.confirmed_count, 0)


@dataclass(frozen=True)
class CourseDateCount:
    """Snapshot of a course-within-date counter.

    ``date_remaining`` is the free seats of the enclosing date. A course
    never has more room than its date, and a course capacity of 0 means the
    date is the only limit.
    """

    course_id: CourseId
    course_name: str
    date_id: DateSlotId
    capacity: int
    confirmed_count: int
    date_remaining: int

    @property
    def unlimited(self) -> bool:
        return self.capacity == 0

    @property
    def remaining(self) -> int:
        if self.unlimited:
            return self.date_remaining
        return min(max(self.capacity - self.confirmed_count, 0), self.date_remaining)
