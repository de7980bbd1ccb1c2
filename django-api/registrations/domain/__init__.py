from registrations.domain.models import (
    Applicant,
    ApplicantFields,
    CandidateSelection,
    Confirmation,
    Course,
    CourseDateCount,
    DateCount,
    DateSlot,
    Event,
    RequestOrigin,
)
from registrations.domain.value_objects import (
    ApplicantId,
    ApplicantStatus,
    Capacity,
    CourseId,
    DateSlotId,
    EventId,
    EventPolicy,
    LogAction,
    ParticipationMode,
    Priority,
)

__all__ = [
    "Applicant",
    "ApplicantFields",
    "CandidateSelection",
    "Confirmation",
    "Course",
    "CourseDateCount",
    "DateCount",
    "DateSlot",
    "Event",
    "RequestOrigin",
    "ApplicantId",
    "ApplicantStatus",
    "Capacity",
    "CourseId",
    "DateSlotId",
    "EventId",
    "EventPolicy",
    "LogAction",
    "ParticipationMode",
    "Priority",
]
