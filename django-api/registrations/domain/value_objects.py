"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from enum import Enum
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))


@dataclass(frozen=True)
class DateSlotId:
    """Unique identifier for a DateSlot."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))


@dataclass(frozen=True)
class CourseId:
    """Unique identifier for a Course."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))


@dataclass(frozen=True)
class ApplicantId:
    """Unique identifier for an Applicant."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(str(value)))


@dataclass(frozen=True)
class Capacity:
    """Non-negative integer representing capacity."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Capacity cannot be negative")


@dataclass(frozen=True)
class Priority:
    """Rank of a candidate selection. Lower is more preferred."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 1:
            raise ValueError("Priority starts at 1")


class ParticipationMode(Enum):
    """How many dates an applicant may select and attend."""

    SINGLE = "single"
    MULTI_DATE = "multi_date"
    MULTI_CANDIDATE = "multi_candidate"


class ApplicantStatus(Enum):
    """Denormalized confirmation flag readable by other collaborators."""

    PENDING = "pending"
    CONFIRMED = "confirmed"


class LogAction(Enum):
    """Audit trail entry kinds for an application."""

    CREATED = "created"
    MODIFIED = "modified"


@dataclass(frozen=True)
class EventPolicy:
    """Participation mode and selection limit of an event."""

    mode: ParticipationMode
    limit: int

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("Selection limit must be at least 1")
        if self.mode is ParticipationMode.SINGLE and self.limit != 1:
            raise ValueError("Single-date events allow exactly one selection")

    @property
    def allows_multiple_confirmations(self) -> bool:
        return self.mode is ParticipationMode.MULTI_DATE
