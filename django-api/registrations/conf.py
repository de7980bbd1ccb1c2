"""App settings read from the ``REGISTRATIONS`` dict in Django settings."""

from dataclasses import dataclass, field
from typing import Self

from django.conf import settings

DEFAULT_CONFIRM_FLAGS = frozenset({"○", "〇", "1", "true", "yes", "y"})


@dataclass(frozen=True)
class RegistrationSettings:
    """Runtime switches for the confirmation engine and bulk import.

    enforce_capacity: refuse confirmations once a slot is full instead of
        overbooking with a warning.
    strict_course_match: report an unknown course name in a bulk row as an
        error instead of falling back to the applicant's selected course.
    confirm_flags: values (compared case-insensitively) that mark a bulk
        row for confirmation.
    """

    enforce_capacity: bool = False
    strict_course_match: bool = False
    confirm_flags: frozenset[str] = field(default=DEFAULT_CONFIRM_FLAGS)

    @classmethod
    def from_django(cls) -> Self:
        values = getattr(settings, "REGISTRATIONS", {})
        flags = values.get("CONFIRM_FLAGS")
        return cls(
            enforce_capacity=bool(values.get("ENFORCE_CAPACITY", False)),
            strict_course_match=bool(values.get("STRICT_COURSE_MATCH", False)),
            confirm_flags=(
                frozenset(f.lower() for f in flags) if flags else DEFAULT_CONFIRM_FLAGS
            ),
        )
