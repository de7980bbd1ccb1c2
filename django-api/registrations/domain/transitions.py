"""Confirmation state machine.

Per (applicant, date) there are two states: unconfirmed (candidate only) and
confirmed (capacity consumed). ``plan_confirmation`` is the single transition
table for ``confirm``; it decides what happens and which ledger steps are
needed, and the service executes the plan inside one transaction.
"""

from dataclasses import dataclass
from enum import Enum

from registrations.domain.errors import NotASelectedDateError, PolicyViolationError
from registrations.domain.models import Applicant, Confirmation
from registrations.domain.value_objects import CourseId, DateSlotId, EventPolicy


class Transition(Enum):
    CREATE = "created"
    CHANGE_COURSE = "course_changed"
    UNCHANGED = "unchanged"


class LedgerOp(Enum):
    CLAIM = "claim"
    RELEASE = "release"
    MOVE_COURSE = "move_course"


@dataclass(frozen=True)
class LedgerStep:
    """One counter mutation to route through the capacity ledger.

    CLAIM/RELEASE touch the date counter and, when ``course_id`` is set, the
    paired course-date counter. MOVE_COURSE touches course counters only.
    """

    op: LedgerOp
    date_id: DateSlotId
    course_id: CourseId | None = None
    previous_course_id: CourseId | None = None


@dataclass(frozen=True)
class ConfirmationPlan:
    transition: Transition
    steps: tuple[LedgerStep, ...] = ()
    existing: Confirmation | None = None


def plan_confirmation(
    applicant: Applicant,
    policy: EventPolicy,
    confirmations: list[Confirmation],
    date_id: DateSlotId,
    course_id: CourseId | None,
) -> ConfirmationPlan:
    """Return the transition for confirming ``applicant`` on ``date_id``.

    Raises:
        NotASelectedDateError: If the date is not among the selections.
        PolicyViolationError: If the policy forbids a second confirmed date.
    """
    if applicant.selection_for(date_id) is None:
        raise NotASelectedDateError(str(applicant.id.value), str(date_id.value))

    existing = next((c for c in confirmations if c.date_id == date_id), None)
    if not policy.allows_multiple_confirmations:
        if any(c.date_id != date_id for c in confirmations):
            raise PolicyViolationError(
                "Single-date policy: the applicant is already confirmed on another date"
            )

    if existing is None:
        return ConfirmationPlan(
            transition=Transition.CREATE,
            steps=(LedgerStep(LedgerOp.CLAIM, date_id, course_id),),
        )

    if existing.course_id == course_id:
        return ConfirmationPlan(transition=Transition.UNCHANGED, existing=existing)

    return ConfirmationPlan(
        transition=Transition.CHANGE_COURSE,
        steps=(
            LedgerStep(
                LedgerOp.MOVE_COURSE,
                date_id,
                course_id=course_id,
                previous_course_id=existing.course_id,
            ),
        ),
        existing=existing,
    )


def release_steps(confirmations: list[Confirmation]) -> tuple[LedgerStep, ...]:
    """Ledger steps undoing the counters held by ``confirmations``."""
    return tuple(
        LedgerStep(LedgerOp.RELEASE, c.date_id, c.course_id) for c in confirmations
    )
