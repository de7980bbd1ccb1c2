"""Confirmation engine - converts candidate selections into confirmed seats.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors

Every confirm/unconfirm runs as one unit of work: the confirmation row
change and its counter mutations commit together or not at all. The
applicant row is locked for the duration of the call only, so calls for
different applicants never wait on each other.
"""

import logging
from dataclasses import dataclass

from registrations.domain import (
    Applicant,
    ApplicantId,
    ApplicantStatus,
    Confirmation,
    CourseId,
    DateSlotId,
)
from registrations.domain.errors import (
    ApplicantNotFoundError,
    ConfirmationNotFoundError,
    CourseNotFoundError,
    PolicyViolationError,
)
from registrations.domain.transitions import Transition, plan_confirmation, release_steps
from registrations.services.ids import parse_id, parse_optional_id
from registrations.services.policy_service import EventPolicyResolver
from registrations.stores.interfaces import (
    CapacityLedger,
    ConfirmationStore,
    EventStore,
    RegistrationStore,
    TransactionManager,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmationResult:
    """State after a confirm call, enough for a caller to notify the applicant."""

    applicant_id: ApplicantId
    date_id: DateSlotId
    course_id: CourseId | None
    transition: Transition
    status: ApplicantStatus

    @property
    def created(self) -> bool:
        return self.transition is Transition.CREATE


@dataclass(frozen=True)
class UnconfirmResult:
    applicant_id: ApplicantId
    removed: tuple[Confirmation, ...]
    status: ApplicantStatus


class ConfirmationService:
    """Service for confirming and unconfirming applicants."""

    def __init__(
        self,
        registrations: RegistrationStore,
        confirmations: ConfirmationStore,
        events: EventStore,
        ledger: CapacityLedger,
        transactions: TransactionManager,
    ) -> None:
        self._registrations = registrations
        self._confirmations = confirmations
        self._events = events
        self._ledger = ledger
        self._transactions = transactions
        self._policies = EventPolicyResolver(events)

    def confirm(
        self,
        applicant_id: str,
        date_id: str,
        course_id: str | None = None,
        *,
        confirmed_by: str = "admin",
    ) -> ConfirmationResult:
        """Confirm an applicant on one of their selected dates.

        Confirming the same (date, course) again is a no-op. Confirming the
        same date with another course moves the course seat only.

        Raises:
            InvalidIdError: If an ID is not a valid UUID.
            ApplicantNotFoundError: If the applicant does not exist.
            NotASelectedDateError: If the date was not selected by the applicant.
            PolicyViolationError: If the event policy forbids another date, or
                the course is not offered on the date.
            CapacityExceededError: If strict capacity is enabled and the slot is full.
        """
        applicant_key = parse_id(ApplicantId, applicant_id, "applicant_id")
        date_key = parse_id(DateSlotId, date_id, "date_id")
        course_key = parse_optional_id(CourseId, course_id, "course_id")

        with self._transactions.atomic():
            applicant = self._lock_applicant(applicant_key)
            policy = self._policies.resolve(applicant.event_id)
            existing = self._confirmations.list_for_applicant(applicant_key)
            plan = plan_confirmation(applicant, policy, existing, date_key, course_key)

            if plan.transition is not Transition.UNCHANGED and course_key is not None:
                self._check_course(course_key, date_key)

            if plan.transition is Transition.CREATE:
                self._confirmations.create(applicant_key, date_key, course_key, confirmed_by)
                for step in plan.steps:
                    self._ledger.apply(step)
                self._registrations.set_status(applicant_key, ApplicantStatus.CONFIRMED)
            elif plan.transition is Transition.CHANGE_COURSE:
                for step in plan.steps:
                    self._ledger.apply(step)
                self._confirmations.retarget(
                    applicant_key, date_key, new_date_id=date_key, course_id=course_key
                )

        logger.info(
            "Confirm applicant=%s date=%s course=%s by=%s: %s",
            applicant_key.value,
            date_key.value,
            course_key.value if course_key else None,
            confirmed_by,
            plan.transition.value,
        )
        return ConfirmationResult(
            applicant_id=applicant_key,
            date_id=date_key,
            course_id=course_key,
            transition=plan.transition,
            status=ApplicantStatus.CONFIRMED,
        )

    def unconfirm(self, applicant_id: str, date_id: str | None = None) -> UnconfirmResult:
        """Remove one confirmation, or all of them when ``date_id`` is omitted.

        Raises:
            InvalidIdError: If an ID is not a valid UUID.
            ApplicantNotFoundError: If the applicant does not exist.
            ConfirmationNotFoundError: If nothing matched.
        """
        applicant_key = parse_id(ApplicantId, applicant_id, "applicant_id")
        date_key = parse_optional_id(DateSlotId, date_id, "date_id")

        with self._transactions.atomic():
            self._lock_applicant(applicant_key)
            confirmations = self._confirmations.list_for_applicant(applicant_key)
            targets = [c for c in confirmations if date_key is None or c.date_id == date_key]
            if not targets:
                raise ConfirmationNotFoundError(str(applicant_key.value))

            self._confirmations.delete(applicant_key, [c.date_id for c in targets])
            for step in release_steps(targets):
                self._ledger.apply(step)

            if len(targets) == len(confirmations):
                status = ApplicantStatus.PENDING
                self._registrations.set_status(applicant_key, status)
            else:
                status = ApplicantStatus.CONFIRMED

        logger.info(
            "Unconfirm applicant=%s dates=%s: removed %d, status %s",
            applicant_key.value,
            date_key.value if date_key else "all",
            len(targets),
            status.value,
        )
        return UnconfirmResult(applicant_id=applicant_key, removed=tuple(targets), status=status)

    def _lock_applicant(self, applicant_id: ApplicantId) -> Applicant:
        applicant = self._registrations.get_applicant(applicant_id, for_update=True)
        if applicant is None:
            raise ApplicantNotFoundError(str(applicant_id.value))
        return applicant

    def _check_course(self, course_id: CourseId, date_id: DateSlotId) -> None:
        course = self._events.get_course(course_id)
        if course is None:
            raise CourseNotFoundError(str(course_id.value))
        if not course.is_offered_on(date_id):
            raise PolicyViolationError("Course is not offered on this date")
