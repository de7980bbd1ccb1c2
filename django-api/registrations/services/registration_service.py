"""Registration service - applicant intake and administrator edits."""

import logging
from dataclasses import dataclass

from registrations.domain import (
    Applicant,
    ApplicantFields,
    ApplicantId,
    CandidateSelection,
    Confirmation,
    CourseId,
    DateSlotId,
    EventId,
    LogAction,
    Priority,
    RequestOrigin,
)
from registrations.domain.errors import (
    ApplicantNotFoundError,
    CrossEventEditError,
    DateNotFoundError,
    EventNotFoundError,
    NotASelectedDateError,
    PolicyViolationError,
)
from registrations.services.ids import parse_id, parse_optional_id
from registrations.stores.interfaces import (
    CapacityLedger,
    ConfirmationStore,
    EventStore,
    RegistrationStore,
    TransactionManager,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionInput:
    """A requested (date, course) pair as received from a caller."""

    date_id: str
    course_id: str | None = None


@dataclass(frozen=True)
class SelectionChange:
    applicant_id: ApplicantId
    selection: CandidateSelection
    confirmation: Confirmation | None


class RegistrationService:
    """Service for applicant intake and selection edits."""

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

    def create_applicant(
        self,
        event_id: str,
        fields: ApplicantFields,
        selections: list[SelectionInput],
        *,
        origin: RequestOrigin | None = None,
    ) -> Applicant:
        """Register an applicant with ranked selections (first = priority 1).

        Raises:
            InvalidIdError: If an ID is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            PolicyViolationError: If the selections do not fit the event policy,
                a date is outside the event, or a course is not offered on its date.
                Also raised when the email already applied for one of the dates.
        """
        event_key = parse_id(EventId, event_id, "event_id")
        event = self._events.get_event(event_key)
        if event is None:
            raise EventNotFoundError(event_id)

        if not selections:
            raise PolicyViolationError("At least one date must be selected")
        if len(selections) > event.policy.limit:
            raise PolicyViolationError(
                f"This event allows at most {event.policy.limit} date selection(s)"
            )

        candidates: list[CandidateSelection] = []
        seen: set[DateSlotId] = set()
        for priority, item in enumerate(selections, start=1):
            date_key = parse_id(DateSlotId, item.date_id, "date_id")
            course_key = parse_optional_id(CourseId, item.course_id, "course_id")
            if date_key in seen:
                raise PolicyViolationError("The same date was selected more than once")
            seen.add(date_key)
            self._check_pair(event_key, date_key, course_key)
            candidates.append(CandidateSelection(date_key, course_key, Priority(priority)))

        with self._transactions.atomic():
            if self._registrations.email_has_selection(
                event_key, fields.email, [c.date_id for c in candidates]
            ):
                raise PolicyViolationError(
                    "An application with this email already exists for this date"
                )
            applicant = self._registrations.create_applicant(event_key, fields, candidates)
            self._registrations.record_log(
                applicant.id,
                LogAction.CREATED,
                {"selections": [_selection_details(s) for s in candidates]},
                origin,
            )

        logger.info(
            "Registered applicant=%s event=%s with %d selection(s)",
            applicant.id.value,
            event_key.value,
            len(candidates),
        )
        return applicant

    def replace_selection(
        self,
        applicant_id: str,
        old_date_id: str,
        new_date_id: str,
        new_course_id: str | None = None,
        *,
        origin: RequestOrigin | None = None,
    ) -> SelectionChange:
        """Replace one selection, carrying any confirmation on it along.

        The priority of the replaced selection is kept. If the applicant was
        confirmed on the old date, the confirmation and its counters move to
        the new date/course in the same transaction.

        Raises:
            InvalidIdError: If an ID is not a valid UUID.
            ApplicantNotFoundError: If the applicant does not exist.
            NotASelectedDateError: If ``old_date_id`` is not selected.
            DateNotFoundError: If ``new_date_id`` does not exist.
            CrossEventEditError: If the new date belongs to another event.
            PolicyViolationError: If the new date is already selected or the
                course is not offered on it.
        """
        applicant_key = parse_id(ApplicantId, applicant_id, "applicant_id")
        old_key = parse_id(DateSlotId, old_date_id, "old_date_id")
        new_key = parse_id(DateSlotId, new_date_id, "new_date_id")
        course_key = parse_optional_id(CourseId, new_course_id, "course_id")

        with self._transactions.atomic():
            applicant = self._registrations.get_applicant(applicant_key, for_update=True)
            if applicant is None:
                raise ApplicantNotFoundError(applicant_id)
            current = applicant.selection_for(old_key)
            if current is None:
                raise NotASelectedDateError(applicant_id, old_date_id)

            new_slot = self._events.get_date_slot(new_key)
            if new_slot is None:
                raise DateNotFoundError(new_date_id, "Date not found")
            if new_slot.event_id != applicant.event_id:
                raise CrossEventEditError()
            if new_key != old_key and applicant.selection_for(new_key) is not None:
                raise PolicyViolationError("The applicant already selected this date")
            self._check_pair(applicant.event_id, new_key, course_key)

            selection = CandidateSelection(new_key, course_key, current.priority)
            self._registrations.replace_selection(applicant_key, old_key, selection)
            self._registrations.record_log(
                applicant_key,
                LogAction.MODIFIED,
                {"old": _selection_details(current), "new": _selection_details(selection)},
                origin,
            )

            confirmation = next(
                (
                    c
                    for c in self._confirmations.list_for_applicant(applicant_key)
                    if c.date_id == old_key
                ),
                None,
            )
            if confirmation is not None:
                if new_key == old_key:
                    if confirmation.course_id != course_key:
                        self._ledger.move_course(old_key, confirmation.course_id, course_key)
                else:
                    self._ledger.release(old_key, confirmation.course_id)
                    self._ledger.claim(new_key, course_key)
                confirmation = self._confirmations.retarget(
                    applicant_key, old_key, new_date_id=new_key, course_id=course_key
                )

        logger.info(
            "Replaced selection applicant=%s %s -> %s course=%s (confirmation moved: %s)",
            applicant_key.value,
            old_key.value,
            new_key.value,
            course_key.value if course_key else None,
            confirmation is not None,
        )
        return SelectionChange(
            applicant_id=applicant_key, selection=selection, confirmation=confirmation
        )

    def delete_applicant(self, applicant_id: str) -> None:
        """Delete an applicant, its selections and its confirmations.

        Raises:
            InvalidIdError: If the ID is not a valid UUID.
            ApplicantNotFoundError: If the applicant does not exist.
        """
        applicant_key = parse_id(ApplicantId, applicant_id, "applicant_id")
        with self._transactions.atomic():
            if not self._registrations.delete_applicant(applicant_key):
                raise ApplicantNotFoundError(applicant_id)
        logger.info("Deleted applicant=%s", applicant_key.value)

    def _check_pair(
        self, event_id: EventId, date_id: DateSlotId, course_id: CourseId | None
    ) -> None:
        slot = self._events.get_date_slot(date_id)
        if slot is None or slot.event_id != event_id:
            raise PolicyViolationError("Selected date is not part of this event")
        if course_id is None:
            return
        course = self._events.get_course(course_id)
        if course is None or course.event_id != event_id or not course.is_offered_on(date_id):
            raise PolicyViolationError("Course is not offered on the selected date")


def _selection_details(selection: CandidateSelection) -> dict:
    return {
        "date_id": str(selection.date_id.value),
        "course_id": str(selection.course_id.value) if selection.course_id else None,
        "priority": selection.priority.value,
    }
