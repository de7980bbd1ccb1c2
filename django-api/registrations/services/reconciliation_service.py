"""Bulk confirmation from an externally edited spreadsheet export.

Two tiers of failure:
- structural problems (no data rows, wrong header, unknown event, event
  without dates) reject the whole batch with a single error;
- everything else is recorded per row, and the remaining rows still commit.
"""

import logging
import re
from collections.abc import Sequence
from datetime import date

from registrations.conf import RegistrationSettings
from registrations.domain import (
    Applicant,
    ApplicantId,
    CandidateSelection,
    CourseId,
    DateSlot,
    DateSlotId,
    Event,
    EventId,
)
from registrations.domain.errors import (
    ApplicantNotFoundError,
    CourseNotFoundError,
    DateNotFoundError,
    DomainError,
    ErrorCode,
    EventNotFoundError,
    MalformedBatchError,
    MissingFieldError,
    NotASelectedDateError,
)
from registrations.domain.reconciliation import (
    BatchResult,
    ReconciliationRow,
    RowOutcome,
    RowStatus,
)
from registrations.services.confirmation_service import ConfirmationService
from registrations.services.ids import parse_id
from registrations.stores.interfaces import EventStore, RegistrationStore

logger = logging.getLogger(__name__)

# (Japanese export header, English alias), in column order.
EXPECTED_COLUMNS = (
    ("申込者ID", "applicant_id"),
    ("氏名", "name"),
    ("ふりがな", "kana_name"),
    ("学校名", "school_name"),
    ("学年", "grade"),
    ("メールアドレス", "email"),
    ("確定日程", "confirmed_date"),
    ("確定コース", "confirmed_course"),
    ("確定", "confirm"),
)

_DATE_PATTERN = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")

# Header row is line 1 of the file.
FIRST_DATA_LINE = 2


def normalize_date(text: str) -> str | None:
    """Return ``YYYY-MM-DD`` for ``2025-08-01``, ``2025/8/1`` or ``2025年8月1日``.

    Trailing text such as a weekday is ignored. Returns None when no valid
    calendar date is found.
    """
    cleaned = (
        text.strip().replace("年", "-").replace("月", "-").replace("日", "").replace("/", "-")
    )
    match = _DATE_PATTERN.search(cleaned)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def header_matches(header: Sequence[str]) -> bool:
    if len(header) < len(EXPECTED_COLUMNS):
        return False
    for cell, (japanese, english) in zip(header, EXPECTED_COLUMNS):
        value = cell.strip().lstrip("\ufeff")
        if japanese not in value and value.lower() != english:
            return False
    return True


def to_row(row_number: int, cells: Sequence[str]) -> ReconciliationRow:
    padded = [cell.strip() for cell in cells] + [""] * (len(EXPECTED_COLUMNS) - len(cells))
    return ReconciliationRow(
        row_number=row_number,
        applicant_ref=padded[0],
        name=padded[1],
        email=padded[5],
        date_text=padded[6],
        course_text=padded[7],
        confirm_flag=padded[8],
    )


class ReconciliationService:
    """Apply a batch of confirmation rows through the confirmation engine."""

    def __init__(
        self,
        registrations: RegistrationStore,
        events: EventStore,
        engine: ConfirmationService,
        settings: RegistrationSettings | None = None,
    ) -> None:
        self._registrations = registrations
        self._events = events
        self._engine = engine
        self._settings = settings or RegistrationSettings()

    def reconcile_batch(
        self,
        event_id: str,
        header: Sequence[str],
        rows: Sequence[Sequence[str]],
        *,
        confirmed_by: str = "admin_csv",
    ) -> BatchResult:
        """Confirm every flagged row independently.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            MalformedBatchError: If there are no data rows, the header does
                not match, or the event has no dates.
            EventNotFoundError: If the event does not exist.
        """
        event_key = parse_id(EventId, event_id, "event_id")
        if not rows:
            raise MalformedBatchError("The batch has no data rows")
        if not header_matches(header):
            expected = ", ".join(japanese for japanese, _ in EXPECTED_COLUMNS)
            raise MalformedBatchError(f"Unexpected header. Expected: {expected}")

        event = self._events.get_event(event_key)
        if event is None:
            raise EventNotFoundError(event_id)
        slots = self._events.list_date_slots(event_key)
        if not slots:
            raise MalformedBatchError("The event has no dates")
        date_table = {slot.date.isoformat(): slot for slot in slots}

        result = BatchResult(event_id=str(event_key.value))
        for offset, cells in enumerate(rows):
            row = to_row(FIRST_DATA_LINE + offset, cells)
            result.add(self._process(event, date_table, row, confirmed_by))

        logger.info("Bulk confirmation event=%s: %s", event_key.value, result.summary())
        return result

    def _process(
        self,
        event: Event,
        date_table: dict[str, DateSlot],
        row: ReconciliationRow,
        confirmed_by: str,
    ) -> RowOutcome:
        if row.confirm_flag.lower() not in self._settings.confirm_flags:
            return RowOutcome(
                row.row_number, row.applicant_ref, RowStatus.SKIPPED, "No confirm flag"
            )
        try:
            return self._confirm_row(event, date_table, row, confirmed_by)
        except DomainError as exc:
            return RowOutcome(
                row.row_number, row.applicant_ref, RowStatus.ERROR, exc.message, exc.code.value
            )
        except Exception:
            logger.exception("Bulk confirmation row %d failed", row.row_number)
            return RowOutcome(
                row.row_number,
                row.applicant_ref,
                RowStatus.ERROR,
                "Unexpected error while confirming",
                ErrorCode.UNEXPECTED.value,
            )

    def _confirm_row(
        self,
        event: Event,
        date_table: dict[str, DateSlot],
        row: ReconciliationRow,
        confirmed_by: str,
    ) -> RowOutcome:
        missing = tuple(
            name
            for name, value in (("applicant_id", row.applicant_ref), ("confirmed_date", row.date_text))
            if not value
        )
        if missing:
            raise MissingFieldError(missing)

        applicant = self._find_applicant(row.applicant_ref)

        canonical = normalize_date(row.date_text)
        slot = date_table.get(canonical) if canonical else None
        if slot is None:
            raise DateNotFoundError(row.date_text)

        selection = applicant.selection_for(slot.id)
        if selection is None:
            raise NotASelectedDateError(row.applicant_ref, str(slot.id.value))

        course_id = self._resolve_course(event.id, slot.id, row, selection)
        result = self._engine.confirm(
            str(applicant.id.value),
            str(slot.id.value),
            str(course_id.value) if course_id else None,
            confirmed_by=confirmed_by,
        )
        if result.created:
            return RowOutcome(row.row_number, row.applicant_ref, RowStatus.CREATED, "Confirmed")
        return RowOutcome(
            row.row_number, row.applicant_ref, RowStatus.UPDATED, "Course information updated"
        )

    def _find_applicant(self, reference: str) -> Applicant:
        try:
            applicant_key = ApplicantId.from_string(reference)
        except ValueError:
            raise ApplicantNotFoundError(reference) from None
        applicant = self._registrations.get_applicant(applicant_key)
        if applicant is None:
            raise ApplicantNotFoundError(reference)
        return applicant

    def _resolve_course(
        self,
        event_id: EventId,
        date_id: DateSlotId,
        row: ReconciliationRow,
        selection: CandidateSelection,
    ) -> CourseId | None:
        if not row.course_text:
            return selection.course_id
        course = self._events.find_course_by_name(event_id, row.course_text)
        if course is not None and course.is_offered_on(date_id):
            return course.id
        if self._settings.strict_course_match:
            raise CourseNotFoundError(row.course_text)
        logger.warning(
            "Row %d: course %r not offered on %s, keeping the selected course",
            row.row_number,
            row.course_text,
            date_id.value,
        )
        return selection.course_id
