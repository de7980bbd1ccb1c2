"""Django ORM implementation of the registration stores."""

import logging
from contextlib import AbstractContextManager

from django.db import transaction
from django.db.models import F, Q, QuerySet

from registrations import models
from registrations.domain import (
    Applicant,
    ApplicantFields,
    ApplicantId,
    ApplicantStatus,
    CandidateSelection,
    Capacity,
    Confirmation,
    Course,
    CourseDateCount,
    CourseId,
    DateCount,
    DateSlot,
    DateSlotId,
    Event,
    EventId,
    EventPolicy,
    LogAction,
    ParticipationMode,
    Priority,
    RequestOrigin,
)
from registrations.domain.errors import (
    CapacityExceededError,
    ConfirmationNotFoundError,
    CourseNotFoundError,
    DateNotFoundError,
    InvariantViolationError,
)
from registrations.stores.interfaces import (
    CapacityLedger,
    ConfirmationStore,
    EventStore,
    RegistrationStore,
    TransactionManager,
)

logger = logging.getLogger(__name__)

# A course-date capacity of 0 means the course has no limit of its own.
HAS_ROOM = Q(capacity=0) | Q(confirmed_count__lt=F("capacity"))


def _event_to_domain(row: models.Event) -> Event:
    mode = ParticipationMode(row.participation_mode)
    limit = 1 if mode is ParticipationMode.SINGLE else row.max_selections
    return Event(
        id=EventId(row.id),
        name=row.name,
        policy=EventPolicy(mode=mode, limit=limit),
        is_active=row.is_active,
        created_at=row.created_at,
    )


def _date_to_domain(row: models.DateSlot) -> DateSlot:
    return DateSlot(
        id=DateSlotId(row.id),
        event_id=EventId(row.event_id),
        date=row.date,
        capacity=Capacity(row.capacity),
        confirmed_count=row.confirmed_count,
    )


def _course_to_domain(row: models.Course) -> Course:
    date_ids = models.CourseDateCapacity.objects.filter(course_id=row.id).values_list(
        "date_slot_id", flat=True
    )
    return Course(
        id=CourseId(row.id),
        event_id=EventId(row.event_id),
        name=row.name,
        date_ids=frozenset(DateSlotId(d) for d in date_ids),
    )


def _selection_to_domain(row: models.CandidateSelection) -> CandidateSelection:
    return CandidateSelection(
        date_id=DateSlotId(row.date_slot_id),
        course_id=CourseId(row.course_id) if row.course_id else None,
        priority=Priority(row.priority),
    )


def _confirmation_to_domain(row: models.Confirmation) -> Confirmation:
    return Confirmation(
        applicant_id=ApplicantId(row.applicant_id),
        date_id=DateSlotId(row.date_slot_id),
        course_id=CourseId(row.course_id) if row.course_id else None,
        confirmed_by=row.confirmed_by,
        confirmed_at=row.confirmed_at,
        updated_at=row.updated_at,
    )


class DjangoTransactionManager(TransactionManager):
    """Maps units of work onto ``transaction.atomic`` (savepoints when nested)."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()


class DjangoEventStore(EventStore):
    """PostgreSQL/SQLite-backed event catalog using Django ORM."""

    def get_event(self, event_id: EventId) -> Event | None:
        row = models.Event.objects.filter(pk=event_id.value).first()
        return _event_to_domain(row) if row else None

    def get_date_slot(self, date_id: DateSlotId) -> DateSlot | None:
        row = models.DateSlot.objects.filter(pk=date_id.value).first()
        return _date_to_domain(row) if row else None

    def list_date_slots(self, event_id: EventId) -> list[DateSlot]:
        rows = models.DateSlot.objects.filter(event_id=event_id.value).order_by("date")
        return [_date_to_domain(row) for row in rows]

    def get_course(self, course_id: CourseId) -> Course | None:
        row = models.Course.objects.filter(pk=course_id.value).first()
        return _course_to_domain(row) if row else None

    def find_course_by_name(self, event_id: EventId, name: str) -> Course | None:
        row = models.Course.objects.filter(event_id=event_id.value, name=name).first()
        return _course_to_domain(row) if row else None


class DjangoRegistrationStore(RegistrationStore):
    """Applicants and their candidate selections."""

    def get_applicant(self, applicant_id: ApplicantId, *, for_update: bool = False) -> Applicant | None:
        queryset = models.Applicant.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        row = queryset.filter(pk=applicant_id.value).first()
        if row is None:
            return None
        selections = models.CandidateSelection.objects.filter(applicant_id=row.id).order_by(
            "priority"
        )
        return Applicant(
            id=ApplicantId(row.id),
            event_id=EventId(row.event_id),
            name=row.name,
            email=row.email,
            status=ApplicantStatus(row.status),
            created_at=row.created_at,
            selections=tuple(_selection_to_domain(s) for s in selections),
        )

    def create_applicant(
        self,
        event_id: EventId,
        fields: ApplicantFields,
        selections: list[CandidateSelection],
    ) -> Applicant:
        with transaction.atomic():
            row = models.Applicant.objects.create(
                event_id=event_id.value,
                name=fields.name,
                kana_name=fields.kana_name,
                email=fields.email,
                phone=fields.phone,
                school_name=fields.school_name,
                grade=fields.grade,
            )
            models.CandidateSelection.objects.bulk_create(
                [
                    models.CandidateSelection(
                        applicant=row,
                        date_slot_id=s.date_id.value,
                        course_id=s.course_id.value if s.course_id else None,
                        priority=s.priority.value,
                    )
                    for s in selections
                ]
            )
        return Applicant(
            id=ApplicantId(row.id),
            event_id=event_id,
            name=row.name,
            email=row.email,
            status=ApplicantStatus(row.status),
            created_at=row.created_at,
            selections=tuple(sorted(selections, key=lambda s: s.priority.value)),
        )

    def replace_selection(
        self, applicant_id: ApplicantId, old_date_id: DateSlotId, selection: CandidateSelection
    ) -> None:
        models.CandidateSelection.objects.filter(
            applicant_id=applicant_id.value, date_slot_id=old_date_id.value
        ).update(
            date_slot_id=selection.date_id.value,
            course_id=selection.course_id.value if selection.course_id else None,
            priority=selection.priority.value,
        )

    def email_has_selection(
        self, event_id: EventId, email: str, date_ids: list[DateSlotId]
    ) -> bool:
        return models.CandidateSelection.objects.filter(
            applicant__event_id=event_id.value,
            applicant__email__iexact=email,
            date_slot_id__in=[d.value for d in date_ids],
        ).exists()

    def record_log(
        self,
        applicant_id: ApplicantId,
        action: LogAction,
        details: dict,
        origin: RequestOrigin | None = None,
    ) -> None:
        origin = origin or RequestOrigin()
        models.ApplicationLog.objects.create(
            applicant_id=applicant_id.value,
            action=action.value,
            details=details,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )

    def set_status(self, applicant_id: ApplicantId, status: ApplicantStatus) -> None:
        models.Applicant.objects.filter(pk=applicant_id.value).update(status=status.value)

    def delete_applicant(self, applicant_id: ApplicantId) -> bool:
        row = models.Applicant.objects.filter(pk=applicant_id.value).first()
        if row is None:
            return False
        # pre_delete receiver releases the confirmations' counters.
        row.delete()
        return True


class DjangoConfirmationStore(ConfirmationStore):
    """Confirmed participation rows."""

    def list_for_applicant(self, applicant_id: ApplicantId) -> list[Confirmation]:
        rows = models.Confirmation.objects.filter(applicant_id=applicant_id.value).order_by(
            "confirmed_at"
        )
        return [_confirmation_to_domain(row) for row in rows]

    def create(
        self,
        applicant_id: ApplicantId,
        date_id: DateSlotId,
        course_id: CourseId | None,
        confirmed_by: str,
    ) -> Confirmation:
        row = models.Confirmation.objects.create(
            applicant_id=applicant_id.value,
            date_slot_id=date_id.value,
            course_id=course_id.value if course_id else None,
            confirmed_by=confirmed_by,
        )
        return _confirmation_to_domain(row)

    def retarget(
        self,
        applicant_id: ApplicantId,
        date_id: DateSlotId,
        *,
        new_date_id: DateSlotId,
        course_id: CourseId | None,
    ) -> Confirmation:
        row = models.Confirmation.objects.filter(
            applicant_id=applicant_id.value, date_slot_id=date_id.value
        ).first()
        if row is None:
            raise ConfirmationNotFoundError(str(applicant_id.value))
        row.date_slot_id = new_date_id.value
        row.course_id = course_id.value if course_id else None
        row.save(update_fields=["date_slot", "course", "updated_at"])
        return _confirmation_to_domain(row)

    def delete(self, applicant_id: ApplicantId, date_ids: list[DateSlotId]) -> int:
        deleted, _ = models.Confirmation.objects.filter(
            applicant_id=applicant_id.value,
            date_slot_id__in=[d.value for d in date_ids],
        ).delete()
        return deleted


class DjangoCapacityLedger(CapacityLedger):
    """Counter mutations as single conditional UPDATE statements.

    ``confirmed_count = confirmed_count ± 1`` is evaluated by the database,
    so concurrent callers never lose an increment.
    """

    def __init__(self, enforce_capacity: bool = False) -> None:
        self._enforce_capacity = enforce_capacity

    def increment_date(self, date_id: DateSlotId) -> None:
        queryset = models.DateSlot.objects.filter(pk=date_id.value)
        self._increment(queryset, f"date {date_id.value}", lambda: DateNotFoundError(str(date_id.value)))

    def decrement_date(self, date_id: DateSlotId) -> None:
        queryset = models.DateSlot.objects.filter(pk=date_id.value)
        self._decrement(queryset, f"date {date_id.value}", lambda: DateNotFoundError(str(date_id.value)))

    def increment_course_date(self, course_id: CourseId, date_id: DateSlotId) -> None:
        with transaction.atomic():
            self._increment(
                self._course_date(course_id, date_id),
                f"course {course_id.value} on date {date_id.value}",
                lambda: CourseNotFoundError(str(course_id.value)),
            )
            self.increment_date(date_id)

    def decrement_course_date(self, course_id: CourseId, date_id: DateSlotId) -> None:
        with transaction.atomic():
            self._decrement(
                self._course_date(course_id, date_id),
                f"course {course_id.value} on date {date_id.value}",
                lambda: CourseNotFoundError(str(course_id.value)),
            )
            self.decrement_date(date_id)

    def move_course(
        self,
        date_id: DateSlotId,
        old_course_id: CourseId | None,
        new_course_id: CourseId | None,
    ) -> None:
        with transaction.atomic():
            if old_course_id is not None:
                self._decrement(
                    self._course_date(old_course_id, date_id),
                    f"course {old_course_id.value} on date {date_id.value}",
                    lambda: CourseNotFoundError(str(old_course_id.value)),
                )
            if new_course_id is not None:
                self._increment(
                    self._course_date(new_course_id, date_id),
                    f"course {new_course_id.value} on date {date_id.value}",
                    lambda: CourseNotFoundError(str(new_course_id.value)),
                )

    def get_date_counts(self, event_id: EventId) -> list[DateCount]:
        rows = models.DateSlot.objects.filter(event_id=event_id.value).order_by("date")
        return [
            DateCount(
                date_id=DateSlotId(row.id),
                date=row.date,
                capacity=row.capacity,
                confirmed_count=row.confirmed_count,
            )
            for row in rows
        ]

    def get_course_date_counts(self, event_id: EventId) -> list[CourseDateCount]:
        rows = (
            models.CourseDateCapacity.objects.filter(date_slot__event_id=event_id.value)
            .select_related("course", "date_slot")
            .order_by("date_slot__date", "course__display_order", "course__name")
        )
        return [
            CourseDateCount(
                course_id=CourseId(row.course_id),
                course_name=row.course.name,
                date_id=DateSlotId(row.date_slot_id),
                capacity=row.capacity,
                confirmed_count=row.confirmed_count,
                date_remaining=max(row.date_slot.capacity - row.date_slot.confirmed_count, 0),
            )
            for row in rows
        ]

    @staticmethod
    def _course_date(course_id: CourseId, date_id: DateSlotId) -> QuerySet:
        return models.CourseDateCapacity.objects.filter(
            course_id=course_id.value, date_slot_id=date_id.value
        )

    def _increment(self, queryset: QuerySet, label: str, not_found) -> None:
        bump = {"confirmed_count": F("confirmed_count") + 1}
        if queryset.filter(HAS_ROOM).update(**bump):
            return
        if not queryset.exists():
            raise not_found()
        if self._enforce_capacity:
            raise CapacityExceededError(label)
        queryset.update(**bump)
        logger.warning("Overbooking %s: confirmed count now exceeds capacity", label)

    def _decrement(self, queryset: QuerySet, label: str, not_found) -> None:
        if queryset.filter(confirmed_count__gt=0).update(confirmed_count=F("confirmed_count") - 1):
            return
        if not queryset.exists():
            raise not_found()
        logger.critical("Confirmed count for %s would drop below zero", label)
        raise InvariantViolationError(label)
