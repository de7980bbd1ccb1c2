"""Django signals for the registrations app.

``participation_changed`` is sent after a confirm/unconfirm commits so that
notification collaborators can react. Keyword arguments: ``applicant_id``,
``date_id``, ``course_id`` (may be None), ``status`` and ``action``
(``created``, ``course_changed``, ``unchanged`` or ``unconfirmed``).
"""

from django.db.models import ProtectedError
from django.db.models.signals import pre_delete
from django.dispatch import Signal, receiver

from registrations.domain import CourseId, DateSlotId
from registrations.models import Applicant, Confirmation, CourseDateCapacity
from registrations.stores.django_store import DjangoCapacityLedger

participation_changed = Signal()


@receiver(pre_delete, sender=Applicant)
def release_confirmed_seats(sender, instance, **kwargs):
    """Give back the seats of an applicant's confirmations before they cascade."""
    ledger = DjangoCapacityLedger()
    for confirmation in Confirmation.objects.filter(applicant_id=instance.pk):
        ledger.release(
            DateSlotId(confirmation.date_slot_id),
            CourseId(confirmation.course_id) if confirmation.course_id else None,
        )


@receiver(pre_delete, sender=CourseDateCapacity)
def protect_held_course_dates(sender, instance, **kwargs):
    """Refuse to drop a course-date row while confirmations still count against it."""
    held = Confirmation.objects.filter(
        course_id=instance.course_id, date_slot_id=instance.date_slot_id
    )
    if held.exists():
        raise ProtectedError(
            f"{instance} still has confirmed applicants; unconfirm them first",
            set(held),
        )
