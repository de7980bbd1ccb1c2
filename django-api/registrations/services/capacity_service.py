"""Read access to the capacity ledger's counters."""

from dataclasses import dataclass

from registrations.domain import CourseDateCount, DateCount, EventId, EventPolicy
from registrations.services.ids import parse_id
from registrations.services.policy_service import EventPolicyResolver
from registrations.stores.interfaces import CapacityLedger, EventStore


@dataclass(frozen=True)
class CapacityOverview:
    event_id: EventId
    policy: EventPolicy
    dates: tuple[DateCount, ...]
    course_dates: tuple[CourseDateCount, ...]


class CapacityService:
    """Service exposing per-date and per-course-date counts."""

    def __init__(self, events: EventStore, ledger: CapacityLedger) -> None:
        self._ledger = ledger
        self._policies = EventPolicyResolver(events)

    def get_overview(self, event_id: str) -> CapacityOverview:
        """Return the event policy with its current counters.

        Raises:
            InvalidIdError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        event_key = parse_id(EventId, event_id, "event_id")
        policy = self._policies.resolve(event_key)
        return CapacityOverview(
            event_id=event_key,
            policy=policy,
            dates=tuple(self._ledger.get_date_counts(event_key)),
            course_dates=tuple(self._ledger.get_course_date_counts(event_key)),
        )
