"""Read-only lookup of an event's participation policy."""

from registrations.domain import EventId, EventPolicy
from registrations.domain.errors import EventNotFoundError
from registrations.stores.interfaces import EventStore


class EventPolicyResolver:
    """Report an event's participation mode and selection limit.

    The two multi modes are exclusive by construction of the event record,
    so nothing is re-validated here.
    """

    def __init__(self, store: EventStore) -> None:
        self._store = store

    def resolve(self, event_id: EventId) -> EventPolicy:
        """Return the policy of an event.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        event = self._store.get_event(event_id)
        if event is None:
            raise EventNotFoundError(str(event_id.value))
        return event.policy
