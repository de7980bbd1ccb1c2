"""Unit tests for services against mocked stores.

These test error handling and domain error mapping.
Run with: pytest tests/test_services.py -v
"""

import datetime as dt
from contextlib import nullcontext
from unittest.mock import Mock
from uuid import uuid4

import pytest

from registrations.conf import RegistrationSettings
from registrations.domain import (
    Applicant,
    ApplicantFields,
    ApplicantId,
    ApplicantStatus,
    CandidateSelection,
    Capacity,
    Confirmation,
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
    ApplicantNotFoundError,
    ConfirmationNotFoundError,
    EventNotFoundError,
    InvalidIdError,
    PolicyViolationError,
)
from registrations.domain.transitions import LedgerOp, LedgerStep
from registrations.handlers import dependencies
from registrations.services.capacity_service import CapacityService
from registrations.services.confirmation_service import ConfirmationService
from registrations.services.policy_service import EventPolicyResolver
from registrations.services.registration_service import RegistrationService, SelectionInput
from registrations.stores.interfaces import (
    CapacityLedger,
    ConfirmationStore,
    EventStore,
    RegistrationStore,
    TransactionManager,
)

NOW = dt.datetime(2025, 7, 1, tzinfo=dt.UTC)
EVENT_ID = EventId(uuid4())
DATE_ID = DateSlotId(uuid4())


@pytest.fixture
def stores():
    transactions = Mock(spec=TransactionManager)
    transactions.atomic.side_effect = nullcontext
    events = Mock(spec=EventStore)
    events.get_event.return_value = Event(
        EVENT_ID, "Open Campus", EventPolicy(ParticipationMode.SINGLE, 1), True, NOW
    )
    events.get_date_slot.return_value = DateSlot(
        DATE_ID, EVENT_ID, dt.date(2025, 8, 1), Capacity(10), 0
    )
    registrations = Mock(spec=RegistrationStore)
    registrations.email_has_selection.return_value = False
    return Mock(
        registrations=registrations,
        confirmations=Mock(spec=ConfirmationStore),
        events=events,
        ledger=Mock(spec=CapacityLedger),
        transactions=transactions,
    )


@pytest.fixture
def applicant():
    return Applicant(
        id=ApplicantId(uuid4()),
        event_id=EVENT_ID,
        name="Taro",
        email="taro@example.com",
        status=ApplicantStatus.PENDING,
        created_at=NOW,
        selections=(CandidateSelection(DATE_ID, None, Priority(1)),),
    )


def engine(stores) -> ConfirmationService:
    return ConfirmationService(
        stores.registrations,
        stores.confirmations,
        stores.events,
        stores.ledger,
        stores.transactions,
    )


class TestEventPolicyResolver:
    """Tests for EventPolicyResolver."""

    def test_returns_event_policy(self, stores):
        assert EventPolicyResolver(stores.events).resolve(EVENT_ID).mode is ParticipationMode.SINGLE

    def test_unknown_event_raises_not_found(self, stores):
        stores.events.get_event.return_value = None
        with pytest.raises(EventNotFoundError):
            EventPolicyResolver(stores.events).resolve(EVENT_ID)


class TestConfirmationService:
    """Tests for ConfirmationService with mocked stores."""

    def test_invalid_applicant_id(self, stores):
        with pytest.raises(InvalidIdError) as exc_info:
            engine(stores).confirm("not-a-uuid", str(DATE_ID.value))
        assert exc_info.value.field == "applicant_id"
        stores.transactions.atomic.assert_not_called()

    def test_unknown_applicant(self, stores):
        stores.registrations.get_applicant.return_value = None
        with pytest.raises(ApplicantNotFoundError):
            engine(stores).confirm(str(uuid4()), str(DATE_ID.value))
        stores.ledger.apply.assert_not_called()

    def test_create_claims_seat_and_marks_confirmed(self, stores, applicant):
        stores.registrations.get_applicant.return_value = applicant
        stores.confirmations.list_for_applicant.return_value = []

        result = engine(stores).confirm(
            str(applicant.id.value), str(DATE_ID.value), confirmed_by="staff-1"
        )

        assert result.created
        stores.registrations.get_applicant.assert_called_once_with(applicant.id, for_update=True)
        stores.confirmations.create.assert_called_once_with(applicant.id, DATE_ID, None, "staff-1")
        stores.ledger.apply.assert_called_once_with(LedgerStep(LedgerOp.CLAIM, DATE_ID, None))
        stores.registrations.set_status.assert_called_once_with(
            applicant.id, ApplicantStatus.CONFIRMED
        )

    def test_unconfirm_without_confirmation(self, stores, applicant):
        stores.registrations.get_applicant.return_value = applicant
        stores.confirmations.list_for_applicant.return_value = []

        with pytest.raises(ConfirmationNotFoundError):
            engine(stores).unconfirm(str(applicant.id.value))
        stores.confirmations.delete.assert_not_called()

    def test_unconfirm_last_date_resets_status(self, stores, applicant):
        stores.registrations.get_applicant.return_value = applicant
        stores.confirmations.list_for_applicant.return_value = [
            Confirmation(applicant.id, DATE_ID, None, "admin", NOW, NOW)
        ]

        result = engine(stores).unconfirm(str(applicant.id.value), str(DATE_ID.value))

        assert result.status is ApplicantStatus.PENDING
        stores.ledger.apply.assert_called_once_with(LedgerStep(LedgerOp.RELEASE, DATE_ID, None))
        stores.registrations.set_status.assert_called_once_with(
            applicant.id, ApplicantStatus.PENDING
        )


class TestRegistrationService:
    """Tests for RegistrationService.create_applicant with mocked stores."""

    FIELDS = ApplicantFields(name="Taro", email="taro@example.com")

    def service(self, stores) -> RegistrationService:
        return RegistrationService(
            stores.registrations,
            stores.confirmations,
            stores.events,
            stores.ledger,
            stores.transactions,
        )

    def test_invalid_event_id(self, stores):
        with pytest.raises(InvalidIdError):
            self.service(stores).create_applicant("bad", self.FIELDS, [])

    def test_unknown_event(self, stores):
        stores.events.get_event.return_value = None
        with pytest.raises(EventNotFoundError):
            self.service(stores).create_applicant(str(EVENT_ID.value), self.FIELDS, [])

    def test_selection_limit(self, stores):
        picks = [SelectionInput(str(uuid4())), SelectionInput(str(uuid4()))]
        with pytest.raises(PolicyViolationError):
            self.service(stores).create_applicant(str(EVENT_ID.value), self.FIELDS, picks)
        stores.registrations.create_applicant.assert_not_called()

    def test_date_outside_event(self, stores):
        stores.events.get_date_slot.return_value = None
        with pytest.raises(PolicyViolationError):
            self.service(stores).create_applicant(
                str(EVENT_ID.value), self.FIELDS, [SelectionInput(str(uuid4()))]
            )

    def test_selection_is_stored_with_priority_one(self, stores):
        self.service(stores).create_applicant(
            str(EVENT_ID.value), self.FIELDS, [SelectionInput(str(DATE_ID.value))]
        )
        stores.registrations.create_applicant.assert_called_once_with(
            EVENT_ID, self.FIELDS, [CandidateSelection(DATE_ID, None, Priority(1))]
        )

    def test_same_email_on_same_date_is_rejected(self, stores):
        stores.registrations.email_has_selection.return_value = True

        with pytest.raises(PolicyViolationError):
            self.service(stores).create_applicant(
                str(EVENT_ID.value), self.FIELDS, [SelectionInput(str(DATE_ID.value))]
            )

        stores.registrations.email_has_selection.assert_called_once_with(
            EVENT_ID, "taro@example.com", [DATE_ID]
        )
        stores.registrations.create_applicant.assert_not_called()
        stores.registrations.record_log.assert_not_called()

    def test_creation_is_logged_with_origin(self, stores):
        origin = RequestOrigin(ip_address="203.0.113.5", user_agent="pytest")

        applicant = self.service(stores).create_applicant(
            str(EVENT_ID.value), self.FIELDS, [SelectionInput(str(DATE_ID.value))], origin=origin
        )

        stores.registrations.record_log.assert_called_once_with(
            applicant.id,
            LogAction.CREATED,
            {"selections": [{"date_id": str(DATE_ID.value), "course_id": None, "priority": 1}]},
            origin,
        )


class TestCapacityService:
    """Tests for CapacityService."""

    def test_unknown_event(self, stores):
        stores.events.get_event.return_value = None
        with pytest.raises(EventNotFoundError):
            CapacityService(stores.events, stores.ledger).get_overview(str(uuid4()))

    def test_invalid_event_id(self, stores):
        with pytest.raises(InvalidIdError):
            CapacityService(stores.events, stores.ledger).get_overview("nope")


class TestDependencies:
    """Tests for service wiring."""

    def test_factories_read_django_settings_by_default(self, settings):
        settings.REGISTRATIONS = {"ENFORCE_CAPACITY": True}

        assert dependencies.capacity_service()._ledger._enforce_capacity
        assert dependencies.confirmation_service()._ledger._enforce_capacity

    def test_explicit_settings_win(self, settings):
        settings.REGISTRATIONS = {"ENFORCE_CAPACITY": True}
        lenient = RegistrationSettings(enforce_capacity=False)

        assert not dependencies.capacity_service(lenient)._ledger._enforce_capacity
        assert not dependencies.registration_service(lenient)._ledger._enforce_capacity
