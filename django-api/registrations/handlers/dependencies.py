"""Wire services to the Django ORM stores.

Services are built per request so settings overrides take effect at once.
"""

from registrations.conf import RegistrationSettings
from registrations.services.capacity_service import CapacityService
from registrations.services.confirmation_service import ConfirmationService
from registrations.services.reconciliation_service import ReconciliationService
from registrations.services.registration_service import RegistrationService
from registrations.stores.django_store import (
    DjangoCapacityLedger,
    DjangoConfirmationStore,
    DjangoEventStore,
    DjangoRegistrationStore,
    DjangoTransactionManager,
)


def _ledger(settings: RegistrationSettings) -> DjangoCapacityLedger:
    return DjangoCapacityLedger(enforce_capacity=settings.enforce_capacity)


def confirmation_service(settings: RegistrationSettings | None = None) -> ConfirmationService:
    settings = settings or RegistrationSettings.from_django()
    return ConfirmationService(
        registrations=DjangoRegistrationStore(),
        confirmations=DjangoConfirmationStore(),
        events=DjangoEventStore(),
        ledger=_ledger(settings),
        transactions=DjangoTransactionManager(),
    )


def registration_service(settings: RegistrationSettings | None = None) -> RegistrationService:
    settings = settings or RegistrationSettings.from_django()
    return RegistrationService(
        registrations=DjangoRegistrationStore(),
        confirmations=DjangoConfirmationStore(),
        events=DjangoEventStore(),
        ledger=_ledger(settings),
        transactions=DjangoTransactionManager(),
    )


def reconciliation_service(settings: RegistrationSettings | None = None) -> ReconciliationService:
    settings = settings or RegistrationSettings.from_django()
    return ReconciliationService(
        registrations=DjangoRegistrationStore(),
        events=DjangoEventStore(),
        engine=confirmation_service(settings),
        settings=settings,
    )


def capacity_service(settings: RegistrationSettings | None = None) -> CapacityService:
    settings = settings or RegistrationSettings.from_django()
    return CapacityService(events=DjangoEventStore(), ledger=_ledger(settings))
