"""Pytest configuration and shared fixtures."""

import datetime as dt
from types import SimpleNamespace

import pytest
from rest_framework.test import APIClient

from registrations.conf import RegistrationSettings
from registrations.handlers import dependencies
from registrations.models import (
    Applicant,
    CandidateSelection,
    Course,
    CourseDateCapacity,
    DateSlot,
    Event,
)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def make_event(db):
    """Build an event with dates and courses.

    ``dates`` is a list of ``(iso_date, capacity)``; ``courses`` maps a course
    name to ``{date_index: capacity}`` for the dates it is offered on.
    """

    def _make(
        mode: str = Event.ParticipationMode.SINGLE,
        max_selections: int = 1,
        dates=(("2025-08-01", 10),),
        courses=None,
        name: str = "Open Campus",
    ) -> SimpleNamespace:
        event = Event.objects.create(
            name=name, participation_mode=mode, max_selections=max_selections
        )
        slots = [
            DateSlot.objects.create(
                event=event, date=dt.date.fromisoformat(day), capacity=capacity
            )
            for day, capacity in dates
        ]
        created = {}
        for order, (course_name, offered) in enumerate((courses or {}).items()):
            course = Course.objects.create(event=event, name=course_name, display_order=order)
            for index, capacity in offered.items():
                CourseDateCapacity.objects.create(
                    course=course, date_slot=slots[index], capacity=capacity
                )
            created[course_name] = course
        return SimpleNamespace(event=event, dates=slots, courses=created)

    return _make


@pytest.fixture
def make_applicant(db):
    """Register an applicant directly with ``[(date_slot, course_or_None), ...]``."""

    def _make(event: Event, selections, name: str = "Hanako Yamada") -> Applicant:
        applicant = Applicant.objects.create(
            event=event, name=name, email=f"{name.split()[0].lower()}@example.com"
        )
        for priority, (slot, course) in enumerate(selections, start=1):
            CandidateSelection.objects.create(
                applicant=applicant, date_slot=slot, course=course, priority=priority
            )
        return applicant

    return _make


@pytest.fixture
def confirmation_service():
    return dependencies.confirmation_service(RegistrationSettings())


@pytest.fixture
def registration_service():
    return dependencies.registration_service(RegistrationSettings())


@pytest.fixture
def reconciliation_service():
    return dependencies.reconciliation_service(RegistrationSettings())
