"""Tests for the Django admin guards around selections and course dates.

Run with: pytest tests/test_admin.py -v
"""

import pytest
from django.contrib import admin
from django.db.models import ProtectedError
from django.test import RequestFactory
from django.urls import reverse

from registrations.admin import EventAdmin
from registrations.models import (
    CandidateSelection,
    Confirmation,
    CourseDateCapacity,
    Event,
)


def management_form(prefix: str, total: int, initial: int) -> dict:
    return {
        f"{prefix}-TOTAL_FORMS": str(total),
        f"{prefix}-INITIAL_FORMS": str(initial),
        f"{prefix}-MIN_NUM_FORMS": "0",
        f"{prefix}-MAX_NUM_FORMS": "1000",
    }


@pytest.mark.django_db
class TestApplicantAdmin:
    """Tests for the applicant change page."""

    def test_selection_rows_cannot_be_edited(
        self, admin_client, make_event, make_applicant, confirmation_service
    ):
        built = make_event(
            mode=Event.ParticipationMode.MULTI_CANDIDATE,
            max_selections=2,
            dates=[("2025-08-01", 5), ("2025-08-02", 5)],
        )
        first, second = built.dates
        applicant = make_applicant(built.event, [(first, None)])
        confirmation_service.confirm(str(applicant.id), str(first.id))
        selection = CandidateSelection.objects.get(applicant=applicant)
        confirmation = Confirmation.objects.get(applicant=applicant)

        response = admin_client.post(
            reverse("admin:registrations_applicant_change", args=[applicant.id]),
            {
                "event": str(built.event.id),
                "name": applicant.name,
                "kana_name": "",
                "email": applicant.email,
                "phone": "",
                "school_name": "",
                "grade": "",
                **management_form("selections", 1, 1),
                "selections-0-id": str(selection.id),
                "selections-0-applicant": str(applicant.id),
                "selections-0-date_slot": str(second.id),
                "selections-0-priority": "1",
                **management_form("confirmations", 1, 1),
                "confirmations-0-id": str(confirmation.id),
                "confirmations-0-applicant": str(applicant.id),
                **management_form("logs", 0, 0),
                "_save": "Save",
            },
        )

        assert response.status_code == 302
        selected = set(applicant.selections.values_list("date_slot_id", flat=True))
        confirmed = set(applicant.confirmations.values_list("date_slot_id", flat=True))
        assert selected == {first.id}
        assert confirmed <= selected

    def test_change_page_renders(self, admin_client, make_event, make_applicant):
        built = make_event()
        applicant = make_applicant(built.event, [(built.dates[0], None)])

        response = admin_client.get(
            reverse("admin:registrations_applicant_change", args=[applicant.id])
        )

        assert response.status_code == 200


@pytest.mark.django_db
class TestEventAdmin:
    """Tests for EventAdmin read-only policy fields."""

    def readonly_fields(self, event):
        request = RequestFactory().get("/admin/")
        return EventAdmin(Event, admin.site).get_readonly_fields(request, event)

    def test_policy_editable_before_applications(self, make_event):
        built = make_event()
        assert "participation_mode" not in self.readonly_fields(built.event)
        assert "participation_mode" not in self.readonly_fields(None)

    def test_policy_locked_once_applicants_exist(self, make_event, make_applicant):
        built = make_event()
        make_applicant(built.event, [(built.dates[0], None)])

        fields = self.readonly_fields(built.event)

        assert "participation_mode" in fields
        assert "max_selections" in fields


@pytest.mark.django_db
class TestCourseDateProtection:
    """Tests for course-date rows still holding confirmations."""

    @pytest.fixture
    def confirmed(self, make_event, make_applicant, confirmation_service):
        built = make_event(courses={"Nursing": {0: 5}})
        slot, nursing = built.dates[0], built.courses["Nursing"]
        applicant = make_applicant(built.event, [(slot, nursing)])
        confirmation_service.confirm(str(applicant.id), str(slot.id), str(nursing.id))
        return built, applicant

    def test_delete_is_refused_while_confirmed(self, confirmed, confirmation_service):
        built, applicant = confirmed
        row = CourseDateCapacity.objects.get()

        with pytest.raises(ProtectedError):
            row.delete()

        assert CourseDateCapacity.objects.filter(pk=row.pk).exists()
        confirmation_service.unconfirm(str(applicant.id))
        row.refresh_from_db()
        assert row.confirmed_count == 0

    def test_delete_allowed_after_unconfirm(self, confirmed, confirmation_service):
        _, applicant = confirmed
        confirmation_service.unconfirm(str(applicant.id))

        CourseDateCapacity.objects.get().delete()

        assert not CourseDateCapacity.objects.exists()

    def test_admin_inline_keeps_held_row(self, admin_client, confirmed):
        built, _ = confirmed
        nursing = built.courses["Nursing"]
        row = CourseDateCapacity.objects.get()

        response = admin_client.post(
            reverse("admin:registrations_course_change", args=[nursing.id]),
            {
                "event": str(built.event.id),
                "name": nursing.name,
                "description": "",
                "display_order": "0",
                "is_active": "on",
                **management_form("date_capacities", 1, 1),
                "date_capacities-0-id": str(row.id),
                "date_capacities-0-course": str(nursing.id),
                "date_capacities-0-date_slot": str(row.date_slot_id),
                "date_capacities-0-capacity": "5",
                "date_capacities-0-DELETE": "on",
                "_save": "Save",
            },
        )

        assert response.status_code == 200
        assert "still has confirmed applicants" in response.content.decode()
        assert CourseDateCapacity.objects.filter(pk=row.pk).exists()
