from django.urls import path

from registrations.handlers import (
    ApplicantCreateView,
    ApplicantDetailView,
    ApplicantSelectionView,
    BulkConfirmationView,
    CapacityView,
    ConfirmationView,
)

urlpatterns = [
    path(
        "events/<str:event_id>/applicants",
        ApplicantCreateView.as_view(),
        name="applicant-create",
    ),
    path(
        "events/<str:event_id>/capacity",
        CapacityView.as_view(),
        name="event-capacity",
    ),
    path(
        "events/<str:event_id>/confirmations/bulk",
        BulkConfirmationView.as_view(),
        name="confirmation-bulk",
    ),
    path("applicants/<str:applicant_id>", ApplicantDetailView.as_view(), name="applicant-detail"),
    path(
        "applicants/<str:applicant_id>/selections",
        ApplicantSelectionView.as_view(),
        name="applicant-selections",
    ),
    path("confirmations", ConfirmationView.as_view(), name="confirmations"),
]
