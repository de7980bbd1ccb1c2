from registrations.handlers.views import (
    ApplicantCreateView,
    ApplicantDetailView,
    ApplicantSelectionView,
    BulkConfirmationView,
    CapacityView,
    ConfirmationView,
)

__all__ = [
    "ApplicantCreateView",
    "ApplicantDetailView",
    "ApplicantSelectionView",
    "BulkConfirmationView",
    "CapacityView",
    "ConfirmationView",
]
