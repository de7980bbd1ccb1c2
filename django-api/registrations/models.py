"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Counter columns (``confirmed_count``) are written only by the capacity ledger.
"""

import uuid

from django.db import models


class Event(models.Model):
    """Persistence model for events."""

    class ParticipationMode(models.TextChoices):
        SINGLE = "single", "Single date"
        MULTI_DATE = "multi_date", "Multiple dates"
        MULTI_CANDIDATE = "multi_candidate", "Multiple candidates"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    participation_mode = models.CharField(
        max_length=20,
        choices=ParticipationMode.choices,
        default=ParticipationMode.SINGLE,
    )
    max_selections = models.PositiveSmallIntegerField(default=1)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="event_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_selections__gte=1),
                name="event_max_selections_positive",
            ),
        ]

    def __str__(self) -> str:
        return self.name


class DateSlot(models.Model):
    """Persistence model for a calendar date of an event."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="dates")
    date = models.DateField()
    capacity = models.PositiveIntegerField()
    confirmed_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["event", "date"], name="unique_event_date"),
            models.CheckConstraint(
                condition=models.Q(capacity__gte=1),
                name="date_capacity_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.event.name} - {self.date}"


class Course(models.Model):
    """Persistence model for a course offered on some dates of an event."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="courses")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    display_order = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    dates = models.ManyToManyField(
        DateSlot, through="CourseDateCapacity", related_name="courses"
    )

    class Meta:
        ordering = ["display_order", "name"]
        constraints = [
            models.UniqueConstraint(fields=["event", "name"], name="unique_event_course_name"),
        ]

    def __str__(self) -> str:
        return self.name


class CourseDateCapacity(models.Model):
    """Links a course to a date it is offered on, with its own counter."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    course = models.ForeignKey(Course, on_delete=models.CASCADE, related_name="date_capacities")
    date_slot = models.ForeignKey(
        DateSlot, on_delete=models.CASCADE, related_name="course_capacities"
    )
    capacity = models.PositiveIntegerField(default=0)
    confirmed_count = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["course", "date_slot"], name="unique_course_date"),
        ]

    def __str__(self) -> str:
        return f"{self.course.name} @ {self.date_slot.date}"


class Applicant(models.Model):
    """Persistence model for applicants."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="applicants")
    name = models.CharField(max_length=255)
    kana_name = models.CharField(max_length=255, blank=True)
    email = models.EmailField()
    phone = models.CharField(max_length=32, blank=True)
    school_name = models.CharField(max_length=255, blank=True)
    grade = models.CharField(max_length=32, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["event", "status"], name="applicant_event_status_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class CandidateSelection(models.Model):
    """Persistence model for an applicant's ranked (date, course) choice."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    applicant = models.ForeignKey(Applicant, on_delete=models.CASCADE, related_name="selections")
    date_slot = models.ForeignKey(DateSlot, on_delete=models.PROTECT, related_name="selections")
    course = models.ForeignKey(
        Course, on_delete=models.PROTECT, related_name="selections", null=True, blank=True
    )
    priority = models.PositiveSmallIntegerField(default=1)

    class Meta:
        ordering = ["priority"]
        constraints = [
            models.UniqueConstraint(
                fields=["applicant", "date_slot"], name="unique_applicant_selection"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.applicant.name} #{self.priority}"


class Confirmation(models.Model):
    """Persistence model for a confirmed participation."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    applicant = models.ForeignKey(
        Applicant, on_delete=models.CASCADE, related_name="confirmations"
    )
    date_slot = models.ForeignKey(
        DateSlot, on_delete=models.PROTECT, related_name="confirmations"
    )
    course = models.ForeignKey(
        Course, on_delete=models.PROTECT, related_name="confirmations", null=True, blank=True
    )
    confirmed_by = models.CharField(max_length=64, default="admin")
    confirmed_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-confirmed_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["applicant", "date_slot"], name="unique_applicant_confirmation"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.applicant.name} @ {self.date_slot.date}"


class ApplicationLog(models.Model):
    """Audit trail of intake and administrator edits for an applicant."""

    class Action(models.TextChoices):
        CREATED = "created", "Created"
        MODIFIED = "modified", "Modified"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    applicant = models.ForeignKey(Applicant, on_delete=models.CASCADE, related_name="logs")
    action = models.CharField(max_length=16, choices=Action.choices)
    details = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["applicant", "created_at"], name="applog_applicant_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.applicant.name} {self.action}"
