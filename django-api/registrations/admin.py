from django import forms
from django.contrib import admin

from registrations.models import (
    Applicant,
    ApplicationLog,
    CandidateSelection,
    Confirmation,
    Course,
    CourseDateCapacity,
    DateSlot,
    Event,
)


class DateSlotInline(admin.TabularInline):
    model = DateSlot
    extra = 1
    readonly_fields = ["confirmed_count"]


class CourseDateCapacityFormSet(forms.BaseInlineFormSet):
    """Keeps course-date rows that confirmations still count against."""

    def clean(self):
        super().clean()
        for form in self.forms:
            row = form.instance
            if row.pk is None:
                continue
            deleting = self.can_delete and self._should_delete_form(form)
            moved = {"course", "date_slot"} & set(form.changed_data)
            if not (deleting or moved):
                continue
            held = Confirmation.objects.filter(
                course_id=row.course_id, date_slot_id=row.date_slot_id
            ).exists()
            if held:
                raise forms.ValidationError(
                    f"{row.date_slot} still has confirmed applicants for this course"
                )


class CourseDateCapacityInline(admin.TabularInline):
    model = CourseDateCapacity
    formset = CourseDateCapacityFormSet
    extra = 1
    readonly_fields = ["confirmed_count"]


class CandidateSelectionInline(admin.TabularInline):
    """Selections change only through the selection edit endpoint."""

    model = CandidateSelection
    extra = 0
    can_delete = False
    readonly_fields = ["date_slot", "course", "priority"]

    def has_add_permission(self, request, obj=None):
        return False


class ConfirmationInline(admin.TabularInline):
    model = Confirmation
    extra = 0
    can_delete = False
    readonly_fields = ["date_slot", "course", "confirmed_by", "confirmed_at", "updated_at"]

    def has_add_permission(self, request, obj=None):
        return False


class ApplicationLogInline(admin.TabularInline):
    model = ApplicationLog
    extra = 0
    can_delete = False
    readonly_fields = ["action", "details", "ip_address", "user_agent", "created_at"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["name", "participation_mode", "max_selections", "is_active", "created_at"]
    search_fields = ["name"]
    inlines = [DateSlotInline]

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None and obj.applicants.exists():
            fields += ["participation_mode", "max_selections"]
        return fields


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ["name", "event", "display_order", "is_active"]
    list_filter = ["event"]
    inlines = [CourseDateCapacityInline]


@admin.register(Applicant)
class ApplicantAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "event", "status", "created_at"]
    list_filter = ["event", "status"]
    search_fields = ["name", "kana_name", "email"]
    readonly_fields = ["status"]
    inlines = [CandidateSelectionInline, ConfirmationInline, ApplicationLogInline]

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields.append("event")
        return fields
