"""Serializers for request validation and domain model responses."""

from rest_framework import serializers


class SelectionInputSerializer(serializers.Serializer):
    date_id = serializers.UUIDField()
    course_id = serializers.UUIDField(required=False, allow_null=True)


class ApplicantCreateSerializer(serializers.Serializer):
    """Intake payload. Selections are listed most preferred first."""

    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    kana_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    school_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    grade = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    selections = SelectionInputSerializer(many=True)


class ReplaceSelectionSerializer(serializers.Serializer):
    old_date_id = serializers.UUIDField()
    new_date_id = serializers.UUIDField()
    course_id = serializers.UUIDField(required=False, allow_null=True)


class ConfirmSerializer(serializers.Serializer):
    applicant_id = serializers.UUIDField()
    date_id = serializers.UUIDField()
    course_id = serializers.UUIDField(required=False, allow_null=True)
    confirmed_by = serializers.CharField(max_length=64, required=False, default="admin")


class UnconfirmSerializer(serializers.Serializer):
    applicant_id = serializers.UUIDField()
    date_id = serializers.UUIDField(required=False, allow_null=True)


class BulkConfirmationSerializer(serializers.Serializer):
    """Either raw CSV text or an uploaded CSV file."""

    csv_data = serializers.CharField(required=False, trim_whitespace=False)
    file = serializers.FileField(required=False)

    def validate(self, attrs):
        if not attrs.get("csv_data") and not attrs.get("file"):
            raise serializers.ValidationError("Provide csv_data or file")
        return attrs


class CandidateSelectionSerializer(serializers.Serializer):
    """Serializer for CandidateSelection domain model."""

    date_id = serializers.UUIDField(source="date_id.value")
    course_id = serializers.UUIDField(source="course_id.value", allow_null=True)
    priority = serializers.IntegerField(source="priority.value")


class ApplicantSerializer(serializers.Serializer):
    """Serializer for Applicant domain model."""

    id = serializers.UUIDField(source="id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    name = serializers.CharField()
    email = serializers.EmailField()
    status = serializers.CharField(source="status.value")
    selections = CandidateSelectionSerializer(many=True)


class ConfirmationSerializer(serializers.Serializer):
    """Serializer for Confirmation domain model."""

    applicant_id = serializers.UUIDField(source="applicant_id.value")
    date_id = serializers.UUIDField(source="date_id.value")
    course_id = serializers.UUIDField(source="course_id.value", allow_null=True)
    confirmed_by = serializers.CharField()
    confirmed_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()


class ConfirmationResultSerializer(serializers.Serializer):
    applicant_id = serializers.UUIDField(source="applicant_id.value")
    date_id = serializers.UUIDField(source="date_id.value")
    course_id = serializers.UUIDField(source="course_id.value", allow_null=True)
    result = serializers.CharField(source="transition.value")
    status = serializers.CharField(source="status.value")


class UnconfirmResultSerializer(serializers.Serializer):
    applicant_id = serializers.UUIDField(source="applicant_id.value")
    removed = ConfirmationSerializer(many=True)
    status = serializers.CharField(source="status.value")


class SelectionChangeSerializer(serializers.Serializer):
    applicant_id = serializers.UUIDField(source="applicant_id.value")
    selection = CandidateSelectionSerializer()
    confirmation = ConfirmationSerializer(allow_null=True)


class DateCountSerializer(serializers.Serializer):
    date_id = serializers.UUIDField(source="date_id.value")
    date = serializers.DateField()
    capacity = serializers.IntegerField()
    confirmed_count = serializers.IntegerField()
    remaining = serializers.IntegerField()


class CourseDateCountSerializer(serializers.Serializer):
    course_id = serializers.UUIDField(source="course_id.value")
    course_name = serializers.CharField()
    date_id = serializers.UUIDField(source="date_id.value")
    capacity = serializers.IntegerField()
    confirmed_count = serializers.IntegerField()
    unlimited = serializers.BooleanField()
    remaining = serializers.IntegerField()


class CapacityOverviewSerializer(serializers.Serializer):
    event_id = serializers.UUIDField(source="event_id.value")
    mode = serializers.CharField(source="policy.mode.value")
    limit = serializers.IntegerField(source="policy.limit")
    dates = DateCountSerializer(many=True)
    course_dates = CourseDateCountSerializer(many=True)


class RowOutcomeSerializer(serializers.Serializer):
    row = serializers.IntegerField(source="row_number")
    applicant_id = serializers.CharField(source="applicant_ref")
    status = serializers.CharField(source="status.value")
    code = serializers.CharField(allow_null=True)
    message = serializers.CharField()


class BatchResultSerializer(serializers.Serializer):
    event_id = serializers.CharField()
    total = serializers.IntegerField()
    summary = serializers.DictField(child=serializers.IntegerField())
    results = RowOutcomeSerializer(source="outcomes", many=True)
