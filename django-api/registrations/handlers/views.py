"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from registrations.domain import ApplicantFields, RequestOrigin
from registrations.domain.errors import DomainError, ErrorCode
from registrations.handlers import dependencies, serializers
from registrations.handlers.csv_batch import decode_upload, parse_csv_text
from registrations.services.registration_service import SelectionInput
from registrations.signals import participation_changed

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.APPLICANT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.COURSE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFIRMATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_A_SELECTED_DATE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.POLICY_VIOLATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CROSS_EVENT_EDIT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CAPACITY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.INVARIANT_VIOLATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.MALFORMED_BATCH: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error: DomainError) -> Response:
    if error.code is ErrorCode.INVARIANT_VIOLATION:
        logger.error("Request failed on counter invariant: %s", error)
    return Response(
        {"error": {"code": error.code.value, "message": error.message}},
        status=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def _optional(value) -> str | None:
    return str(value) if value else None


def request_origin(request: Request) -> RequestOrigin:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    ip_address = forwarded.split(",")[0].strip() or request.META.get("REMOTE_ADDR")
    return RequestOrigin(
        ip_address=ip_address or None,
        user_agent=request.META.get("HTTP_USER_AGENT", ""),
    )


class ApplicantCreateView(APIView):
    """Handler for POST /api/events/{event_id}/applicants"""

    def post(self, request: Request, event_id: str) -> Response:
        payload = serializers.ApplicantCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        fields = ApplicantFields(
            name=data["name"],
            email=data["email"],
            kana_name=data["kana_name"],
            phone=data["phone"],
            school_name=data["school_name"],
            grade=data["grade"],
        )
        selections = [
            SelectionInput(str(s["date_id"]), _optional(s.get("course_id")))
            for s in data["selections"]
        ]
        try:
            applicant = dependencies.registration_service().create_applicant(
                event_id, fields, selections, origin=request_origin(request)
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(
            serializers.ApplicantSerializer(applicant).data, status=status.HTTP_201_CREATED
        )


class ApplicantDetailView(APIView):
    """Handler for DELETE /api/applicants/{applicant_id}"""

    def delete(self, request: Request, applicant_id: str) -> Response:
        try:
            dependencies.registration_service().delete_applicant(applicant_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ApplicantSelectionView(APIView):
    """Handler for PATCH /api/applicants/{applicant_id}/selections"""

    def patch(self, request: Request, applicant_id: str) -> Response:
        payload = serializers.ReplaceSelectionSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        try:
            change = dependencies.registration_service().replace_selection(
                applicant_id,
                str(data["old_date_id"]),
                str(data["new_date_id"]),
                _optional(data.get("course_id")),
                origin=request_origin(request),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(serializers.SelectionChangeSerializer(change).data)


class ConfirmationView(APIView):
    """Handler for POST and DELETE /api/confirmations"""

    def post(self, request: Request) -> Response:
        payload = serializers.ConfirmSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        try:
            result = dependencies.confirmation_service().confirm(
                str(data["applicant_id"]),
                str(data["date_id"]),
                _optional(data.get("course_id")),
                confirmed_by=data["confirmed_by"],
            )
        except DomainError as exc:
            return error_response(exc)

        participation_changed.send(
            sender=self.__class__,
            applicant_id=result.applicant_id,
            date_id=result.date_id,
            course_id=result.course_id,
            status=result.status,
            action=result.transition.value,
        )
        return Response(
            serializers.ConfirmationResultSerializer(result).data,
            status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
        )

    def delete(self, request: Request) -> Response:
        payload = serializers.UnconfirmSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        try:
            result = dependencies.confirmation_service().unconfirm(
                str(data["applicant_id"]), _optional(data.get("date_id"))
            )
        except DomainError as exc:
            return error_response(exc)

        for confirmation in result.removed:
            participation_changed.send(
                sender=self.__class__,
                applicant_id=result.applicant_id,
                date_id=confirmation.date_id,
                course_id=confirmation.course_id,
                status=result.status,
                action="unconfirmed",
            )
        return Response(serializers.UnconfirmResultSerializer(result).data)


class BulkConfirmationView(APIView):
    """Handler for POST /api/events/{event_id}/confirmations/bulk"""

    def post(self, request: Request, event_id: str) -> Response:
        payload = serializers.BulkConfirmationSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data
        try:
            upload = data.get("file")
            text = decode_upload(upload.read()) if upload else data["csv_data"]
            header, rows = parse_csv_text(text)
            result = dependencies.reconciliation_service().reconcile_batch(event_id, header, rows)
        except DomainError as exc:
            return error_response(exc)
        return Response(serializers.BatchResultSerializer(result).data)


class CapacityView(APIView):
    """Handler for GET /api/events/{event_id}/capacity"""

    def get(self, request: Request, event_id: str) -> Response:
        try:
            overview = dependencies.capacity_service().get_overview(event_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(serializers.CapacityOverviewSerializer(overview).data)
