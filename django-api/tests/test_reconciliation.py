"""Tests for bulk confirmation from a spreadsheet export.

Run with: pytest tests/test_reconciliation.py -v
"""

import logging
from unittest.mock import Mock

import pytest

from registrations.conf import RegistrationSettings
from registrations.domain.errors import (
    ErrorCode,
    EventNotFoundError,
    InvalidIdError,
    MalformedBatchError,
)
from registrations.domain.reconciliation import RowStatus
from registrations.handlers import dependencies
from registrations.handlers.csv_batch import decode_upload, parse_csv_text
from registrations.models import Confirmation, CourseDateCapacity, DateSlot, Event
from registrations.services.confirmation_service import ConfirmationService
from registrations.services.reconciliation_service import (
    ReconciliationService,
    header_matches,
    normalize_date,
)
from registrations.stores.django_store import DjangoEventStore, DjangoRegistrationStore

HEADER = [
    "申込者ID",
    "氏名",
    "ふりがな",
    "学校名",
    "学年",
    "メールアドレス",
    "確定日程",
    "確定コース",
    "確定",
]
MISSING_UUID = "00000000-0000-0000-0000-000000000009"


def sheet_row(applicant_ref, date_text, course="", flag="○", name="Hanako Yamada"):
    return [str(applicant_ref), name, "", "", "", "", date_text, course, flag]


class TestNormalizeDate:
    """Tests for normalize_date."""

    @pytest.mark.parametrize(
        "text",
        ["2025-08-01", "2025/8/1", "2025年8月1日", " 2025年08月01日(金) ", "2025/08/01 10:00"],
    )
    def test_accepted_formats(self, text):
        assert normalize_date(text) == "2025-08-01"

    @pytest.mark.parametrize("text", ["", "8月1日", "2025-13-01", "2025/2/30", "tomorrow"])
    def test_unparseable_dates(self, text):
        assert normalize_date(text) is None


class TestHeaderMatches:
    """Tests for header_matches."""

    def test_japanese_header(self):
        assert header_matches(HEADER)

    def test_bom_and_annotated_cells(self):
        header = ["\ufeff申込者ID"] + HEADER[1:6] + ["確定日程(YYYY/MM/DD)"] + HEADER[7:]
        assert header_matches(header)

    def test_english_aliases(self):
        header = [
            "applicant_id",
            "name",
            "kana_name",
            "school_name",
            "grade",
            "email",
            "Confirmed_Date",
            "confirmed_course",
            "confirm",
        ]
        assert header_matches(header)

    def test_reordered_or_short_header(self):
        assert not header_matches(HEADER[:8])
        assert not header_matches([HEADER[1], HEADER[0], *HEADER[2:]])


class TestCsvBatch:
    """Tests for CSV parsing helpers."""

    def test_header_and_rows_are_split(self):
        text = "\ufeff" + ",".join(HEADER) + "\r\nabc,Taro,,,,,2025/8/1,,○\r\n,,,,,,,,\r\n"
        header, rows = parse_csv_text(text)
        assert header == HEADER
        assert rows == [["abc", "Taro", "", "", "", "", "2025/8/1", "", "○"]]

    def test_quoted_cells(self):
        header, rows = parse_csv_text(",".join(HEADER) + '\nx,"Yamada, Hanako",,,,,,,\n')
        assert rows[0][1] == "Yamada, Hanako"

    def test_empty_text(self):
        with pytest.raises(MalformedBatchError):
            parse_csv_text("\n \n")

    def test_decode_upload_strips_bom(self):
        assert decode_upload("\ufeff申込者ID".encode()) == "申込者ID"

    def test_decode_upload_rejects_non_utf8(self):
        with pytest.raises(MalformedBatchError):
            decode_upload("申込者ID".encode("shift_jis"))


@pytest.mark.django_db
class TestReconcileBatch:
    """Tests for ReconciliationService.reconcile_batch."""

    @pytest.fixture
    def built(self, make_event):
        return make_event(
            mode=Event.ParticipationMode.MULTI_CANDIDATE,
            max_selections=2,
            dates=[("2025-08-01", 5), ("2025-08-02", 5)],
            courses={"Nursing": {0: 5, 1: 5}, "Design": {0: 5}},
        )

    def test_mixed_batch(self, built, make_applicant, reconciliation_service):
        """Scenario D: one created, one skipped, one unknown applicant."""
        first = built.dates[0]
        confirm_me = make_applicant(built.event, [(first, None)], name="Aiko Ito")
        leave_me = make_applicant(built.event, [(first, None)], name="Ken Mori")

        result = reconciliation_service.reconcile_batch(
            str(built.event.id),
            HEADER,
            [
                sheet_row(confirm_me.id, "2025/8/1"),
                sheet_row(leave_me.id, "2025/8/1", flag=""),
                sheet_row(MISSING_UUID, "2025/8/1"),
            ],
        )

        assert result.summary() == {"created": 1, "updated": 0, "skipped": 1, "error": 1}
        assert [o.row_number for o in result.outcomes] == [2, 3, 4]
        assert result.outcomes[2].code == "APPLICANT_NOT_FOUND"
        first.refresh_from_db()
        assert first.confirmed_count == 1
        assert list(Confirmation.objects.values_list("applicant_id", "confirmed_by")) == [
            (confirm_me.id, "admin_csv")
        ]

    def test_course_name_is_resolved(self, built, make_applicant, reconciliation_service):
        first = built.dates[0]
        applicant = make_applicant(built.event, [(first, built.courses["Nursing"])])

        reconciliation_service.reconcile_batch(
            str(built.event.id), HEADER, [sheet_row(applicant.id, "2025-08-01", "Design")]
        )

        confirmation = Confirmation.objects.get(applicant=applicant)
        assert confirmation.course_id == built.courses["Design"].id
        assert CourseDateCapacity.objects.get(
            course=built.courses["Design"], date_slot=first
        ).confirmed_count == 1

    def test_unknown_course_falls_back_to_selected_course(
        self, built, make_applicant, reconciliation_service, caplog
    ):
        second = built.dates[1]
        applicant = make_applicant(built.event, [(second, built.courses["Nursing"])])

        with caplog.at_level(logging.WARNING, logger="registrations"):
            result = reconciliation_service.reconcile_batch(
                str(built.event.id), HEADER, [sheet_row(applicant.id, "2025年8月2日", "Design")]
            )

        assert result.outcomes[0].status is RowStatus.CREATED
        assert Confirmation.objects.get(applicant=applicant).course_id == built.courses["Nursing"].id
        assert "keeping the selected course" in caplog.text

    def test_unknown_course_is_error_in_strict_mode(self, built, make_applicant):
        service = dependencies.reconciliation_service(
            RegistrationSettings(strict_course_match=True)
        )
        applicant = make_applicant(built.event, [(built.dates[0], None)])

        result = service.reconcile_batch(
            str(built.event.id), HEADER, [sheet_row(applicant.id, "2025-08-01", "Cooking")]
        )

        assert result.outcomes[0].code == "COURSE_NOT_FOUND"
        assert not Confirmation.objects.exists()

    def test_reconfirm_with_new_course_is_updated(
        self, built, make_applicant, confirmation_service, reconciliation_service
    ):
        first = built.dates[0]
        nursing = built.courses["Nursing"]
        applicant = make_applicant(built.event, [(first, nursing)])
        confirmation_service.confirm(str(applicant.id), str(first.id), str(nursing.id))

        result = reconciliation_service.reconcile_batch(
            str(built.event.id), HEADER, [sheet_row(applicant.id, "2025/08/01", "Design")]
        )

        first.refresh_from_db()
        assert result.outcomes[0].status is RowStatus.UPDATED
        assert result.outcomes[0].message == "Course information updated"
        assert first.confirmed_count == 1

    def test_row_errors_do_not_stop_the_batch(
        self, built, make_applicant, reconciliation_service
    ):
        first, second = built.dates
        both = make_applicant(built.event, [(first, None), (second, None)], name="Aiko Ito")
        other = make_applicant(built.event, [(first, None)], name="Ken Mori")

        result = reconciliation_service.reconcile_batch(
            str(built.event.id),
            HEADER,
            [
                sheet_row(both.id, "2025/8/1"),
                sheet_row(both.id, "2025/8/2"),
                sheet_row(other.id, "2025/8/2"),
                sheet_row(other.id, "2025/9/9"),
                sheet_row("", "2025/8/1"),
                sheet_row(other.id, "2025/8/1", flag="YES"),
            ],
        )

        assert [(o.status, o.code) for o in result.outcomes] == [
            (RowStatus.CREATED, None),
            (RowStatus.ERROR, "POLICY_VIOLATION"),
            (RowStatus.ERROR, "NOT_A_SELECTED_DATE"),
            (RowStatus.ERROR, "DATE_NOT_FOUND"),
            (RowStatus.ERROR, "MISSING_FIELD"),
            (RowStatus.CREATED, None),
        ]
        counts = dict(DateSlot.objects.values_list("date", "confirmed_count"))
        assert sorted(counts.values()) == [0, 2]

    def test_empty_rows_reject_batch(self, built, reconciliation_service):
        with pytest.raises(MalformedBatchError):
            reconciliation_service.reconcile_batch(str(built.event.id), HEADER, [])

    def test_wrong_header_rejects_batch(self, built, reconciliation_service):
        with pytest.raises(MalformedBatchError):
            reconciliation_service.reconcile_batch(
                str(built.event.id), ["id", "date"], [sheet_row(MISSING_UUID, "2025/8/1")]
            )

    def test_event_without_dates_rejects_batch(self, make_event, reconciliation_service):
        built = make_event(dates=[])
        with pytest.raises(MalformedBatchError):
            reconciliation_service.reconcile_batch(
                str(built.event.id), HEADER, [sheet_row(MISSING_UUID, "2025/8/1")]
            )

    def test_unknown_event(self, db, reconciliation_service):
        with pytest.raises(EventNotFoundError):
            reconciliation_service.reconcile_batch(
                MISSING_UUID, HEADER, [sheet_row(MISSING_UUID, "2025/8/1")]
            )

    def test_malformed_event_id(self, db, reconciliation_service):
        with pytest.raises(InvalidIdError):
            reconciliation_service.reconcile_batch("bad", HEADER, [])

    def test_unexpected_failure_is_reported_per_row(self, built, make_applicant, caplog):
        engine = Mock(spec=ConfirmationService)
        engine.confirm.side_effect = RuntimeError("connection reset")
        service = ReconciliationService(
            DjangoRegistrationStore(), DjangoEventStore(), engine, RegistrationSettings()
        )
        applicant = make_applicant(built.event, [(built.dates[0], None)])

        with caplog.at_level(logging.ERROR, logger="registrations"):
            result = service.reconcile_batch(
                str(built.event.id), HEADER, [sheet_row(applicant.id, "2025/8/1")]
            )

        assert result.outcomes[0].status is RowStatus.ERROR
        assert result.outcomes[0].code == ErrorCode.UNEXPECTED.value
        assert "connection reset" not in result.outcomes[0].message
        assert "Bulk confirmation row 2 failed" in caplog.text
