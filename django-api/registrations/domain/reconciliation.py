"""Transient types for bulk confirmation batches."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum


class RowStatus(Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ReconciliationRow:
    """One unit of bulk input, consumed and discarded after processing."""

    row_number: int
    applicant_ref: str
    name: str
    email: str
    date_text: str
    course_text: str
    confirm_flag: str


@dataclass(frozen=True)
class RowOutcome:
    row_number: int
    applicant_ref: str
    status: RowStatus
    message: str = ""
    code: str | None = None


@dataclass
class BatchResult:
    """Per-row outcomes of one reconciliation batch."""

    event_id: str
    outcomes: list[RowOutcome] = field(default_factory=list)

    def add(self, outcome: RowOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    def summary(self) -> dict[str, int]:
        counts = Counter(outcome.status for outcome in self.outcomes)
        return {status.value: counts.get(status, 0) for status in RowStatus}

    def by_status(self, status: RowStatus) -> list[RowOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status is status]
