"""Split an uploaded confirmation sheet into a header and data rows."""

import csv
import io

from registrations.domain.errors import MalformedBatchError


def parse_csv_text(text: str) -> tuple[list[str], list[list[str]]]:
    """Return ``(header, rows)`` from CSV text, dropping blank lines.

    Raises:
        MalformedBatchError: If the text contains no lines at all.
    """
    lines = [
        row
        for row in csv.reader(io.StringIO(text.lstrip("\ufeff")))
        if any(cell.strip() for cell in row)
    ]
    if not lines:
        raise MalformedBatchError("The file is empty")
    header, *rows = lines
    return [cell.strip() for cell in header], rows


def decode_upload(raw: bytes) -> str:
    """Decode an uploaded file, accepting UTF-8 with or without BOM."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise MalformedBatchError("The file must be UTF-8 encoded") from exc
