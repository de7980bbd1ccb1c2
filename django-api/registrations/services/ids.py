"""Parse raw identifiers into domain IDs, mapping failures to domain errors."""

from typing import TypeVar

from registrations.domain.errors import InvalidIdError

IdT = TypeVar("IdT")


def parse_id(id_type: type[IdT], value: str, field: str) -> IdT:
    """Return ``id_type.from_string(value)``.

    Raises:
        InvalidIdError: If ``value`` is not a valid UUID.
    """
    try:
        return id_type.from_string(value)
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidIdError(field) from exc


def parse_optional_id(id_type: type[IdT], value: str | None, field: str) -> IdT | None:
    if value is None or value == "":
        return None
    return parse_id(id_type, value, field)
