from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


class FormValidationError(Exception):
    """Raised by the parse_*_form helpers; nothing has been written when this is raised."""

    def __init__(self, errors: list[ValidationError]) -> None:
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors

    def by_field(self) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for e in self.errors:
            out.setdefault(e.field, []).append(e.message)
        return out


def form_errors(exc: PydanticValidationError, messages: Mapping[str, str]) -> FormValidationError:
    """
    Convert a pydantic error into field-level messages (one per field).

    `messages` maps a field name to its message; a "<field>.<error type>" key
    overrides it for that pydantic error type.
    """
    errors: list[ValidationError] = []
    seen: set[str] = set()
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "__root__"
        if field in seen:
            continue
        seen.add(field)
        message = messages.get(f"{field}.{err['type']}") or messages.get(field) or err["msg"]
        errors.append(ValidationError(field, message))
    return FormValidationError(errors)
