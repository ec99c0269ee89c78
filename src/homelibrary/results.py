"""Tagged result variants returned by catalog, lending and search operations.

Core operations never raise for expected failures (missing book, invalid
state transition, bad date range). They return ``Ok(value)`` or
``Err(kind, detail)`` and the caller decides how to present the failure:
the web layer maps ``ErrorKind`` to an HTTP status, the CLI prints it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of an expected failure."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_RANGE = "invalid_range"
    VALIDATION = "validation"


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation problem."""

    field: str
    message: str


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying the failure kind and a readable message."""

    kind: ErrorKind
    detail: str
    fields: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def not_found(detail: str = "Book not found") -> Err:
    return Err(ErrorKind.NOT_FOUND, detail)


def conflict(detail: str) -> Err:
    return Err(ErrorKind.CONFLICT, detail)


def invalid_range(detail: str) -> Err:
    return Err(ErrorKind.INVALID_RANGE, detail)


def validation_failed(field_name: str, message: str) -> Err:
    return Err(
        ErrorKind.VALIDATION,
        "Validation failed",
        [FieldError(field=field_name, message=message)],
    )
