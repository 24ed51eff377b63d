from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from bookshelf.domain.errors import ValidationError

MIN_FIELD_LENGTH = 1
MAX_FIELD_LENGTH = 100

EMPTY_PATCH_MESSAGE = "update structure has no values"


def _field_error(value: str) -> str | None:
    if not value:
        return "cannot be blank"
    if not MIN_FIELD_LENGTH <= len(value) <= MAX_FIELD_LENGTH:
        return f"the length must be between {MIN_FIELD_LENGTH} and {MAX_FIELD_LENGTH}"
    return None


@dataclass
class Book:
    title: str
    author: str
    id: int | None = None

    def validate(self) -> None:
        """Raise ``ValidationError`` naming every invalid field, sorted by field name."""
        errors: list[str] = []
        for name in ("author", "title"):
            problem = _field_error(getattr(self, name))
            if problem:
                errors.append(f"{name}: {problem}")
        if errors:
            raise ValidationError("; ".join(errors) + ".")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "author": self.author}


@dataclass
class UpdateBookInput:
    """Sparse patch: ``None`` means the field is left untouched."""

    title: str | None = None
    author: str | None = None

    def is_empty(self) -> bool:
        return self.title is None and self.author is None

    def validate(self) -> None:
        if self.is_empty():
            raise ValidationError(EMPTY_PATCH_MESSAGE)
