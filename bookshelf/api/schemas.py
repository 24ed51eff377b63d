from __future__ import annotations

from typing import Any, TypeVar

import orjson
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from bookshelf.domain.errors import MalformedRequestError

ModelT = TypeVar("ModelT", bound=BaseModel)


class CreateBookRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    title: str | None = None
    author: str | None = None


class UpdateBookRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    title: str | None = None
    author: str | None = None


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    return f"{loc}: {first['msg']}" if loc else first["msg"]


def decode_body(body: bytes, model: type[ModelT]) -> ModelT:
    """Parse a JSON request body into ``model``; any failure is a malformed request."""
    try:
        payload: Any = orjson.loads(body)
    except orjson.JSONDecodeError as exc:
        raise MalformedRequestError(f"invalid JSON body: {exc}") from exc

    # A literal null decodes to a request with no fields set.
    if payload is None:
        payload = {}

    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise MalformedRequestError(_describe(exc)) from exc
