"""Generic JSON payload decoding with required-field validation."""

from __future__ import annotations

from typing import TypeVar

import pydantic
from pydantic import BaseModel

from src.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_and_validate_json(model: type[ModelT], body: bytes) -> ModelT:
    """Decode ``body`` into ``model``, raising ``ValidationError`` on bad input."""
    if not body.strip():
        raise ValidationError("unable to parse request JSON: empty body")
    try:
        return model.model_validate_json(body)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(f"request JSON doesn't match required schema: {problems}") from exc
