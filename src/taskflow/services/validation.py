"""Turn pydantic validation failures into field-level form errors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError

ModelType = TypeVar("ModelType", bound=BaseModel)

FORM_ERROR_KEY = "__all__"


def field_errors(exc: PydanticValidationError) -> dict[str, str]:
    """Return the first message reported for each field, keyed by field name."""

    errors: dict[str, str] = {}
    for error in exc.errors():
        location = error.get("loc") or ()
        field = str(location[0]) if location else FORM_ERROR_KEY
        message = str(error.get("msg", "Invalid value."))
        # Model-level "Value error, ..." messages carry pydantic's prefix.
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        errors.setdefault(field, message)
    return errors


def validate_payload(model: type[ModelType], data: Mapping[str, Any]) -> ModelType:
    """Validate ``data`` against ``model`` or raise a ``ValidationError``."""

    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(field_errors=field_errors(exc)) from exc


__all__ = ["FORM_ERROR_KEY", "field_errors", "validate_payload"]
