"""
Form Validation - Tagged Results over Pydantic Schemas

``validate(schema, values)`` never raises for bad input and never mutates
the caller's mapping. It returns either ``Valid(value)`` with defaults
applied to a fresh dict, or ``Invalid(errors)`` with one ``FieldError`` per
failing field, written in plain English for inline display.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class FieldError:
    """A validation message attached to a dotted field path."""

    path: str
    message: str

    def to_dict(self) -> dict:
        return {"path": self.path, "message": self.message}


@dataclass(frozen=True)
class Valid:
    """Values passed validation."""

    value: dict[str, Any]
    ok: bool = True


@dataclass(frozen=True)
class Invalid:
    """Values failed validation; nothing may be written."""

    errors: tuple[FieldError, ...]
    ok: bool = False

    def to_dict(self) -> dict:
        return {"errors": [e.to_dict() for e in self.errors]}

    def messages_for(self, path: str) -> list[str]:
        return [e.message for e in self.errors if e.path == path]


ValidationResult = Union[Valid, Invalid]


# =============================================================================
# Validation
# =============================================================================


def _nested_model(annotation: Any) -> Optional[type[BaseModel]]:
    """The model inside ``annotation`` (``Optional[Model]``, ``list[Model]``...), if any."""
    if get_origin(annotation) is None:
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            return annotation
        return None
    for arg in get_args(annotation):
        nested = _nested_model(arg)
        if nested is not None:
            return nested
    return None


def _error_path(schema: type[BaseModel], loc: tuple) -> str:
    """
    Dotted path of an error location, spelled with the stored (alias) keys.

    Pydantic reports defaults checked with ``validate_default`` under the
    attribute name, so each part is looked up on the model it belongs to.
    """
    parts = []
    model: Optional[type[BaseModel]] = schema
    for part in loc:
        field_name = None
        if model is not None and isinstance(part, str):
            if part in model.model_fields:
                field_name = part
            else:
                field_name = next(
                    (name for name, field in model.model_fields.items() if field.alias == part), None
                )
        if field_name is None:
            parts.append(str(part))
            if not isinstance(part, int):
                model = None
            continue
        field = model.model_fields[field_name]
        parts.append(field.alias or field_name)
        model = _nested_model(field.annotation)
    return ".".join(parts) or "__root__"


def _error_message(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    # Custom validators raise ValueError; pydantic prefixes their text
    prefix = "Value error, "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message


def validate(
    schema: type[BaseModel], values: Mapping[str, Any], submitted_only: bool = False
) -> ValidationResult:
    """
    Validate form values against a schema.

    Args:
        schema: Pydantic model describing the form
        values: Raw submitted values (left untouched)
        submitted_only: Leave out top-level fields the caller did not send,
            so defaults are not written over stored values on edit

    Returns:
        Valid with the normalised values, or Invalid with field errors
    """
    try:
        model = schema.model_validate(copy.deepcopy(dict(values)))
    except ValidationError as e:
        return Invalid(
            errors=tuple(
                FieldError(path=_error_path(schema, err.get("loc", ())), message=_error_message(err))
                for err in e.errors()
            )
        )
    value = model.model_dump(mode="json", by_alias=True)
    if submitted_only:
        sent = {schema.model_fields[name].alias or name for name in model.model_fields_set}
        value = {key: item for key, item in value.items() if key in sent}
    return Valid(value=value)
