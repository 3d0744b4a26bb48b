"""Canonical identifier handling.

Ids reach the services as raw ``uuid.UUID`` values, strings from path or
body parameters, ORM rows, response models, or plain dicts. Every
ownership/membership comparison goes through ``canonical_id`` so mixed
representations are never compared directly.
"""

import uuid
from collections.abc import Mapping
from typing import Any

from taskforge.core.exceptions import ValidationError


def canonical_id(value: Any) -> str:
    """Extract and stringify the identifier carried by ``value``."""
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Mapping):
        value = value.get("id")
    elif not isinstance(value, str) and hasattr(value, "id"):
        value = value.id
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, str):
        try:
            return str(uuid.UUID(value.strip()))
        except ValueError as exc:
            raise ValidationError(f"Invalid identifier: {value!r}") from exc
    raise ValidationError("Missing or malformed identifier")


def as_uuid(value: Any) -> uuid.UUID:
    return uuid.UUID(canonical_id(value))


def same_id(left: Any, right: Any) -> bool:
    """True when both values carry the same canonical identifier."""
    return canonical_id(left) == canonical_id(right)
