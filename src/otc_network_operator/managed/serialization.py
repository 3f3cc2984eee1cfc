"""Conversion between parameter/observation dataclasses and CR dictionaries.

Attribute names are snake_case in Python and camelCase in the custom
resources (``gateway_ip`` <-> ``gatewayIp``). Nested dataclasses declare
their type in the field metadata under ``nested``.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, TypeVar

from ..errors import ValidationError

T = TypeVar("T")


def camel_case(name: str) -> str:
    first, *rest = name.split("_")
    return first + "".join(part[:1].upper() + part[1:] for part in rest)


def to_dict(obj: Any) -> dict[str, Any]:
    """Serialize a dataclass, skipping unset (``None``) fields."""
    result: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if is_dataclass(value):
            value = to_dict(value)
        result[camel_case(f.name)] = value
    return result


def from_dict(cls: type[T], data: dict[str, Any] | None) -> T:
    """Build ``cls`` from a CR dictionary; unknown keys are ignored.

    Raises:
        ValidationError: A required field is missing or a nested value is
            not an object
    """
    data = data or {}
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = camel_case(f.name)
        if key not in data or data[key] is None:
            continue
        value = data[key]
        nested = f.metadata.get("nested")
        if nested is not None:
            if not isinstance(value, dict):
                raise ValidationError("expected an object", field=key)
            value = from_dict(nested, value)
        kwargs[f.name] = value
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValidationError(f"invalid {cls.__name__}: {e}") from e
