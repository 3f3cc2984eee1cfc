"""Field tables driving late-initialization, drift detection and immutability.

Each resource kind declares a tuple of ``FieldDef`` describing where a field
lives in its parameters and observation and how it may change. The functions
below are shared by every kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..errors import ImmutableFieldError


@dataclass(frozen=True)
class FieldDef:
    """One comparable field of a resource kind.

    Attributes:
        path: Dotted attribute path on the parameters (``bandwidth.size``)
        observed: Attribute name on the observation; defaults to ``path``
            with dots replaced by underscores
        optional: Unset values take the observed value
        immutable: Cannot change after creation
        to_provider: Translates a desired value to the provider's vocabulary
            before comparing
    """

    path: str
    observed: str | None = None
    optional: bool = False
    immutable: bool = False
    to_provider: Callable[[Any], Any] | None = None

    @property
    def observed_attr(self) -> str:
        return self.observed or self.path.replace(".", "_")


def get_value(obj: Any, path: str) -> Any:
    for part in path.split("."):
        if obj is None:
            return None
        obj = getattr(obj, part)
    return obj


def set_value(obj: Any, path: str, value: Any) -> None:
    *parents, last = path.split(".")
    for part in parents:
        obj = getattr(obj, part)
    setattr(obj, last, value)


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _translate(field: FieldDef, value: Any) -> Any:
    if value is not None and field.to_provider is not None:
        return field.to_provider(value)
    return value


def desired_value(field: FieldDef, params: Any, observation: Any) -> Any:
    """The value the provider should hold for ``field``."""
    value = get_value(params, field.path)
    if value is None and field.optional:
        return getattr(observation, field.observed_attr)
    return _translate(field, value)


def late_initialize(fields: tuple[FieldDef, ...], params: Any, observation: Any) -> list[str]:
    """Copy observed values into unset optional, mutable fields.

    Returns:
        Paths of the fields that were filled in
    """
    initialized = []
    for field in fields:
        if not field.optional or field.immutable:
            continue
        if get_value(params, field.path) is not None:
            continue
        observed = getattr(observation, field.observed_attr)
        if is_empty(observed):
            continue
        set_value(params, field.path, observed)
        initialized.append(field.path)
    return initialized


def detect_drift(fields: tuple[FieldDef, ...], params: Any, observation: Any) -> list[str]:
    """Paths of the fields whose desired value differs from the observation."""
    return [
        field.path
        for field in fields
        if desired_value(field, params, observation) != getattr(observation, field.observed_attr)
    ]


def check_immutable(fields: tuple[FieldDef, ...], params: Any, observation: Any) -> None:
    """Raise if an immutable field differs from the last observation.

    Raises:
        ImmutableFieldError: Naming the first offending field
    """
    for field in fields:
        if not field.immutable:
            continue
        value = get_value(params, field.path)
        if value is None and field.optional:
            continue
        desired = _translate(field, value)
        observed = getattr(observation, field.observed_attr)
        if desired != observed:
            raise ImmutableFieldError(
                f"cannot update immutable field {field.path}: {observed!r} -> {desired!r}",
                field=field.path,
            )
