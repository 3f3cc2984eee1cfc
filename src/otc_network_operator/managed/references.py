"""Resolution of references between managed resources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..constants import ANNOTATION_EXTERNAL_NAME
from ..errors import ReferenceResolutionError
from .fields import get_value, set_value
from .resource import ManagedResource

logger = logging.getLogger(__name__)

# (kind, namespace, name) -> custom object body, or None when absent
ObjectLookup = Callable[[str, "str | None", str], "dict[str, Any] | None"]


@dataclass(frozen=True)
class ReferenceDef:
    """``ref`` names another managed resource whose external name fills ``field``."""

    field: str
    ref: str
    kind: str


class ReferenceResolver:
    """Fills id fields from the external names of referenced resources."""

    def __init__(self, lookup: ObjectLookup) -> None:
        self.lookup = lookup

    def resolve(self, references: tuple[ReferenceDef, ...], mr: ManagedResource) -> list[str]:
        """Resolve every set reference of ``mr``.

        Returns:
            Paths of the fields whose value changed

        Raises:
            ReferenceResolutionError: A referenced object is missing or has
                not been created at the provider yet
        """
        changed = []
        for reference in references:
            ref = get_value(mr.parameters, reference.ref)
            if not ref:
                continue
            name = ref.get("name") if isinstance(ref, dict) else None
            if not name:
                raise ReferenceResolutionError(f"{reference.ref} must name a {reference.kind}")

            obj = self.lookup(reference.kind, mr.namespace, name)
            if obj is None:
                raise ReferenceResolutionError(
                    f"referenced {reference.kind} {mr.namespace}/{name} does not exist"
                )
            annotations = obj.get("metadata", {}).get("annotations") or {}
            external_name = annotations.get(ANNOTATION_EXTERNAL_NAME)
            if not external_name:
                raise ReferenceResolutionError(
                    f"referenced {reference.kind} {mr.namespace}/{name} has no external name yet"
                )

            if get_value(mr.parameters, reference.field) != external_name:
                set_value(mr.parameters, reference.field, external_name)
                changed.append(reference.field)
                logger.debug(f"Resolved {reference.field} of {mr.kind} {mr.name} to {external_name}")
        return changed
