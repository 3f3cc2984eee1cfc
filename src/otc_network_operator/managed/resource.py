"""In-memory view of one managed resource during a reconcile cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..constants import (
    DEFAULT_PROVIDER_CONFIG_NAME,
    KIND_CLUSTER_PROVIDER_CONFIG,
    KIND_PROVIDER_CONFIG,
)


class Condition(str, Enum):
    """Availability of the external resource as reported by the provider."""

    AVAILABLE = "Available"
    CREATING = "Creating"
    DELETING = "Deleting"
    UNAVAILABLE = "Unavailable"


@dataclass(frozen=True)
class ProviderConfigReference:
    """Points at a namespaced ProviderConfig or a ClusterProviderConfig."""

    kind: str = KIND_CLUSTER_PROVIDER_CONFIG
    name: str = DEFAULT_PROVIDER_CONFIG_NAME

    @classmethod
    def from_spec(cls, ref: dict[str, Any] | None) -> ProviderConfigReference:
        if not ref:
            return cls()
        return cls(
            kind=ref.get("kind") or KIND_CLUSTER_PROVIDER_CONFIG,
            name=ref.get("name") or DEFAULT_PROVIDER_CONFIG_NAME,
        )

    def identity(self, namespace: str | None) -> str:
        """Stable cache key for the referenced config."""
        if self.kind == KIND_PROVIDER_CONFIG:
            return f"{KIND_PROVIDER_CONFIG}/{namespace}/{self.name}"
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class ExternalObservation:
    """Outcome of observing the external resource."""

    resource_exists: bool
    resource_up_to_date: bool = False
    resource_late_initialized: bool = False
    drifted_fields: tuple[str, ...] = ()
    late_initialized_fields: tuple[str, ...] = ()


@dataclass
class ManagedResource:
    """Desired and observed state of one resource instance.

    ``parameters`` and ``at_provider`` hold the kind-specific dataclasses.
    The engine mutates ``parameters`` only to backfill optional fields and
    resolved references.
    """

    kind: str
    name: str
    namespace: str | None
    parameters: Any
    provider_config_ref: ProviderConfigReference = field(default_factory=ProviderConfigReference)
    external_name: str | None = None
    at_provider: Any | None = None
    condition: Condition | None = None
    generation: int | None = None

    def set_condition(self, condition: Condition) -> None:
        self.condition = condition
