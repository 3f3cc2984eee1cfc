"""One convergence cycle for one managed resource."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .. import metrics
from ..services.otc.models import ResolvedProviderConfig
from ..services.otc.session_cache import SessionCache
from .lifecycle import ExternalResource
from .references import ReferenceResolver
from .resource import Condition, ExternalObservation, ManagedResource, ProviderConfigReference

logger = logging.getLogger(__name__)

ACTION_NONE = "none"
ACTION_CREATED = "created"
ACTION_UPDATED = "updated"

# (reference, namespace) -> (cache identity, resolved config)
ConfigResolver = Callable[
    [ProviderConfigReference, "str | None"], "tuple[str, ResolvedProviderConfig]"
]


class Connector:
    """Binds a resource kind to an authenticated session for one resource."""

    def __init__(self, session_cache: SessionCache, resolve_config: ConfigResolver) -> None:
        self.session_cache = session_cache
        self.resolve_config = resolve_config

    def connect(
        self, resource_type: type[ExternalResource], mr: ManagedResource
    ) -> ExternalResource:
        identity, config = self.resolve_config(mr.provider_config_ref, mr.namespace)
        session = self.session_cache.get_session(identity, config)
        return resource_type(session)


@dataclass
class ReconcileResult:
    """What a cycle found and which action it took."""

    observation: ExternalObservation
    action: str = ACTION_NONE
    resolved_references: list[str] = field(default_factory=list)

    @property
    def spec_changed(self) -> bool:
        """Whether ``spec.forProvider`` must be written back."""
        return bool(self.resolved_references) or self.observation.resource_late_initialized


class ManagedReconciler:
    """Runs observe, then create or update, against the provider."""

    def __init__(self, connector: Connector, references: ReferenceResolver | None = None) -> None:
        self.connector = connector
        self.references = references

    def reconcile(
        self, resource_type: type[ExternalResource], mr: ManagedResource
    ) -> ReconcileResult:
        """Converge the external resource towards ``mr.parameters``.

        Raises:
            OperatorError: Any failure; nothing is retried here
        """
        resolved: list[str] = []
        if self.references is not None and resource_type.references:
            resolved = self.references.resolve(resource_type.references, mr)
            if resolved:
                logger.info(f"{mr.kind} {mr.name}: resolved {', '.join(resolved)}")
        resource_type.validate(mr.parameters)

        external = self.connector.connect(resource_type, mr)
        observation = external.observe(mr)

        if not observation.resource_exists:
            external.create(mr)
            return ReconcileResult(observation, ACTION_CREATED, resolved)

        if observation.resource_late_initialized:
            metrics.late_initialized_total.labels(kind=mr.kind).inc()

        if not observation.resource_up_to_date:
            metrics.drift_detected_total.labels(kind=mr.kind).inc()
            external.update(mr)
            return ReconcileResult(observation, ACTION_UPDATED, resolved)

        return ReconcileResult(observation, ACTION_NONE, resolved)

    def finalize(self, resource_type: type[ExternalResource], mr: ManagedResource) -> None:
        """Delete the external resource, if one was ever recorded."""
        if not mr.external_name:
            # Nothing to delete; do not require a working provider config.
            mr.set_condition(Condition.DELETING)
            return
        external = self.connector.connect(resource_type, mr)
        external.delete(mr)

