"""Generic external-resource lifecycle shared by every resource kind.

Subclasses describe one provider resource type: its parameter and
observation dataclasses, its field table, its status table and the four
provider calls (``get``, ``create_external``, ``update_external``,
``delete_external``). The observe/create/update/delete semantics,
including late-initialization, drift detection and immutability checks,
live here once.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Generic, Mapping, TypeVar

from .. import metrics
from ..errors import (
    CreateError,
    DeleteError,
    ImmutableFieldError,
    NotFoundError,
    ObserveError,
    UpdateError,
)
from ..services.otc.client import OTCSession
from ..tracing import trace_span
from .fields import FieldDef, check_immutable, detect_drift, late_initialize
from .references import ReferenceDef
from .resource import Condition, ExternalObservation, ManagedResource
from .serialization import to_dict

logger = logging.getLogger(__name__)

ParamsT = TypeVar("ParamsT")
ObservationT = TypeVar("ObservationT")


class ExternalResource(Generic[ParamsT, ObservationT]):
    """Lifecycle of one kind of provider resource, bound to a session."""

    kind: ClassVar[str]
    parameters_type: ClassVar[type]
    observation_type: ClassVar[type]
    fields: ClassVar[tuple[FieldDef, ...]] = ()
    references: ClassVar[tuple[ReferenceDef, ...]] = ()
    status_conditions: ClassVar[Mapping[str, Condition]] = {}
    default_condition: ClassVar[Condition] = Condition.UNAVAILABLE
    # Kinds whose every field is fixed at creation refuse all updates.
    immutable: ClassVar[bool] = False

    def __init__(self, session: OTCSession) -> None:
        self.session = session

    # Provider calls implemented per kind

    def get(self, external_name: str, params: ParamsT) -> ObservationT:
        raise NotImplementedError

    def create_external(self, params: ParamsT) -> str:
        raise NotImplementedError

    def update_external(self, external_name: str, params: ParamsT) -> None:
        raise NotImplementedError

    def delete_external(self, external_name: str, params: ParamsT) -> None:
        raise NotImplementedError

    # Hooks

    @classmethod
    def validate(cls, params: ParamsT) -> None:
        """Check cross-field constraints once references are resolved."""

    @classmethod
    def condition_for(cls, status: str | None) -> Condition:
        return cls.status_conditions.get(status or "", cls.default_condition)

    def detect_drift(self, params: ParamsT, observation: ObservationT) -> list[str]:
        return detect_drift(self.fields, params, observation)

    def late_initialize(self, params: ParamsT, observation: ObservationT) -> list[str]:
        return late_initialize(self.fields, params, observation)

    # Lifecycle

    def observe(self, mr: ManagedResource) -> ExternalObservation:
        """Fetch the external resource and compare it with the desired state."""
        if not mr.external_name:
            return ExternalObservation(resource_exists=False)

        with trace_span("observe", kind=self.kind, attributes={"external_name": mr.external_name}):
            try:
                observation = self.get(mr.external_name, mr.parameters)
            except NotFoundError:
                logger.info(f"{self.kind} {mr.external_name} not found at provider")
                mr.at_provider = None
                return ExternalObservation(resource_exists=False)
            except Exception as e:
                metrics.external_operations_total.labels(
                    kind=self.kind, operation="observe", result="error"
                ).inc()
                raise ObserveError(self.kind, e) from e

        mr.at_provider = observation
        mr.set_condition(self.condition_for(getattr(observation, "status", None)))

        initialized = self.late_initialize(mr.parameters, observation)
        drifted = self.detect_drift(mr.parameters, observation)
        if drifted:
            logger.info(f"{self.kind} {mr.external_name} drifted on {', '.join(drifted)}")

        return ExternalObservation(
            resource_exists=True,
            resource_up_to_date=not drifted,
            resource_late_initialized=bool(initialized),
            drifted_fields=tuple(drifted),
            late_initialized_fields=tuple(initialized),
        )

    def create(self, mr: ManagedResource) -> str:
        """Create the external resource and record its id as the external name."""
        mr.set_condition(Condition.CREATING)
        with trace_span("create", kind=self.kind):
            try:
                external_name = self.create_external(mr.parameters)
            except Exception as e:
                metrics.external_operations_total.labels(
                    kind=self.kind, operation="create", result="error"
                ).inc()
                raise CreateError(self.kind, e) from e

        metrics.external_operations_total.labels(
            kind=self.kind, operation="create", result="success"
        ).inc()
        mr.external_name = external_name
        logger.info(f"Created {self.kind} {external_name}")
        return external_name

    def update(self, mr: ManagedResource) -> None:
        """Push mutable fields to the provider.

        Raises:
            ImmutableFieldError: The kind is immutable, or an immutable field
                differs from the last observation
        """
        if self.immutable:
            raise ImmutableFieldError(f"{self.kind} is immutable")
        if mr.at_provider is not None:
            check_immutable(self.fields, mr.parameters, mr.at_provider)

        with trace_span("update", kind=self.kind, attributes={"external_name": mr.external_name}):
            try:
                self.update_external(mr.external_name, mr.parameters)
            except Exception as e:
                metrics.external_operations_total.labels(
                    kind=self.kind, operation="update", result="error"
                ).inc()
                raise UpdateError(self.kind, e) from e

        metrics.external_operations_total.labels(
            kind=self.kind, operation="update", result="success"
        ).inc()
        logger.info(f"Updated {self.kind} {mr.external_name}")

    def delete(self, mr: ManagedResource) -> None:
        """Delete the external resource; absent resources count as deleted."""
        mr.set_condition(Condition.DELETING)
        if not mr.external_name:
            return

        with trace_span("delete", kind=self.kind, attributes={"external_name": mr.external_name}):
            try:
                self.delete_external(mr.external_name, mr.parameters)
            except NotFoundError:
                logger.info(f"{self.kind} {mr.external_name} already gone")
                return
            except Exception as e:
                metrics.external_operations_total.labels(
                    kind=self.kind, operation="delete", result="error"
                ).inc()
                raise DeleteError(self.kind, e) from e

        metrics.external_operations_total.labels(
            kind=self.kind, operation="delete", result="success"
        ).inc()
        logger.info(f"Deleted {self.kind} {mr.external_name}")

    @classmethod
    def describe(cls, observation: Any) -> dict[str, Any]:
        """Status payload for ``status.atProvider``."""
        return to_dict(observation)
