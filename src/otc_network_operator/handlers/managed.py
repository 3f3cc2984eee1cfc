"""Handlers for managed OTC network resources.

One ``ManagedResourceHandler`` per resource kind binds kopf events to the
reconciler and writes the outcome back to the object: the external-name
annotation, ``spec.forProvider`` after late-initialization or reference
resolution, and ``status.atProvider`` with the ``Ready`` and ``Synced``
conditions.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

import kopf

from .. import metrics
from ..constants import (
    ANNOTATION_EXTERNAL_NAME,
    API_GROUP_VERSION,
    EVENT_REASON_CANNOT_CONNECT,
    EVENT_REASON_CANNOT_CREATE,
    EVENT_REASON_CANNOT_DELETE,
    EVENT_REASON_CANNOT_OBSERVE,
    EVENT_REASON_CANNOT_RESOLVE_REFERENCES,
    EVENT_REASON_CANNOT_UPDATE,
    EVENT_REASON_RECONCILE_FAILED,
)
from ..errors import (
    AuthenticationError,
    ConfigurationNotFoundError,
    CreateError,
    CredentialError,
    DeleteError,
    ImmutableFieldError,
    ObserveError,
    ReferenceResolutionError,
    UnsupportedConfigurationKindError,
    UpdateError,
)
from ..managed.lifecycle import ExternalResource
from ..managed.reconciler import ACTION_CREATED, ACTION_UPDATED, ManagedReconciler, ReconcileResult
from ..managed.resource import Condition, ManagedResource, ProviderConfigReference
from ..managed.serialization import from_dict, to_dict
from ..settings import POLL_INTERVAL_SECONDS
from ..tracing import add_span_attribute, trace_span
from ..utils.conditions import set_ready_condition, set_synced_condition
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_created,
    emit_deleted,
    emit_late_initialized,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_updated,
)
from .base import BaseHandler

FAILURE_REASONS = (
    (ReferenceResolutionError, EVENT_REASON_CANNOT_RESOLVE_REFERENCES),
    (
        (
            CredentialError,
            AuthenticationError,
            ConfigurationNotFoundError,
            UnsupportedConfigurationKindError,
        ),
        EVENT_REASON_CANNOT_CONNECT,
    ),
    (ObserveError, EVENT_REASON_CANNOT_OBSERVE),
    (CreateError, EVENT_REASON_CANNOT_CREATE),
    ((UpdateError, ImmutableFieldError), EVENT_REASON_CANNOT_UPDATE),
    (DeleteError, EVENT_REASON_CANNOT_DELETE),
)


def failure_reason(error: Exception) -> str:
    """Event reason describing which stage of the cycle failed."""
    for error_types, reason in FAILURE_REASONS:
        if isinstance(error, error_types):
            return reason
    return EVENT_REASON_RECONCILE_FAILED


def build_managed_resource(
    resource_type: type[ExternalResource],
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any] | None,
) -> ManagedResource:
    """Parse a custom object into the engine's view of it.

    Raises:
        ValidationError: ``spec.forProvider`` does not match the kind
    """
    annotations = meta.get("annotations") or {}
    at_provider = (status or {}).get("atProvider")
    return ManagedResource(
        kind=resource_type.kind,
        name=meta.get("name", ""),
        namespace=meta.get("namespace"),
        parameters=from_dict(resource_type.parameters_type, spec.get("forProvider")),
        provider_config_ref=ProviderConfigReference.from_spec(spec.get("providerConfigRef")),
        external_name=annotations.get(ANNOTATION_EXTERNAL_NAME) or None,
        at_provider=from_dict(resource_type.observation_type, at_provider) if at_provider else None,
        generation=meta.get("generation"),
    )


class ManagedResourceHandler(BaseHandler):
    """Handler for one managed resource kind.

    kopf runs the polling timer alongside the event handlers, so two cycles
    for the same object can overlap. Cycles are serialized per object uid,
    and an external name created by one cycle is remembered until the object
    body carries it, so a later cycle working from an older body observes the
    new resource instead of creating a second one.
    """

    def __init__(self, resource_type: type[ExternalResource], reconciler: ManagedReconciler):
        super().__init__(resource_type.kind)
        self.resource_type = resource_type
        self.reconciler = reconciler
        self._guard = threading.Lock()
        self._object_locks: dict[str, threading.Lock] = {}
        # uid -> (annotation the creating cycle started from, created external name)
        self._pending_names: dict[str, tuple[str | None, str]] = {}

    @contextmanager
    def _serialized(self, meta: dict[str, Any]) -> Iterator[str]:
        key = meta.get("uid") or f"{meta.get('namespace')}/{meta.get('name')}"
        with self._guard:
            lock = self._object_locks.setdefault(key, threading.Lock())
        with lock:
            yield key

    def _apply_pending_name(self, key: str, mr: ManagedResource) -> None:
        pending = self._pending_names.get(key)
        if pending is None:
            return
        started_from, created = pending
        if mr.external_name == started_from:
            mr.external_name = created
        else:
            # The body caught up, or the annotation was changed by hand.
            del self._pending_names[key]

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
    ) -> ReconcileResult:
        """Run one convergence cycle and write its outcome to ``patch``."""
        conditions = [dict(c) for c in (status or {}).get("conditions") or []]
        mr: ManagedResource | None = None
        with self._serialized(meta) as key:
            try:
                mr = build_managed_resource(self.resource_type, spec, meta, status)
                annotated = mr.external_name
                self._apply_pending_name(key, mr)
                with trace_span("reconcile", kind=self.kind, attributes={"name": mr.name}):
                    result = self.reconciler.reconcile(self.resource_type, mr)
                    add_span_attribute("reconcile.action", result.action)
            except Exception as e:
                self._write_failure(meta, body, patch, conditions, mr, e)
                raise

            if result.action == ACTION_CREATED:
                self._pending_names[key] = (annotated, mr.external_name)

        observed_before = bool((status or {}).get("atProvider"))
        self._write_success(meta, body, patch, conditions, mr, result, observed_before)
        return result

    def delete(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
    ) -> None:
        """Delete the external resource, then release the finalizer."""
        with self._serialized(meta) as key:
            mr = build_managed_resource(self.resource_type, spec, meta, status)
            self._apply_pending_name(key, mr)
            try:
                with trace_span("finalize", kind=self.kind, attributes={"name": mr.name}):
                    self.reconciler.finalize(self.resource_type, mr)
            except Exception as e:
                conditions = [dict(c) for c in (status or {}).get("conditions") or []]
                self._write_failure(meta, body, patch, conditions, mr, e)
                raise
            self._pending_names.pop(key, None)
        with self._guard:
            self._object_locks.pop(key, None)

        emit_deleted(body, self.kind, mr.external_name)
        self.log_info(
            meta,
            f"Deleted {self.kind} {mr.external_name or '(never created)'}",
            event="deleted",
            reason="Deleted",
        )
        self.remove_finalizer(meta, patch)

    def _write_success(
        self,
        meta: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
        conditions: list[dict[str, Any]],
        mr: ManagedResource,
        result: ReconcileResult,
        observed_before: bool = False,
    ) -> None:
        generation = meta.get("generation")
        observation = result.observation

        if result.action == ACTION_CREATED:
            patch.metadata["annotations"] = {ANNOTATION_EXTERNAL_NAME: mr.external_name}
            emit_created(body, self.kind, mr.external_name)
            self.log_info(
                meta, f"Created {self.kind} {mr.external_name}", event="created", reason="Created",
                external_name=mr.external_name,
            )
        elif result.action == ACTION_UPDATED:
            emit_updated(body, self.kind, mr.external_name, list(observation.drifted_fields))
            self.log_info(
                meta, f"Updated {self.kind} {mr.external_name}", event="updated", reason="Updated",
                drifted_fields=list(observation.drifted_fields),
            )

        if result.spec_changed:
            patch.spec["forProvider"] = to_dict(mr.parameters)
        if observation.late_initialized_fields:
            emit_late_initialized(body, list(observation.late_initialized_fields))

        condition = mr.condition or Condition.UNAVAILABLE
        metrics.resource_status_total.labels(kind=self.kind, status=condition.value).inc()
        conditions = set_ready_condition(conditions, condition, observed_generation=generation)
        conditions = set_synced_condition(conditions, True, observed_generation=generation)

        status_data: dict[str, Any] = {"conditions": conditions}
        if mr.at_provider is not None:
            status_data["atProvider"] = self.resource_type.describe(mr.at_provider)
        elif observed_before:
            # The resource was recreated; drop the previous one's observation.
            status_data["atProvider"] = None
        self.update_resource_status(patch, meta, condition is Condition.AVAILABLE, status_data)

    def _write_failure(
        self,
        meta: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
        conditions: list[dict[str, Any]],
        mr: ManagedResource | None,
        error: Exception,
    ) -> None:
        generation = meta.get("generation")
        message = sanitize_exception(error)

        emit_reconcile_failed(body, message, reason=failure_reason(error))

        if mr is not None and mr.condition is not None:
            conditions = set_ready_condition(conditions, mr.condition, observed_generation=generation)
        conditions = set_synced_condition(
            conditions, False, message=message, observed_generation=generation
        )
        status_data: dict[str, Any] = {"conditions": conditions}
        if mr is not None and mr.at_provider is not None:
            status_data["atProvider"] = self.resource_type.describe(mr.at_provider)
        self.update_resource_status(patch, meta, False, status_data)


def register_handlers(
    reconciler: ManagedReconciler,
    resource_types: Iterable[type[ExternalResource]],
) -> dict[str, ManagedResourceHandler]:
    """Register kopf handlers for every resource kind.

    Creation is driven by create/update/resume events only; the polling timer
    runs for objects that already carry an external name.
    """
    handlers = {}
    for resource_type in resource_types:
        handler = ManagedResourceHandler(resource_type, reconciler)
        _register(handler)
        handlers[resource_type.kind] = handler
    return handlers


def _register(handler: ManagedResourceHandler) -> None:
    kind = handler.kind
    prefix = kind.lower()

    @kopf.on.create(API_GROUP_VERSION, kind, id=f"{prefix}-create")
    @kopf.on.update(API_GROUP_VERSION, kind, id=f"{prefix}-update")
    @kopf.on.resume(API_GROUP_VERSION, kind, id=f"{prefix}-resume")
    def handle_reconcile(
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
        **kwargs: Any,
    ) -> None:
        emit_reconcile_started(body)
        handler.ensure_finalizer(meta, patch)
        handler.reconcile_with_metrics(
            meta, lambda: handler.reconcile(spec, meta, status, body, patch)
        )

    @kopf.timer(
        API_GROUP_VERSION,
        kind,
        id=f"{prefix}-poll",
        interval=POLL_INTERVAL_SECONDS,
        initial_delay=POLL_INTERVAL_SECONDS,
        annotations={ANNOTATION_EXTERNAL_NAME: kopf.PRESENT},
    )
    def handle_poll(
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
        **kwargs: Any,
    ) -> None:
        handler.reconcile_with_metrics(
            meta, lambda: handler.reconcile(spec, meta, status, body, patch)
        )

    @kopf.on.delete(API_GROUP_VERSION, kind, id=f"{prefix}-delete")
    def handle_delete(
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
        **kwargs: Any,
    ) -> None:
        handler.reconcile_with_metrics(
            meta, lambda: handler.delete(spec, meta, status, body, patch)
        )
