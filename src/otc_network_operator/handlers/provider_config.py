"""Handlers for ProviderConfig and ClusterProviderConfig resources."""

from __future__ import annotations

from typing import Any

import kopf

from .. import metrics
from ..builders.provider_config import create_provider_config_from_spec
from ..constants import (
    API_GROUP_VERSION,
    EVENT_REASON_CANNOT_CONNECT,
    KIND_CLUSTER_PROVIDER_CONFIG,
    KIND_PROVIDER_CONFIG,
)
from ..errors import OperatorError
from ..managed.resource import Condition, ProviderConfigReference
from ..services.otc.session_cache import SessionCache
from ..settings import POLL_INTERVAL_SECONDS
from ..utils.conditions import set_ready_condition
from ..utils.errors import sanitize_exception
from ..utils.events import emit_reconcile_failed
from .base import BaseHandler
from .shared import get_core_client


class ProviderConfigHandler(BaseHandler):
    """Validates provider configs and warms the session cache."""

    def __init__(self, kind: str, session_cache: SessionCache):
        super().__init__(kind)
        self.session_cache = session_cache

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        body: Any,
        patch: kopf.Patch,
    ) -> None:
        """Resolve credentials and authenticate; report the outcome as Ready."""
        namespace = meta.get("namespace") if self.kind == KIND_PROVIDER_CONFIG else None
        ref = ProviderConfigReference(kind=self.kind, name=meta.get("name", ""))
        identity = ref.identity(namespace)
        conditions = [dict(c) for c in (status or {}).get("conditions") or []]
        generation = meta.get("generation")

        try:
            config = create_provider_config_from_spec(get_core_client(), spec, namespace)
            self.session_cache.get_session(identity, config)
        except OperatorError as e:
            message = sanitize_exception(e)
            emit_reconcile_failed(body, message, reason=EVENT_REASON_CANNOT_CONNECT)
            conditions = set_ready_condition(
                conditions, Condition.UNAVAILABLE, message, observed_generation=generation
            )
            self.update_resource_status(patch, meta, False, {"conditions": conditions})
            raise

        self.log_info(
            meta,
            f"Provider config {identity} authenticated",
            event="authenticated",
            reason="Authenticated",
            project_id=config.project_id,
            region=config.region,
        )
        conditions = set_ready_condition(
            conditions,
            Condition.AVAILABLE,
            f"Authenticated for project {config.project_id} in {config.region}",
            observed_generation=generation,
        )
        self.update_resource_status(patch, meta, True, {"conditions": conditions})

    def forget(self, meta: dict[str, Any]) -> None:
        """Drop the cached session of a deleted config."""
        namespace = meta.get("namespace") if self.kind == KIND_PROVIDER_CONFIG else None
        identity = ProviderConfigReference(kind=self.kind, name=meta.get("name", "")).identity(namespace)
        self.session_cache.invalidate(identity)
        metrics.session_cache_total.labels(result="invalidated").inc()
        self.log_info(meta, f"Forgot session for {identity}", event="deleted", reason="Deleted")


def register_handlers(session_cache: SessionCache) -> dict[str, ProviderConfigHandler]:
    handlers = {}
    for kind in (KIND_PROVIDER_CONFIG, KIND_CLUSTER_PROVIDER_CONFIG):
        handler = ProviderConfigHandler(kind, session_cache)
        _register(handler)
        handlers[kind] = handler
    return handlers


def _register(handler: ProviderConfigHandler) -> None:
    kind = handler.kind
    prefix = kind.lower()

    @kopf.on.create(API_GROUP_VERSION, kind, id=f"{prefix}-create")
    @kopf.on.update(API_GROUP_VERSION, kind, id=f"{prefix}-update")
    @kopf.on.resume(API_GROUP_VERSION, kind, id=f"{prefix}-resume")
    @kopf.timer(API_GROUP_VERSION, kind, id=f"{prefix}-poll", interval=POLL_INTERVAL_SECONDS)
    def handle_provider_config(
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

    @kopf.on.delete(API_GROUP_VERSION, kind, id=f"{prefix}-delete", optional=True)
    def handle_provider_config_delete(meta: dict[str, Any], **kwargs: Any) -> None:
        handler.forget(meta)
