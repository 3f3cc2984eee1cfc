"""Main entry point for the OTC Network Operator.

Run with ``kopf run -m otc_network_operator.main``.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from .handlers import managed, provider_config
from .handlers.shared import get_managed_object, load_kube_config, resolve_config
from .managed.reconciler import Connector, ManagedReconciler
from .managed.references import ReferenceResolver
from .resources.registry import RESOURCE_TYPES
from .services.otc.session_cache import SessionCache
from .settings import MAX_WORKERS, METRICS_PORT, REQUEST_TIMEOUT_SECONDS
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)

session_cache = SessionCache()
reconciler = ManagedReconciler(
    Connector(session_cache, resolve_config),
    ReferenceResolver(get_managed_object),
)

managed.register_handlers(reconciler, RESOURCE_TYPES.values())
provider_config.register_handlers(session_cache)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()
    load_kube_config()

    # Keep handler progress out of status, which the handlers own
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = REQUEST_TIMEOUT_SECONDS
    settings.execution.max_workers = MAX_WORKERS

    health.start_metrics_server(METRICS_PORT)
    logger.info(f"Serving metrics and health checks on port {METRICS_PORT}")


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Close provider sessions on operator shutdown."""
    session_cache.close()
