"""Shared Kubernetes access for handlers."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client, config

from .. import metrics
from ..builders.provider_config import resolve_provider_config
from ..constants import API_GROUP, API_VERSION, PLURALS
from ..managed.resource import ProviderConfigReference
from ..services.otc.models import ResolvedProviderConfig


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_k8s_client() -> client.CustomObjectsApi:
    return client.CustomObjectsApi()


def get_core_client() -> client.CoreV1Api:
    return client.CoreV1Api()


def get_managed_object(kind: str, namespace: str | None, name: str) -> dict[str, Any] | None:
    """Fetch a managed resource of this API group, or ``None`` if it is absent."""
    api = get_k8s_client()
    start_time = time.time()
    try:
        obj = api.get_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=PLURALS[kind],
            name=name,
        )
    except client.exceptions.ApiException as e:
        if e.status == 404:
            metrics.api_call_total.labels(service="kubernetes", method="GET", result="not_found").inc()
            return None
        metrics.api_call_total.labels(service="kubernetes", method="GET", result="error").inc()
        raise
    finally:
        metrics.api_call_duration_seconds.labels(service="kubernetes", method="GET").observe(
            time.time() - start_time
        )
    metrics.api_call_total.labels(service="kubernetes", method="GET", result="success").inc()
    return obj


def resolve_config(
    ref: ProviderConfigReference, namespace: str | None
) -> tuple[str, ResolvedProviderConfig]:
    """Resolve a provider config reference with fresh Kubernetes clients."""
    return resolve_provider_config(get_k8s_client(), get_core_client(), ref, namespace)
