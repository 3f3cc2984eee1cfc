"""Builder for resolved provider configurations."""

from __future__ import annotations

import json
from typing import Any

from kubernetes import client

from ..constants import (
    API_GROUP,
    API_VERSION,
    CREDENTIALS_KEY_ACCESS,
    CREDENTIALS_KEY_SECRET,
    CREDENTIALS_SOURCE_SECRET,
    DEFAULT_IDENTITY_ENDPOINT,
    KIND_CLUSTER_PROVIDER_CONFIG,
    KIND_PROVIDER_CONFIG,
    PLURALS,
)
from ..errors import (
    ConfigurationNotFoundError,
    CredentialError,
    UnsupportedConfigurationKindError,
    ValidationError,
)
from ..managed.resource import ProviderConfigReference
from ..services.otc.models import Credentials, ResolvedProviderConfig
from ..utils.secrets import get_secret_value


def resolve_credentials(
    api: client.CoreV1Api,
    credentials_spec: dict[str, Any] | None,
    namespace: str | None,
) -> Credentials:
    """Read the access key pair referenced by a provider config.

    Args:
        api: Kubernetes API client
        credentials_spec: ``spec.credentials`` of the provider config
        namespace: Namespace of a namespaced config, ``None`` for cluster configs

    Returns:
        Credentials with both keys set

    Raises:
        CredentialError: If the reference is absent, unsupported or the
            secret content is malformed
    """
    if not credentials_spec:
        raise CredentialError("credentials are required")

    source = credentials_spec.get("source")
    if source != CREDENTIALS_SOURCE_SECRET:
        raise CredentialError(f"unsupported credentials source: {source!r}")

    secret_ref = credentials_spec.get("secretRef") or {}
    secret_name = secret_ref.get("name")
    secret_key = secret_ref.get("key")
    secret_namespace = secret_ref.get("namespace") or namespace
    if not secret_name or not secret_key:
        raise CredentialError("secretRef.name and secretRef.key are required")
    if not secret_namespace:
        raise CredentialError("secretRef.namespace is required for cluster-scoped configs")

    raw = get_secret_value(api, secret_namespace, secret_name, secret_key)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CredentialError(
            f"secret {secret_namespace}/{secret_name} key {secret_key} is not valid JSON"
        ) from e
    if not isinstance(data, dict):
        raise CredentialError(f"secret {secret_namespace}/{secret_name} must hold a JSON object")

    access_key = data.get(CREDENTIALS_KEY_ACCESS)
    secret = data.get(CREDENTIALS_KEY_SECRET)
    if not access_key or not secret:
        raise CredentialError(
            f"secret {secret_namespace}/{secret_name} must set "
            f"{CREDENTIALS_KEY_ACCESS} and {CREDENTIALS_KEY_SECRET}"
        )
    if not isinstance(access_key, str) or not isinstance(secret, str):
        raise CredentialError(
            f"secret {secret_namespace}/{secret_name}: "
            f"{CREDENTIALS_KEY_ACCESS} and {CREDENTIALS_KEY_SECRET} must be strings"
        )
    return Credentials(access_key=access_key, secret_key=secret)


def create_provider_config_from_spec(
    core_api: client.CoreV1Api,
    spec: dict[str, Any],
    namespace: str | None,
) -> ResolvedProviderConfig:
    """Validate a provider config spec and attach its credentials.

    Raises:
        ValidationError: If a required field is missing
        CredentialError: If the credentials cannot be read
    """
    for field in ("domainName", "projectId", "region"):
        if not spec.get(field):
            raise ValidationError("is required", field=field)

    return ResolvedProviderConfig(
        domain_name=spec["domainName"],
        project_id=spec["projectId"],
        region=spec["region"],
        identity_endpoint=spec.get("identityEndpoint") or DEFAULT_IDENTITY_ENDPOINT,
        credentials=resolve_credentials(core_api, spec.get("credentials"), namespace),
    )


def get_provider_config(
    custom_api: client.CustomObjectsApi,
    ref: ProviderConfigReference,
    namespace: str | None,
) -> dict[str, Any]:
    """Fetch the provider config object a reference points at.

    Raises:
        UnsupportedConfigurationKindError: Unknown kind
        ConfigurationNotFoundError: The object does not exist
    """
    try:
        if ref.kind == KIND_PROVIDER_CONFIG:
            if not namespace:
                raise ConfigurationNotFoundError(
                    f"{KIND_PROVIDER_CONFIG} {ref.name} requires a namespaced resource"
                )
            return custom_api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURALS[KIND_PROVIDER_CONFIG],
                name=ref.name,
            )
        if ref.kind == KIND_CLUSTER_PROVIDER_CONFIG:
            return custom_api.get_cluster_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                plural=PLURALS[KIND_CLUSTER_PROVIDER_CONFIG],
                name=ref.name,
            )
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ConfigurationNotFoundError(
                f"{ref.kind} {ref.identity(namespace)} not found", cause=e
            ) from e
        raise
    raise UnsupportedConfigurationKindError(ref.kind)


def resolve_provider_config(
    custom_api: client.CustomObjectsApi,
    core_api: client.CoreV1Api,
    ref: ProviderConfigReference,
    namespace: str | None,
) -> tuple[str, ResolvedProviderConfig]:
    """Resolve a reference into its cache identity and usable configuration."""
    obj = get_provider_config(custom_api, ref, namespace)
    config_namespace = namespace if ref.kind == KIND_PROVIDER_CONFIG else None
    config = create_provider_config_from_spec(core_api, obj.get("spec") or {}, config_namespace)
    return ref.identity(namespace), config
