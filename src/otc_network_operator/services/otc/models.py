"""Models for OTC provider access."""

from __future__ import annotations

from dataclasses import dataclass, field

from ...constants import DEFAULT_IDENTITY_ENDPOINT


@dataclass(frozen=True)
class Credentials:
    """Access key pair used to sign provider requests."""

    access_key: str
    secret_key: str = field(repr=False)


@dataclass(frozen=True)
class ResolvedProviderConfig:
    """Provider config spec combined with freshly read credentials."""

    domain_name: str
    project_id: str
    region: str
    credentials: Credentials
    identity_endpoint: str = DEFAULT_IDENTITY_ENDPOINT
