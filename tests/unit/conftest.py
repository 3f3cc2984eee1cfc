"""Shared fixtures for unit tests."""

from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from otc_network_operator.constants import DEFAULT_IDENTITY_ENDPOINT
from otc_network_operator.services.otc.client import OTCSession
from otc_network_operator.services.otc.models import Credentials, ResolvedProviderConfig

PROJECT_ID = "proj-1"
REGION = "eu-de"


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def bodies(self) -> list[Any]:
        return [json.loads(r.content) if r.content else None for r in self.requests]


@pytest.fixture
def make_session() -> Callable[..., tuple[OTCSession, RecordingTransport]]:
    """Build an OTCSession whose HTTP traffic is answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> tuple[OTCSession, RecordingTransport]:
        transport = RecordingTransport(handler)
        session = OTCSession(
            http=httpx.Client(transport=transport),
            project_id=PROJECT_ID,
            region=REGION,
            identity_endpoint=DEFAULT_IDENTITY_ENDPOINT,
        )
        return session, transport

    return factory


@pytest.fixture
def provider_config() -> ResolvedProviderConfig:
    return ResolvedProviderConfig(
        domain_name="OTC-EU-DE-0000000001",
        project_id=PROJECT_ID,
        region=REGION,
        credentials=Credentials(access_key="AKEXAMPLE", secret_key="sk-example"),
    )
