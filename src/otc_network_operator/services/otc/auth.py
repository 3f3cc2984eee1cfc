"""AK/SK request signing and the identity handshake."""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Callable, Iterator
from urllib.parse import quote

import httpx

from ... import metrics
from ...errors import AuthenticationError
from ...settings import REQUEST_TIMEOUT_SECONDS
from .client import OTCSession
from .models import Credentials, ResolvedProviderConfig

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "SDK-HMAC-SHA256"
DATE_HEADER = "X-Sdk-Date"
DATE_FORMAT = "%Y%m%dT%H%M%SZ"

# Only these headers are signed; httpx may add transport headers later.
SIGNED_HEADERS = ("content-type", "host", "x-project-id", "x-sdk-date")


def _hash_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _canonical_uri(path: str) -> str:
    uri = quote(path, safe="/~")
    if not uri.endswith("/"):
        uri += "/"
    return uri


def _canonical_query(request: httpx.Request) -> str:
    items = sorted(
        (quote(key, safe="~"), quote(value, safe="~"))
        for key, value in request.url.params.multi_items()
    )
    return "&".join(f"{key}={value}" for key, value in items)


def sign_request(request: httpx.Request, credentials: Credentials, now: datetime) -> None:
    """Add ``X-Sdk-Date`` and ``Authorization`` headers to ``request``."""
    timestamp = now.strftime(DATE_FORMAT)
    request.headers[DATE_HEADER] = timestamp

    headers = {
        name: request.headers[name].strip()
        for name in SIGNED_HEADERS
        if name in request.headers
    }
    signed_headers = ";".join(sorted(headers))
    canonical_headers = "".join(f"{name}:{headers[name]}\n" for name in sorted(headers))

    canonical_request = "\n".join([
        request.method.upper(),
        _canonical_uri(request.url.path),
        _canonical_query(request),
        canonical_headers,
        signed_headers,
        _hash_hex(request.content),
    ])
    string_to_sign = "\n".join([
        SIGNING_ALGORITHM,
        timestamp,
        _hash_hex(canonical_request.encode("utf-8")),
    ])
    signature = hmac.new(
        credentials.secret_key.encode("utf-8"),
        string_to_sign.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()

    request.headers["Authorization"] = (
        f"{SIGNING_ALGORITHM} Access={credentials.access_key}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


class AKSKAuth(httpx.Auth):
    """httpx auth flow signing each request with an access key pair."""

    requires_request_body = True

    def __init__(
        self,
        credentials: Credentials,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.credentials = credentials
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def auth_flow(self, request: httpx.Request) -> Iterator[httpx.Request]:
        sign_request(request, self.credentials, self.clock())
        yield request


def authenticate(
    config: ResolvedProviderConfig,
    timeout: float = REQUEST_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> OTCSession:
    """Verify the credentials against the identity service and open a session.

    Lists the projects visible to the key pair and checks that the configured
    project is one of them.

    Raises:
        AuthenticationError: Credentials rejected, project not visible or
            identity service unreachable
    """
    http = httpx.Client(
        auth=AKSKAuth(config.credentials),
        timeout=httpx.Timeout(timeout),
        headers={"Content-Type": "application/json"},
        transport=transport,
    )
    endpoint = config.identity_endpoint.rstrip("/")

    try:
        response = http.get(f"{endpoint}/auth/projects")
    except httpx.HTTPError as e:
        http.close()
        metrics.authentication_total.labels(result="error").inc()
        raise AuthenticationError(f"cannot reach identity service at {endpoint}: {e}", cause=e) from e

    if response.status_code in (401, 403):
        http.close()
        metrics.authentication_total.labels(result="rejected").inc()
        raise AuthenticationError(
            f"identity service rejected the credentials for domain {config.domain_name} "
            f"(HTTP {response.status_code})"
        )
    if response.is_error:
        http.close()
        metrics.authentication_total.labels(result="error").inc()
        raise AuthenticationError(f"identity service returned HTTP {response.status_code}")

    try:
        projects = response.json().get("projects") or []
        visible = any(project.get("id") == config.project_id for project in projects)
    except (ValueError, AttributeError, TypeError) as e:
        http.close()
        metrics.authentication_total.labels(result="error").inc()
        raise AuthenticationError(
            f"identity service at {endpoint} returned an unexpected project listing", cause=e
        ) from e
    if not visible:
        http.close()
        metrics.authentication_total.labels(result="rejected").inc()
        raise AuthenticationError(
            f"project {config.project_id} is not accessible with the given credentials"
        )

    metrics.authentication_total.labels(result="success").inc()
    logger.info(f"Authenticated against {endpoint} for project {config.project_id} in {config.region}")
    return OTCSession(
        http=http,
        project_id=config.project_id,
        region=config.region,
        identity_endpoint=config.identity_endpoint,
    )
