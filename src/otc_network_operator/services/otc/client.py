"""Authenticated HTTP session against the OTC service endpoints."""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlparse

import httpx

from ... import metrics
from ...errors import NotFoundError, ProviderAPIError

logger = logging.getLogger(__name__)

SERVICE_VPC = "vpc"
SERVICE_NAT = "nat"


def endpoint_suffix(identity_endpoint: str) -> str:
    """Derive the cloud domain suffix from the identity endpoint host.

    ``https://iam.eu-de.otc.t-systems.com/v3`` yields ``otc.t-systems.com``.
    """
    host = urlparse(identity_endpoint).hostname or ""
    parts = host.split(".")
    if len(parts) > 3:
        return ".".join(parts[2:])
    return ".".join(parts[1:])


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        for key in ("message", "error_msg", "NeutronError"):
            if key in body:
                detail = body[key]
                if isinstance(detail, dict):
                    return str(detail.get("message", detail))
                return str(detail)
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message", error))
    return response.text[:200]


class OTCSession:
    """Signed client handle scoped to one project and region."""

    def __init__(
        self,
        http: httpx.Client,
        project_id: str,
        region: str,
        identity_endpoint: str,
    ) -> None:
        self.http = http
        self.project_id = project_id
        self.region = region
        self.identity_endpoint = identity_endpoint
        self.suffix = endpoint_suffix(identity_endpoint)

    def service_url(self, service: str, version: str, path: str) -> str:
        """Build ``https://<service>.<region>.<suffix>/<version>/<project>/<path>``."""
        base = f"https://{service}.{self.region}.{self.suffix}/{version}/{self.project_id}"
        return f"{base}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        service: str,
        version: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a signed request and return the decoded JSON body.

        Raises:
            NotFoundError: The provider answered 404
            ProviderAPIError: Any other failure
        """
        url = self.service_url(service, version, path)
        start_time = time.time()
        try:
            response = self.http.request(
                method,
                url,
                json=json,
                params=params,
                headers={"X-Project-Id": self.project_id},
            )
        except httpx.HTTPError as e:
            metrics.api_call_total.labels(service=service, method=method, result="error").inc()
            raise ProviderAPIError(
                f"{method} {service} {path} failed: {e}", service=service, cause=e
            ) from e
        finally:
            metrics.api_call_duration_seconds.labels(service=service, method=method).observe(
                time.time() - start_time
            )

        if response.status_code == 404:
            metrics.api_call_total.labels(service=service, method=method, result="not_found").inc()
            raise NotFoundError(
                f"{method} {service} {path}: not found", status_code=404, service=service
            )
        if response.is_error:
            metrics.api_call_total.labels(service=service, method=method, result="error").inc()
            raise ProviderAPIError(
                f"{method} {service} {path}: HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
                service=service,
            )

        metrics.api_call_total.labels(service=service, method=method, result="success").inc()
        logger.debug(f"{method} {url} -> {response.status_code}")
        if not response.content:
            return {}
        return response.json()

    def get(self, service: str, version: str, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("GET", service, version, path, **kwargs)

    def post(self, service: str, version: str, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("POST", service, version, path, **kwargs)

    def put(self, service: str, version: str, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("PUT", service, version, path, **kwargs)

    def delete(self, service: str, version: str, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.request("DELETE", service, version, path, **kwargs)

    def close(self) -> None:
        self.http.close()
