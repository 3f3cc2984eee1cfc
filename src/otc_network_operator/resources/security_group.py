"""Security group adapter (VPC API v3)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_SECURITY_GROUP
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_VPC


@dataclass
class SecurityGroupParameters:
    name: str
    description: str | None = None


@dataclass
class SecurityGroupObservation:
    id: str = ""
    name: str = ""
    description: str = ""


class SecurityGroup(ExternalResource[SecurityGroupParameters, SecurityGroupObservation]):
    """Security group. The provider reports no status, so it is Available once it exists."""

    kind = KIND_SECURITY_GROUP
    parameters_type = SecurityGroupParameters
    observation_type = SecurityGroupObservation
    fields = (
        FieldDef("name"),
        FieldDef("description", optional=True),
    )
    default_condition = Condition.AVAILABLE

    def get(self, external_name: str, params: SecurityGroupParameters) -> SecurityGroupObservation:
        group = self.session.get(SERVICE_VPC, "v3", f"vpc/security-groups/{external_name}")[
            "security_group"
        ]
        return SecurityGroupObservation(
            id=group["id"],
            name=group.get("name", ""),
            description=group.get("description") or "",
        )

    def _payload(self, params: SecurityGroupParameters) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": params.name}
        if params.description is not None:
            payload["description"] = params.description
        return {"security_group": payload}

    def create_external(self, params: SecurityGroupParameters) -> str:
        body = self.session.post(SERVICE_VPC, "v3", "vpc/security-groups", json=self._payload(params))
        return body["security_group"]["id"]

    def update_external(self, external_name: str, params: SecurityGroupParameters) -> None:
        self.session.put(
            SERVICE_VPC, "v3", f"vpc/security-groups/{external_name}", json=self._payload(params)
        )

    def delete_external(self, external_name: str, params: SecurityGroupParameters) -> None:
        self.session.delete(SERVICE_VPC, "v3", f"vpc/security-groups/{external_name}")
