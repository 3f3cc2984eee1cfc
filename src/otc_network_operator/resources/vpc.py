"""VPC adapter (VPC API v1)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_VPC
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_VPC


@dataclass
class VPCParameters:
    name: str
    cidr: str
    description: str | None = None


@dataclass
class VPCObservation:
    id: str = ""
    status: str = ""
    name: str = ""
    cidr: str = ""
    description: str = ""


class VPC(ExternalResource[VPCParameters, VPCObservation]):
    """Virtual private cloud. The CIDR cannot change after creation."""

    kind = KIND_VPC
    parameters_type = VPCParameters
    observation_type = VPCObservation
    fields = (
        FieldDef("name"),
        FieldDef("cidr", immutable=True),
        FieldDef("description", optional=True),
    )
    status_conditions = {
        "ACTIVE": Condition.AVAILABLE,
        "OK": Condition.AVAILABLE,
        "CREATING": Condition.CREATING,
        "PENDING_UPDATE": Condition.CREATING,
        "PENDING_DELETE": Condition.DELETING,
    }

    def get(self, external_name: str, params: VPCParameters) -> VPCObservation:
        vpc = self.session.get(SERVICE_VPC, "v1", f"vpcs/{external_name}")["vpc"]
        return VPCObservation(
            id=vpc["id"],
            status=vpc.get("status", ""),
            name=vpc.get("name", ""),
            cidr=vpc.get("cidr", ""),
            description=vpc.get("description") or "",
        )

    def create_external(self, params: VPCParameters) -> str:
        payload: dict[str, Any] = {"name": params.name, "cidr": params.cidr}
        if params.description is not None:
            payload["description"] = params.description
        body = self.session.post(SERVICE_VPC, "v1", "vpcs", json={"vpc": payload})
        return body["vpc"]["id"]

    def update_external(self, external_name: str, params: VPCParameters) -> None:
        payload: dict[str, Any] = {"name": params.name}
        if params.description is not None:
            payload["description"] = params.description
        self.session.put(SERVICE_VPC, "v1", f"vpcs/{external_name}", json={"vpc": payload})

    def delete_external(self, external_name: str, params: VPCParameters) -> None:
        self.session.delete(SERVICE_VPC, "v1", f"vpcs/{external_name}")
