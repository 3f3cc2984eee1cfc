"""NAT gateway adapter (NAT API v2)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_NAT_GATEWAY, KIND_SUBNET, KIND_VPC
from ..errors import ValidationError
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.references import ReferenceDef
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_NAT

SPEC_IDS = {
    "micro": "0",
    "small": "1",
    "medium": "2",
    "large": "3",
    "extra-large": "4",
}


def resolve_spec_id(spec: str) -> str:
    """Map a size name to the provider's numeric spec id; ids pass through."""
    return SPEC_IDS.get(spec.lower(), spec)


@dataclass
class NATGatewayParameters:
    name: str
    spec: str
    description: str | None = None
    vpc_id: str = ""
    vpc_id_ref: dict[str, Any] | None = None
    subnet_id: str = ""
    subnet_id_ref: dict[str, Any] | None = None


@dataclass
class NATGatewayObservation:
    id: str = ""
    status: str = ""
    admin_state_up: bool = False
    name: str = ""
    description: str = ""
    spec: str = ""
    vpc_id: str = ""
    subnet_id: str = ""


class NATGateway(ExternalResource[NATGatewayParameters, NATGatewayObservation]):
    kind = KIND_NAT_GATEWAY
    parameters_type = NATGatewayParameters
    observation_type = NATGatewayObservation
    fields = (
        FieldDef("name"),
        FieldDef("description", optional=True),
        FieldDef("spec", to_provider=resolve_spec_id),
        FieldDef("vpc_id", immutable=True),
        FieldDef("subnet_id", immutable=True),
    )
    references = (
        ReferenceDef("vpc_id", "vpc_id_ref", KIND_VPC),
        ReferenceDef("subnet_id", "subnet_id_ref", KIND_SUBNET),
    )
    status_conditions = {
        "ACTIVE": Condition.AVAILABLE,
        "OK": Condition.AVAILABLE,
        "PENDING_CREATE": Condition.CREATING,
        "PENDING_UPDATE": Condition.CREATING,
        "PENDING_DELETE": Condition.DELETING,
    }

    @classmethod
    def validate(cls, params: NATGatewayParameters) -> None:
        if not params.vpc_id:
            raise ValidationError("vpcId or vpcIdRef is required", field="vpcId")
        if not params.subnet_id:
            raise ValidationError("subnetId or subnetIdRef is required", field="subnetId")
        if resolve_spec_id(params.spec) not in SPEC_IDS.values():
            raise ValidationError(
                f"unknown size {params.spec!r}, expected one of {', '.join(SPEC_IDS)}",
                field="spec",
            )

    def get(self, external_name: str, params: NATGatewayParameters) -> NATGatewayObservation:
        gateway = self.session.get(SERVICE_NAT, "v2", f"nat_gateways/{external_name}")["nat_gateway"]
        return NATGatewayObservation(
            id=gateway["id"],
            status=gateway.get("status", ""),
            admin_state_up=bool(gateway.get("admin_state_up", False)),
            name=gateway.get("name", ""),
            description=gateway.get("description") or "",
            spec=str(gateway.get("spec", "")),
            vpc_id=gateway.get("router_id", ""),
            subnet_id=gateway.get("internal_network_id", ""),
        )

    def create_external(self, params: NATGatewayParameters) -> str:
        payload: dict[str, Any] = {
            "name": params.name,
            "spec": resolve_spec_id(params.spec),
            "router_id": params.vpc_id,
            "internal_network_id": params.subnet_id,
        }
        if params.description is not None:
            payload["description"] = params.description
        body = self.session.post(SERVICE_NAT, "v2", "nat_gateways", json={"nat_gateway": payload})
        return body["nat_gateway"]["id"]

    def update_external(self, external_name: str, params: NATGatewayParameters) -> None:
        payload: dict[str, Any] = {"name": params.name, "spec": resolve_spec_id(params.spec)}
        if params.description is not None:
            payload["description"] = params.description
        self.session.put(
            SERVICE_NAT, "v2", f"nat_gateways/{external_name}", json={"nat_gateway": payload}
        )

    def delete_external(self, external_name: str, params: NATGatewayParameters) -> None:
        self.session.delete(SERVICE_NAT, "v2", f"nat_gateways/{external_name}")
