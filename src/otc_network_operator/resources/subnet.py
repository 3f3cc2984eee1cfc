"""Subnet adapter (VPC API v1)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_SUBNET, KIND_VPC
from ..errors import ValidationError
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.references import ReferenceDef
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_VPC

MUTABLE_FIELDS = ("name", "dhcp_enable", "primary_dns", "secondary_dns", "description")


@dataclass
class SubnetParameters:
    name: str
    cidr: str
    gateway_ip: str
    vpc_id: str = ""
    vpc_id_ref: dict[str, Any] | None = None
    dhcp_enable: bool | None = None
    primary_dns: str | None = None
    secondary_dns: str | None = None
    availability_zone: str | None = None
    description: str | None = None


@dataclass
class SubnetObservation:
    id: str = ""
    status: str = ""
    name: str = ""
    cidr: str = ""
    gateway_ip: str = ""
    vpc_id: str = ""
    dhcp_enable: bool | None = None
    primary_dns: str = ""
    secondary_dns: str = ""
    availability_zone: str = ""
    description: str = ""


class Subnet(ExternalResource[SubnetParameters, SubnetObservation]):
    """Subnet inside a VPC. Updates and deletes address it through its VPC."""

    kind = KIND_SUBNET
    parameters_type = SubnetParameters
    observation_type = SubnetObservation
    fields = (
        FieldDef("name"),
        FieldDef("cidr", immutable=True),
        FieldDef("gateway_ip", immutable=True),
        FieldDef("vpc_id", immutable=True),
        FieldDef("dhcp_enable", optional=True),
        FieldDef("primary_dns", optional=True),
        FieldDef("secondary_dns", optional=True),
        FieldDef("availability_zone", optional=True, immutable=True),
        FieldDef("description", optional=True),
    )
    references = (ReferenceDef("vpc_id", "vpc_id_ref", KIND_VPC),)
    status_conditions = {
        "ACTIVE": Condition.AVAILABLE,
        "OK": Condition.AVAILABLE,
        "CREATING": Condition.CREATING,
        "UNKNOWN": Condition.CREATING,
    }

    @classmethod
    def validate(cls, params: SubnetParameters) -> None:
        if not params.vpc_id:
            raise ValidationError("vpcId or vpcIdRef is required", field="vpcId")

    def get(self, external_name: str, params: SubnetParameters) -> SubnetObservation:
        subnet = self.session.get(SERVICE_VPC, "v1", f"subnets/{external_name}")["subnet"]
        return SubnetObservation(
            id=subnet["id"],
            status=subnet.get("status", ""),
            name=subnet.get("name", ""),
            cidr=subnet.get("cidr", ""),
            gateway_ip=subnet.get("gateway_ip", ""),
            vpc_id=subnet.get("vpc_id", ""),
            dhcp_enable=subnet.get("dhcp_enable"),
            primary_dns=subnet.get("primary_dns") or "",
            secondary_dns=subnet.get("secondary_dns") or "",
            availability_zone=subnet.get("availability_zone") or "",
            description=subnet.get("description") or "",
        )

    def create_external(self, params: SubnetParameters) -> str:
        payload: dict[str, Any] = {
            "name": params.name,
            "cidr": params.cidr,
            "gateway_ip": params.gateway_ip,
            "vpc_id": params.vpc_id,
        }
        for attr in ("dhcp_enable", "primary_dns", "secondary_dns", "availability_zone", "description"):
            value = getattr(params, attr)
            if value is not None:
                payload[attr] = value
        body = self.session.post(SERVICE_VPC, "v1", "subnets", json={"subnet": payload})
        return body["subnet"]["id"]

    def update_external(self, external_name: str, params: SubnetParameters) -> None:
        payload = {
            attr: getattr(params, attr)
            for attr in MUTABLE_FIELDS
            if getattr(params, attr) is not None
        }
        self.session.put(
            SERVICE_VPC,
            "v1",
            f"vpcs/{params.vpc_id}/subnets/{external_name}",
            json={"subnet": payload},
        )

    def delete_external(self, external_name: str, params: SubnetParameters) -> None:
        self.session.delete(SERVICE_VPC, "v1", f"vpcs/{params.vpc_id}/subnets/{external_name}")
