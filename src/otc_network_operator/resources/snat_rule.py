"""SNAT rule adapter (NAT API v2)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_ELASTIC_IP, KIND_NAT_GATEWAY, KIND_SNAT_RULE, KIND_SUBNET
from ..errors import ValidationError
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.references import ReferenceDef
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_NAT


@dataclass
class SNATRuleParameters:
    nat_gateway_id: str = ""
    nat_gateway_id_ref: dict[str, Any] | None = None
    elastic_ip_id: str = ""
    elastic_ip_id_ref: dict[str, Any] | None = None
    subnet_id: str | None = None
    subnet_id_ref: dict[str, Any] | None = None
    cidr: str | None = None


@dataclass
class SNATRuleObservation:
    id: str = ""
    status: str = ""
    admin_state_up: bool = False
    elastic_ip_address: str = ""
    nat_gateway_id: str = ""
    elastic_ip_id: str = ""
    subnet_id: str = ""
    cidr: str = ""


class SNATRule(ExternalResource[SNATRuleParameters, SNATRuleObservation]):
    """Source NAT for a subnet or CIDR through a NAT gateway and an elastic IP."""

    kind = KIND_SNAT_RULE
    parameters_type = SNATRuleParameters
    observation_type = SNATRuleObservation
    fields = (
        FieldDef("nat_gateway_id", immutable=True),
        FieldDef("elastic_ip_id", immutable=True),
        FieldDef("subnet_id", optional=True, immutable=True),
        FieldDef("cidr", optional=True, immutable=True),
    )
    references = (
        ReferenceDef("nat_gateway_id", "nat_gateway_id_ref", KIND_NAT_GATEWAY),
        ReferenceDef("elastic_ip_id", "elastic_ip_id_ref", KIND_ELASTIC_IP),
        ReferenceDef("subnet_id", "subnet_id_ref", KIND_SUBNET),
    )
    status_conditions = {
        "ACTIVE": Condition.AVAILABLE,
        "PENDING_CREATE": Condition.CREATING,
        "PENDING_UPDATE": Condition.CREATING,
        "PENDING_DELETE": Condition.DELETING,
    }
    immutable = True

    @classmethod
    def validate(cls, params: SNATRuleParameters) -> None:
        if not params.nat_gateway_id:
            raise ValidationError(
                "natGatewayId or natGatewayIdRef is required", field="natGatewayId"
            )
        if not params.elastic_ip_id:
            raise ValidationError("elasticIpId or elasticIpIdRef is required", field="elasticIpId")
        if bool(params.subnet_id) == bool(params.cidr):
            raise ValidationError("exactly one of subnetId (or subnetIdRef) and cidr must be set")

    def get(self, external_name: str, params: SNATRuleParameters) -> SNATRuleObservation:
        rule = self.session.get(SERVICE_NAT, "v2", f"snat_rules/{external_name}")["snat_rule"]
        return SNATRuleObservation(
            id=rule["id"],
            status=rule.get("status", ""),
            admin_state_up=bool(rule.get("admin_state_up", False)),
            elastic_ip_address=rule.get("floating_ip_address") or "",
            nat_gateway_id=rule.get("nat_gateway_id", ""),
            elastic_ip_id=rule.get("floating_ip_id", ""),
            subnet_id=rule.get("network_id") or "",
            cidr=rule.get("cidr") or "",
        )

    def create_external(self, params: SNATRuleParameters) -> str:
        payload: dict[str, Any] = {
            "nat_gateway_id": params.nat_gateway_id,
            "floating_ip_id": params.elastic_ip_id,
        }
        if params.subnet_id:
            payload["network_id"] = params.subnet_id
        else:
            payload["cidr"] = params.cidr
        body = self.session.post(SERVICE_NAT, "v2", "snat_rules", json={"snat_rule": payload})
        return body["snat_rule"]["id"]

    def delete_external(self, external_name: str, params: SNATRuleParameters) -> None:
        self.session.delete(SERVICE_NAT, "v2", f"snat_rules/{external_name}")
