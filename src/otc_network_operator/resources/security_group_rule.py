"""Security group rule adapter (VPC API v3).

Rules cannot be modified at the provider; any change requires a new rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..constants import KIND_SECURITY_GROUP, KIND_SECURITY_GROUP_RULE
from ..errors import ValidationError
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.references import ReferenceDef
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_VPC

DIRECTIONS = ("ingress", "egress")

OPTIONAL_FIELDS = (
    "description",
    "ethertype",
    "protocol",
    "multiport",
    "remote_ip_prefix",
    "remote_group_id",
    "remote_address_group_id",
    "action",
    "priority",
)


@dataclass
class SecurityGroupRuleParameters:
    direction: str
    security_group_id: str = ""
    security_group_id_ref: dict[str, Any] | None = None
    description: str | None = None
    ethertype: str | None = None
    protocol: str | None = None
    multiport: str | None = None
    remote_ip_prefix: str | None = None
    remote_group_id: str | None = None
    remote_group_id_ref: dict[str, Any] | None = None
    remote_address_group_id: str | None = None
    action: str | None = None
    priority: int | None = None


@dataclass
class SecurityGroupRuleObservation:
    id: str = ""
    security_group_id: str = ""
    direction: str = ""
    description: str = ""
    ethertype: str = ""
    protocol: str = ""
    multiport: str = ""
    remote_ip_prefix: str = ""
    remote_group_id: str = ""
    remote_address_group_id: str = ""
    action: str = ""
    priority: int | None = None


class SecurityGroupRule(ExternalResource[SecurityGroupRuleParameters, SecurityGroupRuleObservation]):
    kind = KIND_SECURITY_GROUP_RULE
    parameters_type = SecurityGroupRuleParameters
    observation_type = SecurityGroupRuleObservation
    fields = (
        FieldDef("security_group_id", immutable=True),
        FieldDef("direction", immutable=True),
        *(FieldDef(name, optional=True, immutable=True) for name in OPTIONAL_FIELDS),
    )
    references = (
        ReferenceDef("security_group_id", "security_group_id_ref", KIND_SECURITY_GROUP),
        ReferenceDef("remote_group_id", "remote_group_id_ref", KIND_SECURITY_GROUP),
    )
    default_condition = Condition.AVAILABLE
    immutable = True

    @classmethod
    def validate(cls, params: SecurityGroupRuleParameters) -> None:
        if not params.security_group_id:
            raise ValidationError(
                "securityGroupId or securityGroupIdRef is required", field="securityGroupId"
            )
        if params.direction not in DIRECTIONS:
            raise ValidationError(f"must be one of {', '.join(DIRECTIONS)}", field="direction")

    def get(
        self, external_name: str, params: SecurityGroupRuleParameters
    ) -> SecurityGroupRuleObservation:
        rule = self.session.get(SERVICE_VPC, "v3", f"vpc/security-group-rules/{external_name}")[
            "security_group_rule"
        ]
        return SecurityGroupRuleObservation(
            id=rule["id"],
            security_group_id=rule.get("security_group_id", ""),
            direction=rule.get("direction", ""),
            description=rule.get("description") or "",
            ethertype=rule.get("ethertype") or "",
            protocol=rule.get("protocol") or "",
            multiport=rule.get("multiport") or "",
            remote_ip_prefix=rule.get("remote_ip_prefix") or "",
            remote_group_id=rule.get("remote_group_id") or "",
            remote_address_group_id=rule.get("remote_address_group_id") or "",
            action=rule.get("action") or "",
            priority=rule.get("priority"),
        )

    def create_external(self, params: SecurityGroupRuleParameters) -> str:
        payload: dict[str, Any] = {
            "security_group_id": params.security_group_id,
            "direction": params.direction,
        }
        for attr in OPTIONAL_FIELDS:
            value = getattr(params, attr)
            if value is not None:
                payload[attr] = value
        body = self.session.post(
            SERVICE_VPC, "v3", "vpc/security-group-rules", json={"security_group_rule": payload}
        )
        return body["security_group_rule"]["id"]

    def delete_external(self, external_name: str, params: SecurityGroupRuleParameters) -> None:
        self.session.delete(SERVICE_VPC, "v3", f"vpc/security-group-rules/{external_name}")
