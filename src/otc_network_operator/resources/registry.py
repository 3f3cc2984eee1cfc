"""Resource kinds served by the operator."""

from __future__ import annotations

from ..errors import ValidationError
from ..managed.lifecycle import ExternalResource
from .elastic_ip import ElasticIP
from .nat_gateway import NATGateway
from .security_group import SecurityGroup
from .security_group_rule import SecurityGroupRule
from .snat_rule import SNATRule
from .subnet import Subnet
from .vpc import VPC

RESOURCE_TYPES: dict[str, type[ExternalResource]] = {
    resource_type.kind: resource_type
    for resource_type in (
        VPC,
        Subnet,
        SecurityGroup,
        SecurityGroupRule,
        NATGateway,
        ElasticIP,
        SNATRule,
    )
}


def get_resource_type(kind: str) -> type[ExternalResource]:
    try:
        return RESOURCE_TYPES[kind]
    except KeyError:
        raise ValidationError(f"unsupported resource kind: {kind!r}") from None
