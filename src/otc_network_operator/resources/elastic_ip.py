"""Elastic IP adapter (VPC API v1 public IPs).

Every field is fixed at creation. Drift compares the whole desired shape
(address type, bandwidth size and share type, and the address when one was
requested) so a changed spec surfaces as an immutable-field failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..constants import KIND_ELASTIC_IP
from ..errors import ValidationError
from ..managed.fields import FieldDef
from ..managed.lifecycle import ExternalResource
from ..managed.resource import Condition
from ..services.otc.client import SERVICE_VPC

IP_TYPES = {"BGP": "5_bgp", "Mail": "5_mailbgp"}
SHARE_TYPES = {"Dedicated": "PER", "Shared": "WHOLE"}

BANDWIDTH_NAME = "otc-network-operator"


def ip_type(value: str) -> str:
    return IP_TYPES.get(value, value)


def share_type(value: str) -> str:
    return SHARE_TYPES.get(value, value)


@dataclass
class PublicIP:
    type: str
    ip_address: str | None = None


@dataclass
class BandwidthConfig:
    size: int
    share_type: str


@dataclass
class ElasticIPParameters:
    public_ip: PublicIP = field(metadata={"nested": PublicIP})
    bandwidth: BandwidthConfig = field(metadata={"nested": BandwidthConfig})


@dataclass
class ElasticIPObservation:
    id: str = ""
    status: str = ""
    public_ip_type: str = ""
    ip_address: str = ""
    private_ip_address: str = ""
    port_id: str = ""
    bandwidth_id: str = ""
    bandwidth_size: int = 0
    bandwidth_share_type: str = ""


class ElasticIP(ExternalResource[ElasticIPParameters, ElasticIPObservation]):
    kind = KIND_ELASTIC_IP
    parameters_type = ElasticIPParameters
    observation_type = ElasticIPObservation
    fields = (
        FieldDef("public_ip.type", immutable=True, to_provider=ip_type),
        FieldDef("public_ip.ip_address", observed="ip_address", optional=True, immutable=True),
        FieldDef("bandwidth.size", immutable=True),
        FieldDef("bandwidth.share_type", immutable=True, to_provider=share_type),
    )
    status_conditions = {
        "ACTIVE": Condition.AVAILABLE,
        "DOWN": Condition.AVAILABLE,
        "ERROR": Condition.UNAVAILABLE,
    }
    default_condition = Condition.CREATING
    immutable = True

    @classmethod
    def validate(cls, params: ElasticIPParameters) -> None:
        if ip_type(params.public_ip.type) not in IP_TYPES.values():
            raise ValidationError(
                f"must be one of {', '.join(IP_TYPES)}", field="publicIp.type"
            )
        if share_type(params.bandwidth.share_type) not in SHARE_TYPES.values():
            raise ValidationError(
                f"must be one of {', '.join(SHARE_TYPES)}", field="bandwidth.shareType"
            )
        if params.bandwidth.size < 1:
            raise ValidationError("must be at least 1", field="bandwidth.size")

    def get(self, external_name: str, params: ElasticIPParameters) -> ElasticIPObservation:
        eip = self.session.get(SERVICE_VPC, "v1", f"publicips/{external_name}")["publicip"]
        return ElasticIPObservation(
            id=eip["id"],
            status=eip.get("status", ""),
            public_ip_type=eip.get("type", ""),
            ip_address=eip.get("public_ip_address") or "",
            private_ip_address=eip.get("private_ip_address") or "",
            port_id=eip.get("port_id") or "",
            bandwidth_id=eip.get("bandwidth_id") or "",
            bandwidth_size=eip.get("bandwidth_size") or 0,
            bandwidth_share_type=eip.get("bandwidth_share_type") or "",
        )

    def create_external(self, params: ElasticIPParameters) -> str:
        publicip: dict[str, Any] = {"type": ip_type(params.public_ip.type)}
        if params.public_ip.ip_address is not None:
            publicip["ip_address"] = params.public_ip.ip_address
        payload = {
            "publicip": publicip,
            "bandwidth": {
                "name": BANDWIDTH_NAME,
                "size": params.bandwidth.size,
                "share_type": share_type(params.bandwidth.share_type),
            },
        }
        body = self.session.post(SERVICE_VPC, "v1", "publicips", json=payload)
        return body["publicip"]["id"]

    def delete_external(self, external_name: str, params: ElasticIPParameters) -> None:
        self.session.delete(SERVICE_VPC, "v1", f"publicips/{external_name}")
