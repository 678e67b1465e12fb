"""
Fabric request records.

A request is caller supplied and frozen once parsed. YAML files may use the
camelCase keys of the manifest world (``fabricPortsPerLeaf``) or snake_case.
Counts are coerced but not range checked here; the topology validator
reports bad counts as findings so every problem shows up at once.
"""

from __future__ import annotations

import ipaddress
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

RedundancyMode = Literal[
    "unbundled-single-homed",
    "bundled-lag-single-homed",
    "bundled-mclag",
    "bundled-eslag",
]
MclagPairing = Literal["rotating", "fixed"]

ALLOWED_CONNECTIONS = (1, 2, 4, 8)

_MODE_ALIASES = {
    "unbundled-sh": "unbundled-single-homed",
    "unbundled": "unbundled-single-homed",
    "bundled-lag-sh": "bundled-lag-single-homed",
    "lag": "bundled-lag-single-homed",
    "mclag": "bundled-mclag",
    "eslag": "bundled-eslag",
}

DEFAULT_VLAN_START = 1000
DEFAULT_VLAN_END = 2999
DEFAULT_IPV4_SUBNET = "10.10.0.0/16"


def _normalize_speed(v):
    if v is None or v == "":
        return None
    s = str(v).strip().upper()
    if s.isdigit():
        s += "G"
    return s


class SwitchGroup(BaseModel):
    """A homogeneous group of switches of one model."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    model: str
    count: int = 1

    @field_validator("count", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return int(v)


class LeafGroup(SwitchGroup):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)
    fabric_ports_per_leaf: int = Field(
        default=4,
        validation_alias=AliasChoices("fabric_ports_per_leaf", "fabricPortsPerLeaf", "uplinks_per_leaf"),
    )
    total_server_ports: int | None = Field(
        default=None, validation_alias=AliasChoices("total_server_ports", "totalServerPorts")
    )

    @field_validator("fabric_ports_per_leaf", mode="before")
    @classmethod
    def _coerce_fpl(cls, v):
        return int(v)

    @field_validator("total_server_ports", mode="before")
    @classmethod
    def _coerce_tsp(cls, v):
        return None if v is None else int(v)


class VlanRange(BaseModel):
    """Inclusive VLAN id range."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)
    start: int = Field(validation_alias=AliasChoices("start", "from"), serialization_alias="from")
    end: int = Field(validation_alias=AliasChoices("end", "to"), serialization_alias="to")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return int(v)

    def overlaps(self, other: VlanRange) -> bool:
        return self.start <= other.end and other.start <= self.end


class IPv4Pool(BaseModel):
    """A named IPv4 namespace made of one or more subnets."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    name: str = "default"
    subnets: tuple[str, ...] = (DEFAULT_IPV4_SUBNET,)

    @field_validator("subnets", mode="before")
    @classmethod
    def _check_subnets(cls, v):
        if isinstance(v, str):
            v = [v]
        out = []
        for s in v:
            try:
                out.append(str(ipaddress.IPv4Network(str(s), strict=True)))
            except ValueError as e:
                raise ValueError(f"invalid IPv4 subnet {s!r}: {e}") from e
        return out

    def networks(self) -> list[ipaddress.IPv4Network]:
        return [ipaddress.IPv4Network(s) for s in self.subnets]


class FabricRequest(BaseModel):
    """High level description of the fabric to generate."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)
    spine: SwitchGroup
    leaf: LeafGroup
    server_count: int = Field(validation_alias=AliasChoices("server_count", "serverCount", "servers"))
    server_redundancy_mode: RedundancyMode = Field(
        default="unbundled-single-homed",
        validation_alias=AliasChoices("server_redundancy_mode", "serverRedundancyMode", "redundancy"),
    )
    connections_per_server: int = Field(
        default=1, validation_alias=AliasChoices("connections_per_server", "connectionsPerServer")
    )
    fabric_speed: str | None = Field(default=None, validation_alias=AliasChoices("fabric_speed", "fabricSpeed"))
    server_speed: str | None = Field(default=None, validation_alias=AliasChoices("server_speed", "serverSpeed"))
    mclag_pairing: MclagPairing = Field(
        default="rotating", validation_alias=AliasChoices("mclag_pairing", "mclagPairing")
    )
    vpc_loopback: bool = Field(default=True, validation_alias=AliasChoices("vpc_loopback", "vpcLoopback"))
    vlan_namespace: tuple[VlanRange, ...] = Field(
        default=(VlanRange(start=DEFAULT_VLAN_START, end=DEFAULT_VLAN_END),),
        validation_alias=AliasChoices("vlan_namespace", "vlanNamespace", "vlans"),
    )
    ipv4_namespaces: tuple[IPv4Pool, ...] = Field(
        default=(IPv4Pool(),),
        validation_alias=AliasChoices("ipv4_namespaces", "ipv4Namespaces", "ipv4_namespace"),
    )
    switch_serials: dict[str, str] = Field(
        default_factory=dict, validation_alias=AliasChoices("switch_serials", "switchSerials", "serials")
    )

    @field_validator("server_count", "connections_per_server", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return int(v)

    @field_validator("server_redundancy_mode", mode="before")
    @classmethod
    def _normalize_mode(cls, v):
        s = str(v).strip().lower()
        return _MODE_ALIASES.get(s, s)

    @field_validator("fabric_speed", "server_speed", mode="before")
    @classmethod
    def _normalize_speed(cls, v):
        return _normalize_speed(v)

    @field_validator("switch_serials", mode="before")
    @classmethod
    def _coerce_serials(cls, v):
        if v is None:
            return {}
        return {str(k): str(s) for k, s in v.items()}

    @model_validator(mode="before")
    @classmethod
    def _default_server_ports(cls, data):
        # total_server_ports follows server_count x connections_per_server when omitted
        if not isinstance(data, dict):
            return data
        leaf = data.get("leaf")
        if not isinstance(leaf, dict):
            return data
        if leaf.get("total_server_ports") is not None or leaf.get("totalServerPorts") is not None:
            return data
        servers = next((data[k] for k in ("server_count", "serverCount", "servers") if k in data), None)
        conns = next(
            (data[k] for k in ("connections_per_server", "connectionsPerServer") if k in data), 1
        )
        if servers is None:
            return data
        try:
            total = int(servers) * int(conns)
        except (TypeError, ValueError):
            return data
        return {**data, "leaf": {**leaf, "total_server_ports": total}}

    @property
    def server_ports_demand(self) -> int:
        if self.leaf.total_server_ports is not None:
            return self.leaf.total_server_ports
        return self.server_count * self.connections_per_server
