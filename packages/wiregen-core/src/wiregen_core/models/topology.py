from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SwitchRole = Literal["spine", "leaf"]
LinkKind = Literal["fabric", "server", "loopback"]


class PortAssignment(BaseModel):
    """One physical port committed at a given speed, possibly broken out."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    physical_port_id: str
    speed: str
    breakout_mode: str | None = None
    sub_port_ids: tuple[str, ...] = ()

    @property
    def logical_ports(self) -> list[str]:
        return list(self.sub_port_ids) if self.sub_port_ids else [self.physical_port_id]


class Endpoint(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)
    device_id: str
    port_id: str

    @property
    def ref(self) -> str:
        return f"{self.device_id}/{self.port_id}"


class LinkRecord(BaseModel):
    """A single point-to-point link; links sharing a group_id form one Connection."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    kind: LinkKind
    endpoint_a: Endpoint
    endpoint_b: Endpoint
    group_id: str
    relation: str
    speed: str | None = None


class SwitchInstance(BaseModel):
    """A concrete switch in the generated fabric.

    `used_ports` only grows during a run; the allocator is the only writer.
    """

    model_config = ConfigDict(extra="ignore")
    id: str
    model: str
    role: SwitchRole
    index: int
    serial: str | None = None
    used_ports: set[str] = Field(default_factory=set)
    assignments: list[PortAssignment] = Field(default_factory=list)

    def commit(self, assignments: list[PortAssignment]) -> None:
        ids = [a.physical_port_id for a in assignments]
        clash = self.used_ports.intersection(ids)
        if clash or len(set(ids)) != len(ids):
            raise ValueError(f"{self.id}: ports already committed: {sorted(clash) or ids}")
        self.used_ports.update(ids)
        self.assignments.extend(assignments)

    def is_free(self, port_id: str) -> bool:
        return port_id not in self.used_ports


class ServerInstance(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    index: int
    attached_leaves: list[str] = Field(default_factory=list)
    interface_names: list[str] = Field(default_factory=list)
