"""
Manifest emission.

Converts the planned switches, links and servers into the ordered list of
wiring resources: VLANNamespace, IPv4Namespace(s), Switch, Connection, Server.
Connections are one per link group, in the order the groups were first seen.
"""

from __future__ import annotations

from typing import Any

from wiregen_core.codebase.debug import spy_trace
from wiregen_core.data.catalog import SwitchCatalog
from wiregen_core.models.catalog import parse_breakout
from wiregen_core.models.manifest import VPC_API, WIRING_API, Manifest, ManifestMetadata
from wiregen_core.models.request import FabricRequest
from wiregen_core.models.topology import LinkRecord, ServerInstance, SwitchInstance

SWITCH_ROLES = {"spine": "spine", "leaf": "server-leaf"}
CONNECTION_KEYS = {
    "fabric": "fabric",
    "vpc-loopback": "vpcLoopback",
    "unbundled": "unbundled",
    "bundled": "bundled",
    "mclag": "mclag",
    "eslag": "eslag",
}


def _port(ref: str) -> dict[str, str]:
    return {"port": ref}


def _manifest(kind: str, name: str, spec: dict[str, Any], api_version: str = WIRING_API) -> Manifest:
    return Manifest(api_version=api_version, kind=kind, metadata=ManifestMetadata(name=name), spec=spec)


class ManifestEmitter:
    def __init__(self, catalog: SwitchCatalog):
        self.catalog = catalog

    @spy_trace
    def emit(
        self,
        req: FabricRequest,
        switches: list[SwitchInstance],
        links: list[LinkRecord],
        servers: list[ServerInstance],
    ) -> list[Manifest]:
        manifests = [self.vlan_namespace(req)]
        manifests.extend(self.ipv4_namespaces(req))
        manifests.extend(self.switch(sw) for sw in switches)
        manifests.extend(self.connections(links))
        manifests.extend(self.server(s) for s in servers)
        return manifests

    def vlan_namespace(self, req: FabricRequest) -> Manifest:
        ranges = [r.model_dump(by_alias=True) for r in req.vlan_namespace]
        return _manifest("VLANNamespace", "default", {"ranges": ranges})

    def ipv4_namespaces(self, req: FabricRequest) -> list[Manifest]:
        return [
            _manifest("IPv4Namespace", pool.name, {"subnets": list(pool.subnets)}, api_version=VPC_API)
            for pool in req.ipv4_namespaces
        ]

    def switch(self, sw: SwitchInstance) -> Manifest:
        spec: dict[str, Any] = {
            "profile": sw.model,
            "role": SWITCH_ROLES[sw.role],
            "description": f"{sw.role}-{sw.index + 1}",
        }
        if sw.serial:
            spec["boot"] = {"serial": sw.serial}
        breakouts, speeds = self.port_overrides(sw)
        if breakouts:
            spec["portBreakouts"] = breakouts
        if speeds:
            spec["portSpeeds"] = speeds
        return _manifest("Switch", sw.id, spec)

    def port_overrides(self, sw: SwitchInstance) -> tuple[dict[str, str], dict[str, str]]:
        """Non-default breakouts (multi-lane) and speeds (single-lane) committed on a switch."""
        breakouts: dict[str, str] = {}
        speeds: dict[str, str] = {}
        for a in sw.assignments:
            if not a.breakout_mode:
                continue
            if a.breakout_mode == self.catalog.port(sw.model, a.physical_port_id).default_breakout:
                continue
            count, speed = parse_breakout(a.breakout_mode)
            if count > 1:
                breakouts[a.physical_port_id] = a.breakout_mode
            else:
                speeds[a.physical_port_id] = speed
        return breakouts, speeds

    def connections(self, links: list[LinkRecord]) -> list[Manifest]:
        groups: dict[str, list[LinkRecord]] = {}
        for link in links:
            groups.setdefault(link.group_id, []).append(link)
        return [self.connection(name, members) for name, members in groups.items()]

    def connection(self, name: str, members: list[LinkRecord]) -> Manifest:
        relation = members[0].relation
        key = CONNECTION_KEYS[relation]
        if relation == "fabric":
            body = {"links": [
                {"spine": _port(l.endpoint_a.ref), "leaf": _port(l.endpoint_b.ref)} for l in members
            ]}
        elif relation == "vpc-loopback":
            body = {"links": [
                {"switch1": _port(l.endpoint_a.ref), "switch2": _port(l.endpoint_b.ref)} for l in members
            ]}
        elif relation == "unbundled":
            l = members[0]
            body = {"link": {"server": _port(l.endpoint_a.ref), "switch": _port(l.endpoint_b.ref)}}
        else:
            body = {"links": [
                {"server": _port(l.endpoint_a.ref), "switch": _port(l.endpoint_b.ref)} for l in members
            ]}
        return _manifest("Connection", name, {key: body})

    def server(self, server: ServerInstance) -> Manifest:
        leaves = ", ".join(server.attached_leaves) or "no leaves"
        return _manifest("Server", server.id, {"description": f"{server.id} attached to {leaves}"})
