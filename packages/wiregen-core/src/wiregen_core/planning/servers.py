"""
Server attachment planning.

Decides which leaves each server connects to under its redundancy mode,
then commits leaf server ports (one allocation per leaf) and hands the
resulting logical ports out to servers in order.
"""

from __future__ import annotations

import logging
from collections import Counter

from wiregen_core.allocation.ports import PortAllocator, logical_ports, staged
from wiregen_core.codebase.debug import spy_trace
from wiregen_core.data.catalog import SwitchCatalog
from wiregen_core.errors import (
    InsufficientLeavesForRedundancy,
    InsufficientPorts,
    InvalidConnectionCount,
    InvalidRequest,
    WiregenError,
)
from wiregen_core.models.request import ALLOWED_CONNECTIONS, FabricRequest
from wiregen_core.models.topology import Endpoint, LinkRecord, ServerInstance, SwitchInstance
from wiregen_core.planning.common import (
    ESLAG_MAX_LEAVES,
    instantiate_servers,
    interface_name,
    resolve_server_speed,
)

logger = logging.getLogger("wiregen.planning")

RELATIONS = {
    "unbundled-single-homed": "unbundled",
    "bundled-lag-single-homed": "bundled",
    "bundled-mclag": "mclag",
    "bundled-eslag": "eslag",
}


def distribute_servers(server_count: int, leaf_count: int) -> list[int]:
    """Servers per leaf; the first `remainder` leaves take one extra."""
    if leaf_count < 1:
        raise InsufficientLeavesForRedundancy("server attachment", 1, leaf_count)
    base, remainder = divmod(server_count, leaf_count)
    return [base + 1 if i < remainder else base for i in range(leaf_count)]


def check_connection_count(k: int) -> None:
    if k not in ALLOWED_CONNECTIONS:
        raise InvalidConnectionCount(k)


def mclag_pair(server_index: int, leaf_count: int, pairing: str) -> tuple[int, int]:
    if pairing == "fixed":
        p = server_index % (leaf_count // 2)
        return 2 * p, 2 * p + 1
    s = server_index % (leaf_count - 1)
    return s, s + 1


def leaf_plan(server_index: int, leaf_count: int, req: FabricRequest) -> list[int]:
    """Leaf index for each of one server's connections, in interface order."""
    mode = req.server_redundancy_mode
    k = req.connections_per_server
    if mode == "bundled-mclag":
        pair = mclag_pair(server_index, leaf_count, req.mclag_pairing)
        return [pair[m % 2] for m in range(k)]
    start = server_index % leaf_count
    if mode == "bundled-eslag":
        per_leaf = k // min(k, ESLAG_MAX_LEAVES)
        return [(start + m // per_leaf) % leaf_count for m in range(k)]
    return [start] * k


def check_leaves(leaf_count: int, req: FabricRequest) -> None:
    mode = req.server_redundancy_mode
    k = req.connections_per_server
    if mode == "bundled-mclag":
        if leaf_count < 2:
            raise InsufficientLeavesForRedundancy(mode, 2, leaf_count)
        if k % 2:
            raise InvalidRequest(f"{mode} needs an even number of connections per server, got {k}")
    elif mode == "bundled-eslag":
        required = min(k, ESLAG_MAX_LEAVES)
        if leaf_count < required:
            raise InsufficientLeavesForRedundancy(mode, required, leaf_count)
    elif leaf_count < 1:
        raise InsufficientLeavesForRedundancy(mode, 1, leaf_count)


def leaf_demand(server_count: int, leaf_count: int, req: FabricRequest) -> Counter:
    """Server ports each leaf index must supply for the whole server set."""
    return Counter(i for s in range(server_count) for i in leaf_plan(s, leaf_count, req))


def is_plannable(leaf_count: int, req: FabricRequest) -> bool:
    """True when the connection count and leaf count admit a server plan."""
    if req.server_count < 0 or req.connections_per_server not in ALLOWED_CONNECTIONS:
        return False
    try:
        check_leaves(leaf_count, req)
    except WiregenError:
        return False
    return True


class ServerAttachmentPlanner:
    def __init__(self, catalog: SwitchCatalog, allocator: PortAllocator | None = None):
        self.catalog = catalog
        self.allocator = allocator or PortAllocator(catalog)

    @spy_trace
    def plan_servers(
        self,
        server_count: int,
        leaves: list[SwitchInstance],
        req: FabricRequest,
    ) -> tuple[list[ServerInstance], list[LinkRecord]]:
        k = req.connections_per_server
        check_connection_count(k)
        check_leaves(len(leaves), req)

        servers = instantiate_servers(server_count)
        plans = [leaf_plan(s.index, len(leaves), req) for s in servers]
        if not servers:
            return servers, []

        speed = resolve_server_speed(req, self.catalog)
        if speed is None:
            raise InsufficientPorts(server_count * k, device=leaves[0].id, role="server")

        demand = leaf_demand(server_count, len(leaves), req)
        pools: dict[int, list[str]] = {}
        with staged(leaves) as scratch:
            for i, leaf in enumerate(scratch):
                if demand[i]:
                    pools[i] = logical_ports(self.allocator.commit(leaf, "server", demand[i], speed))
        cursor = Counter()

        relation = RELATIONS[req.server_redundancy_mode]
        links: list[LinkRecord] = []
        for server, plan in zip(servers, plans):
            members: list[tuple[str, SwitchInstance, str]] = []
            for m, leaf_idx in enumerate(plan):
                port = pools[leaf_idx][cursor[leaf_idx]]
                cursor[leaf_idx] += 1
                members.append((interface_name(m), leaves[leaf_idx], port))
                server.interface_names.append(interface_name(m))
                if leaves[leaf_idx].id not in server.attached_leaves:
                    server.attached_leaves.append(leaves[leaf_idx].id)
            for iface, leaf, port in members:
                links.append(
                    LinkRecord(
                        kind="server",
                        endpoint_a=Endpoint(device_id=server.id, port_id=iface),
                        endpoint_b=Endpoint(device_id=leaf.id, port_id=port),
                        group_id=self.group_id(server, relation, server.attached_leaves, iface, k),
                        relation=relation,
                        speed=speed,
                    )
                )
        logger.info("attached %d servers with %d links (%s)", len(servers), len(links), relation)
        return servers, links

    @staticmethod
    def group_id(server: ServerInstance, relation: str, leaf_ids: list[str], iface: str, k: int) -> str:
        name = f"{server.id}--{relation}--{'--'.join(leaf_ids)}"
        if relation == "unbundled" and k > 1:
            name += f"--{iface}"
        return name
