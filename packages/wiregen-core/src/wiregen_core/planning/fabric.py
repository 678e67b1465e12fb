"""
Spine-leaf fabric link generation.

Every leaf connects to every spine with `fabric_ports_per_leaf / spine_count`
links. Port slices are fixed by position so the same request always yields
the same wiring: leaf i takes spine ports [i*L, (i+1)*L) and spine j takes
leaf ports [j*L, (j+1)*L), where L is links per spine.
"""

from __future__ import annotations

import logging

from wiregen_core.allocation.ports import PortAllocator, logical_ports, staged
from wiregen_core.codebase.debug import spy_trace
from wiregen_core.data.catalog import SwitchCatalog
from wiregen_core.errors import InsufficientPorts, UnevenFabricFanout
from wiregen_core.models.request import FabricRequest
from wiregen_core.models.topology import Endpoint, LinkRecord, SwitchInstance
from wiregen_core.planning.common import LOOPBACK_PORTS, pick_loopback_ports, resolve_fabric_speed

logger = logging.getLogger("wiregen.planning")


def links_per_spine(fabric_ports_per_leaf: int, spine_count: int) -> int:
    if spine_count < 1 or fabric_ports_per_leaf < spine_count or fabric_ports_per_leaf % spine_count:
        raise UnevenFabricFanout(fabric_ports_per_leaf, spine_count)
    return fabric_ports_per_leaf // spine_count


def fabric_group_id(spine: SwitchInstance, leaf: SwitchInstance) -> str:
    return f"{spine.id}--fabric--{leaf.id}"


def loopback_group_id(leaf: SwitchInstance) -> str:
    return f"{leaf.id}--vpc-loopback"


class FabricLinkGenerator:
    def __init__(self, catalog: SwitchCatalog, allocator: PortAllocator | None = None):
        self.catalog = catalog
        self.allocator = allocator or PortAllocator(catalog)

    @spy_trace
    def generate_fabric_links(
        self,
        leaves: list[SwitchInstance],
        spines: list[SwitchInstance],
        req: FabricRequest,
    ) -> list[LinkRecord]:
        fpl = req.leaf.fabric_ports_per_leaf
        lps = links_per_spine(fpl, len(spines))
        speed = resolve_fabric_speed(req, self.catalog)
        if speed is None:
            raise InsufficientPorts(fpl, device=leaves[0].id if leaves else None, role="fabric")

        with staged(leaves + spines) as scratch:
            s_leaves, s_spines = scratch[: len(leaves)], scratch[len(leaves) :]
            leaf_ports = [logical_ports(self.allocator.commit(leaf, "fabric", fpl, speed)) for leaf in s_leaves]
            spine_ports = [
                logical_ports(self.allocator.commit(spine, "fabric", len(leaves) * lps, speed)) for spine in s_spines
            ]

        links: list[LinkRecord] = []
        for i, leaf in enumerate(leaves):
            for j, spine in enumerate(spines):
                group = fabric_group_id(spine, leaf)
                spine_slice = spine_ports[j][i * lps : (i + 1) * lps]
                leaf_slice = leaf_ports[i][j * lps : (j + 1) * lps]
                for sp, lp in zip(spine_slice, leaf_slice):
                    links.append(
                        LinkRecord(
                            kind="fabric",
                            endpoint_a=Endpoint(device_id=spine.id, port_id=sp),
                            endpoint_b=Endpoint(device_id=leaf.id, port_id=lp),
                            group_id=group,
                            relation="fabric",
                            speed=speed,
                        )
                    )
        logger.info("generated %d fabric links (%d per spine/leaf pair at %s)", len(links), lps, speed)
        return links

    @spy_trace
    def generate_loopbacks(self, leaves: list[SwitchInstance]) -> list[LinkRecord]:
        """One loopback link per leaf over its last two free server ports."""
        with staged(leaves) as scratch:
            picks = []
            for leaf in scratch:
                profile = self.catalog.get_profile(leaf.model)
                pair = pick_loopback_ports(profile, self.allocator.free_ports(leaf, "server"))
                if len(pair) < LOOPBACK_PORTS:
                    raise InsufficientPorts(LOOPBACK_PORTS - len(pair), device=leaf.id, role="server")
                self.allocator.reserve(leaf, pair)
                picks.append(pair)

        links = []
        for leaf, (a, b) in zip(leaves, picks):
            speed = self.catalog.port(leaf.model, a).speed
            links.append(
                LinkRecord(
                    kind="loopback",
                    endpoint_a=Endpoint(device_id=leaf.id, port_id=a),
                    endpoint_b=Endpoint(device_id=leaf.id, port_id=b),
                    group_id=loopback_group_id(leaf),
                    relation="vpc-loopback",
                    speed=speed,
                )
            )
        return links
