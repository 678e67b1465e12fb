"""
Helpers shared by the fabric and server planners: speed resolution, switch
instantiation and naming, loopback port selection.
"""

from __future__ import annotations

from wiregen_core.data.catalog import SwitchCatalog
from wiregen_core.models.catalog import SwitchProfile
from wiregen_core.models.request import FabricRequest
from wiregen_core.models.topology import ServerInstance, SwitchInstance

ESLAG_MAX_LEAVES = 4
LOOPBACK_PORTS = 2


def resolve_fabric_speed(req: FabricRequest, catalog: SwitchCatalog) -> str | None:
    return req.fabric_speed or catalog.default_speed(req.leaf.model, "fabric")


def resolve_server_speed(req: FabricRequest, catalog: SwitchCatalog) -> str | None:
    return req.server_speed or catalog.default_speed(req.leaf.model, "server")


def interface_name(i: int) -> str:
    """Server NIC name for the i-th connection: enp0s1, enp0s2, enp1s1, ..."""
    return f"enp{i // 2}s{i % 2 + 1}"


def server_name(index: int) -> str:
    return f"server-{index + 1}"


def leaves_spanned(mode: str, connections: int) -> int:
    """Distinct leaves one server touches under `mode`."""
    if mode == "bundled-mclag":
        return 2
    if mode == "bundled-eslag":
        return min(connections, ESLAG_MAX_LEAVES)
    return 1


def pick_loopback_ports(profile: SwitchProfile, free: list[str]) -> list[str]:
    """Last two free same-speed server ports, returned in catalog order.

    Scans from the end of the server range; the first speed bucket that
    reaches two ports wins. Empty when no such pair exists.
    """
    buckets: dict[str | None, list[str]] = {}
    free_set = set(free)
    for spec in reversed(profile.ports_for_role("server")):
        if spec.id not in free_set:
            continue
        bucket = buckets.setdefault(spec.speed, [])
        bucket.append(spec.id)
        if len(bucket) == LOOPBACK_PORTS:
            return list(reversed(bucket))
    return []


def instantiate_switches(req: FabricRequest, catalog: SwitchCatalog) -> tuple[list[SwitchInstance], list[SwitchInstance]]:
    """Create spine and leaf instances named `{short_name}-{nn}`.

    When spines and leaves share a short name, leaves continue the spine
    numbering so names stay unique.
    """
    spine_short = catalog.get_profile(req.spine.model).short_name
    leaf_short = catalog.get_profile(req.leaf.model).short_name
    spines = [
        SwitchInstance(
            id=f"{spine_short}-{i + 1:02d}",
            model=req.spine.model,
            role="spine",
            index=i,
        )
        for i in range(req.spine.count)
    ]
    offset = req.spine.count if spine_short == leaf_short else 0
    leaves = [
        SwitchInstance(
            id=f"{leaf_short}-{offset + i + 1:02d}",
            model=req.leaf.model,
            role="leaf",
            index=i,
        )
        for i in range(req.leaf.count)
    ]
    for sw in spines + leaves:
        sw.serial = req.switch_serials.get(sw.id)
    return spines, leaves


def instantiate_servers(count: int) -> list[ServerInstance]:
    return [ServerInstance(id=server_name(i), index=i) for i in range(count)]
