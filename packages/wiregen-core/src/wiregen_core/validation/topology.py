"""
Topology validation for fabric requests.

Runs every check against a request and the switch catalog before any port
is allocated, so a caller sees all problems at once. Each check returns a
list of findings; FAIL findings carry the name of the error class they map
to in `kind`.
"""

from __future__ import annotations

import ipaddress
import math

from wiregen_core.allocation.ports import PortAllocator
from wiregen_core.codebase.debug import spy_trace
from wiregen_core.data.catalog import SwitchCatalog, max_logical_ports
from wiregen_core.errors import InsufficientPorts
from wiregen_core.models.catalog import SwitchProfile
from wiregen_core.models.request import ALLOWED_CONNECTIONS, FabricRequest
from wiregen_core.models.topology import SwitchInstance
from wiregen_core.models.validation import Finding, ValidationResult
from wiregen_core.planning.common import (
    ESLAG_MAX_LEAVES,
    LOOPBACK_PORTS,
    instantiate_switches,
    pick_loopback_ports,
    resolve_fabric_speed,
    resolve_server_speed,
)
from wiregen_core.planning.servers import is_plannable, leaf_demand

VLAN_MIN = 1
VLAN_MAX = 4094
NEAR_LIMIT_FRACTION = 0.95


def _profiles(req: FabricRequest, catalog: SwitchCatalog) -> tuple[SwitchProfile | None, SwitchProfile | None]:
    spine = catalog.get_profile(req.spine.model) if req.spine.model in catalog else None
    leaf = catalog.get_profile(req.leaf.model) if req.leaf.model in catalog else None
    return spine, leaf


def validate_counts(req: FabricRequest, catalog: SwitchCatalog) -> list[Finding]:
    """Switch and server counts, and that both models exist in the catalog."""
    findings: list[Finding] = []
    for role, group in (("spine", req.spine), ("leaf", req.leaf)):
        if group.count < 1:
            findings.append(Finding(
                severity="FAIL",
                code=f"{role.upper()}_COUNT",
                message=f"{role} count must be at least 1, got {group.count}",
                kind="InvalidRequest",
                context={"role": role, "count": group.count},
            ))
        if group.model not in catalog:
            findings.append(Finding(
                severity="FAIL",
                code="UNKNOWN_MODEL",
                message=f"unknown {role} switch model {group.model!r}",
                kind="UnknownModel",
                context={"role": role, "model": group.model, "known": catalog.models()},
            ))
    if req.server_count < 0:
        findings.append(Finding(
            severity="FAIL",
            code="SERVER_COUNT",
            message=f"server count cannot be negative, got {req.server_count}",
            kind="InvalidRequest",
            context={"server_count": req.server_count},
        ))
    return findings


def validate_fabric_fanout(req: FabricRequest) -> list[Finding]:
    findings: list[Finding] = []
    fpl = req.leaf.fabric_ports_per_leaf
    spines = req.spine.count
    if spines < 1:
        return findings
    if fpl < spines:
        findings.append(Finding(
            severity="FAIL",
            code="FABRIC_PORTS_BELOW_SPINES",
            message=f"fabric ports per leaf ({fpl}) is less than the spine count ({spines}); every leaf must reach every spine",
            kind="UnevenFabricFanout",
            context={"fabric_ports_per_leaf": fpl, "spine_count": spines},
        ))
    elif fpl % spines:
        findings.append(Finding(
            severity="FAIL",
            code="UNEVEN_FABRIC_FANOUT",
            message=f"fabric ports per leaf ({fpl}) is not divisible by the spine count ({spines})",
            kind="UnevenFabricFanout",
            context={"fabric_ports_per_leaf": fpl, "spine_count": spines},
        ))
    return findings


def _capacity_finding(code: str, what: str, required: int, available: int, **context) -> Finding:
    shortfall = required - available
    return Finding(
        severity="FAIL",
        code=code,
        message=f"{what} requires {required} logical ports, only {available} available (shortfall {shortfall})",
        kind="CapacityExceeded",
        context={"required": required, "available": available, "shortfall": shortfall, **context},
    )


def _leaf_server_dry_run(
    req: FabricRequest, catalog: SwitchCatalog, profile: SwitchProfile, fabric_speed: str, server_speed: str, per_leaf: int
) -> Finding | None:
    # Shared fabric/server pools: replay the real allocation order on a scratch leaf.
    allocator = PortAllocator(catalog)
    leaf = SwitchInstance(id="leaf-dry-run", model=profile.model, role="leaf", index=0)
    stage = "fabric"
    try:
        allocator.commit(leaf, "fabric", req.leaf.fabric_ports_per_leaf, fabric_speed)
        if req.vpc_loopback:
            stage = "loopback"
            pair = pick_loopback_ports(profile, allocator.free_ports(leaf, "server"))
            if len(pair) < LOOPBACK_PORTS:
                raise InsufficientPorts(LOOPBACK_PORTS - len(pair), device=leaf.id, role="server")
            allocator.reserve(leaf, pair)
        stage = "server"
        allocator.commit(leaf, "server", per_leaf, server_speed)
    except InsufficientPorts as e:
        return Finding(
            severity="FAIL",
            code="LEAF_SHARED_PORT_CAPACITY",
            message=f"leaf {profile.model} runs out of ports during {stage} allocation: still need {e.shortfall} more",
            kind="CapacityExceeded",
            context={"model": profile.model, "stage": stage, "shortfall": e.shortfall},
        )
    return None


def _server_ports_per_leaf(req: FabricRequest) -> int:
    """Server ports the busiest leaf must supply.

    The even share of `server_ports_demand` is a floor; MCLAG rotation and
    ESLAG spans load some leaves harder, so the planned placement wins when
    the request can be planned at all.
    """
    leaves = req.leaf.count
    if leaves < 1:
        return 0
    per_leaf = math.ceil(req.server_ports_demand / leaves)
    if is_plannable(leaves, req):
        planned = leaf_demand(req.server_count, leaves, req)
        per_leaf = max(per_leaf, max(planned.values(), default=0))
    return per_leaf


def validate_capacity(req: FabricRequest, catalog: SwitchCatalog) -> list[Finding]:
    """Leaf fabric and server capacity, spine fabric capacity."""
    findings: list[Finding] = []
    spine, leaf = _profiles(req, catalog)
    fpl = req.leaf.fabric_ports_per_leaf
    fabric_speed = resolve_fabric_speed(req, catalog) if leaf else None

    if leaf is not None:
        fabric_pool = [p.id for p in leaf.ports_for_role("fabric")]
        available = max_logical_ports(leaf, fabric_pool, fabric_speed) if fabric_speed else 0
        if available < fpl:
            findings.append(_capacity_finding(
                "LEAF_FABRIC_CAPACITY", f"leaf {leaf.model} fabric uplinks", fpl, available,
                model=leaf.model, speed=fabric_speed,
            ))

        server_speed = resolve_server_speed(req, catalog)
        per_leaf = _server_ports_per_leaf(req)
        server_pool = [p.id for p in leaf.ports_for_role("server")]
        if req.vpc_loopback:
            reserved = pick_loopback_ports(leaf, server_pool)
            server_pool = [p for p in server_pool if p not in reserved]
        available = max_logical_ports(leaf, server_pool, server_speed) if server_speed else 0
        if available < per_leaf:
            findings.append(_capacity_finding(
                "LEAF_SERVER_CAPACITY", f"leaf {leaf.model} server attachment", per_leaf, available,
                model=leaf.model, speed=server_speed,
            ))
        elif set(fabric_pool) & set(server_pool) and fabric_speed and server_speed and per_leaf:
            dry_run = _leaf_server_dry_run(req, catalog, leaf, fabric_speed, server_speed, per_leaf)
            if dry_run is not None:
                findings.append(dry_run)
        elif available and per_leaf > available * NEAR_LIMIT_FRACTION:
            findings.append(Finding(
                severity="WARN",
                code="LEAF_SERVER_NEAR_LIMIT",
                message=f"leaf server port utilization {per_leaf / available:.1%} is near capacity limit",
                context={"required": per_leaf, "available": available},
            ))

    if spine is not None and req.spine.count > 0 and fabric_speed:
        required = math.ceil(req.leaf.count * fpl / req.spine.count)
        pool = [p.id for p in spine.ports_for_role("fabric")]
        available = max_logical_ports(spine, pool, fabric_speed)
        if available < required:
            findings.append(_capacity_finding(
                "SPINE_FABRIC_CAPACITY", f"spine {spine.model} fabric downlinks", required, available,
                model=spine.model, speed=fabric_speed,
            ))
    return findings


def validate_redundancy(req: FabricRequest) -> list[Finding]:
    findings: list[Finding] = []
    mode = req.server_redundancy_mode
    leaves = req.leaf.count
    k = req.connections_per_server

    def fail(code: str, message: str, required: int) -> None:
        findings.append(Finding(
            severity="FAIL",
            code=code,
            message=message,
            kind="InsufficientLeavesForRedundancy",
            context={"mode": mode, "required": required, "available": leaves, "connections_per_server": k},
        ))

    if mode == "bundled-mclag":
        if leaves < 2:
            fail("MCLAG_LEAF_COUNT", f"{mode} needs at least 2 leaf switches, got {leaves}", 2)
        elif leaves % 2:
            fail("MCLAG_LEAF_PAIRING", f"{mode} needs an even leaf count for pairing, got {leaves}", leaves + 1)
        if k % 2:
            fail("MCLAG_CONNECTIONS_ODD", f"{mode} needs an even number of connections per server, got {k}", 2)
    elif mode == "bundled-eslag":
        required = min(k, ESLAG_MAX_LEAVES)
        if leaves < required:
            fail("ESLAG_LEAF_COUNT", f"{mode} with {k} connections needs at least {required} leaf switches, got {leaves}", required)
    return findings


def validate_connection_count(req: FabricRequest) -> list[Finding]:
    k = req.connections_per_server
    if k in ALLOWED_CONNECTIONS:
        return []
    allowed = ", ".join(str(c) for c in ALLOWED_CONNECTIONS)
    return [Finding(
        severity="FAIL",
        code="CONNECTION_COUNT",
        message=f"invalid connection count: {k}. Must be one of: {allowed}",
        kind="InvalidConnectionCount",
        context={"connections_per_server": k, "allowed": list(ALLOWED_CONNECTIONS)},
    )]


def validate_speeds(req: FabricRequest, catalog: SwitchCatalog) -> list[Finding]:
    """Fabric speed on both fabric pools; server speed on the leaf server pool."""
    findings: list[Finding] = []
    spine, leaf = _profiles(req, catalog)
    if leaf is None:
        return findings
    fabric_speed = resolve_fabric_speed(req, catalog)
    server_speed = resolve_server_speed(req, catalog)
    checks = [("leaf", leaf, "fabric", fabric_speed), ("leaf", leaf, "server", server_speed)]
    if spine is not None:
        checks.append(("spine", spine, "fabric", fabric_speed))
    for role, profile, port_role, speed in checks:
        ports = profile.ports_for_role(port_role)
        if not ports:
            findings.append(Finding(
                severity="FAIL",
                code=f"{role.upper()}_NO_{port_role.upper()}_PORTS",
                message=f"{role} model {profile.model} has no {port_role} ports",
                kind="CapacityExceeded",
                context={"model": profile.model, "port_role": port_role},
            ))
            continue
        if speed and not any(p.logical_capacity(speed) for p in ports):
            offered = sorted({m.sub_port_speed for p in ports for m in p.breakout_modes} | {p.speed for p in ports})
            findings.append(Finding(
                severity="FAIL",
                code=f"{port_role.upper()}_SPEED_UNSUPPORTED",
                message=f"{role} model {profile.model} cannot run {port_role} ports at {speed} (offers {', '.join(offered)})",
                kind="InvalidRequest",
                context={"model": profile.model, "speed": speed, "offered": offered},
            ))
    return findings


def validate_namespaces(req: FabricRequest) -> list[Finding]:
    findings: list[Finding] = []
    ranges = list(req.vlan_namespace)
    if not ranges:
        findings.append(Finding(
            severity="FAIL",
            code="VLAN_NAMESPACE_EMPTY",
            message="VLAN namespace needs at least one range",
            kind="InvalidRequest",
        ))
    for r in ranges:
        if not (VLAN_MIN <= r.start <= r.end <= VLAN_MAX):
            findings.append(Finding(
                severity="FAIL",
                code="VLAN_RANGE_INVALID",
                message=f"VLAN range {r.start}-{r.end} must satisfy {VLAN_MIN} <= from <= to <= {VLAN_MAX}",
                kind="InvalidRequest",
                context={"from": r.start, "to": r.end},
            ))
    for i, a in enumerate(ranges):
        for b in ranges[i + 1 :]:
            if a.overlaps(b):
                findings.append(Finding(
                    severity="FAIL",
                    code="VLAN_RANGE_OVERLAP",
                    message=f"VLAN ranges {a.start}-{a.end} and {b.start}-{b.end} overlap",
                    kind="InvalidRequest",
                    context={"a": [a.start, a.end], "b": [b.start, b.end]},
                ))

    names = [p.name for p in req.ipv4_namespaces]
    for name in sorted({n for n in names if names.count(n) > 1}):
        findings.append(Finding(
            severity="FAIL",
            code="IPV4_NAMESPACE_DUPLICATE",
            message=f"IPv4 namespace {name!r} is declared more than once",
            kind="InvalidRequest",
            context={"name": name},
        ))
    nets: list[tuple[str, ipaddress.IPv4Network]] = [
        (pool.name, net) for pool in req.ipv4_namespaces for net in pool.networks()
    ]
    for i, (name_a, a) in enumerate(nets):
        for name_b, b in nets[i + 1 :]:
            if a.overlaps(b):
                findings.append(Finding(
                    severity="FAIL",
                    code="IPV4_SUBNET_OVERLAP",
                    message=f"IPv4 subnet {a} ({name_a}) overlaps {b} ({name_b})",
                    kind="InvalidRequest",
                    context={"a": str(a), "b": str(b)},
                ))
    return findings


def validate_serials(req: FabricRequest, catalog: SwitchCatalog) -> list[Finding]:
    if not req.switch_serials:
        return []
    spine, leaf = _profiles(req, catalog)
    if spine is None or leaf is None:
        return []
    spines, leaves = instantiate_switches(req, catalog)
    names = {sw.id for sw in spines + leaves}
    return [
        Finding(
            severity="WARN",
            code="SERIAL_UNMATCHED",
            message=f"serial given for {name!r} but no switch has that name",
            context={"name": name, "switches": sorted(names)},
        )
        for name in req.switch_serials
        if name not in names
    ]


class TopologyValidator:
    def __init__(self, catalog: SwitchCatalog):
        self.catalog = catalog

    @spy_trace
    def validate(self, req: FabricRequest) -> ValidationResult:
        """Run all checks; never raises for request problems."""
        findings: list[Finding] = []
        findings.extend(validate_counts(req, self.catalog))
        findings.extend(validate_fabric_fanout(req))
        findings.extend(validate_capacity(req, self.catalog))
        findings.extend(validate_redundancy(req))
        findings.extend(validate_connection_count(req))
        findings.extend(validate_speeds(req, self.catalog))
        findings.extend(validate_namespaces(req))
        findings.extend(validate_serials(req, self.catalog))
        return ValidationResult(findings=findings)
