"""
Port allocation.

Turns "N logical ports at speed X from this pool" into concrete physical
port assignments, choosing a breakout mode per physical port. Allocation is
all-or-nothing: a switch's `used_ports` only changes after the whole request
has been satisfied.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Sequence

from wiregen_core.data.catalog import SwitchCatalog
from wiregen_core.errors import InsufficientPorts
from wiregen_core.models.catalog import BreakoutMode, PortSpec, SwitchProfile
from wiregen_core.models.topology import PortAssignment, SwitchInstance

logger = logging.getLogger("wiregen.allocation")


def select_breakout_mode(port: PortSpec, remaining: int, speed: str) -> BreakoutMode | None:
    """Pick the breakout mode for one port.

    Preference: a mode whose lane count equals `remaining`, else the smallest
    mode that covers `remaining`, else the mode with the most lanes. Ties keep
    catalog order. None when the port has no mode at `speed`.
    """
    modes = port.modes_at(speed)
    if not modes:
        return None
    for m in modes:
        if m.sub_port_count == remaining:
            return m
    covering = [m for m in modes if m.sub_port_count > remaining]
    if covering:
        return min(covering, key=lambda m: m.sub_port_count)
    return max(modes, key=lambda m: m.sub_port_count)


def logical_ports(assignments: Iterable[PortAssignment]) -> list[str]:
    out: list[str] = []
    for a in assignments:
        out.extend(a.logical_ports)
    return out


@contextmanager
def staged(switches: Sequence[SwitchInstance]) -> Iterator[list[SwitchInstance]]:
    """Work on scratch copies; copy port state back only if the block succeeds."""
    scratch = [s.model_copy(deep=True) for s in switches]
    yield scratch
    for orig, tmp in zip(switches, scratch):
        orig.used_ports = tmp.used_ports
        orig.assignments = tmp.assignments


class PortAllocator:
    def __init__(self, catalog: SwitchCatalog):
        self.catalog = catalog

    def allocate(
        self,
        candidates: Sequence[str],
        required: int,
        speed: str,
        profile: SwitchProfile,
        *,
        device: str | None = None,
        role: str | None = None,
    ) -> list[PortAssignment]:
        """Assign physical ports from `candidates`, in order, until `required` logical ports exist.

        Ports that cannot run at `speed` are skipped. Pure: nothing is marked used.
        """
        speed = speed.upper()
        assignments: list[PortAssignment] = []
        remaining = required
        for pid in candidates:
            if remaining <= 0:
                break
            spec = profile.port(pid)
            if spec is None:
                continue
            mode = select_breakout_mode(spec, remaining, speed)
            if mode is not None:
                if mode.sub_port_count == 1:
                    assignments.append(PortAssignment(physical_port_id=pid, speed=speed, breakout_mode=mode.mode))
                else:
                    subs = tuple(f"{pid}/{n}" for n in range(1, mode.sub_port_count + 1))
                    assignments.append(
                        PortAssignment(physical_port_id=pid, speed=speed, breakout_mode=mode.mode, sub_port_ids=subs)
                    )
                remaining -= mode.sub_port_count
            elif spec.speed == speed:
                assignments.append(PortAssignment(physical_port_id=pid, speed=speed))
                remaining -= 1
        if remaining > 0:
            raise InsufficientPorts(remaining, device=device, role=role, speed=speed)
        return assignments

    def free_ports(self, switch: SwitchInstance, role: str) -> list[str]:
        return [p for p in self.catalog.ports_for_role(switch.model, role) if switch.is_free(p)]

    def commit(self, switch: SwitchInstance, role: str, required: int, speed: str) -> list[PortAssignment]:
        """Allocate from the switch's free `role` ports and mark them used."""
        profile = self.catalog.get_profile(switch.model)
        assignments = self.allocate(
            self.free_ports(switch, role), required, speed, profile, device=switch.id, role=role
        )
        switch.commit(assignments)
        logger.debug("%s: committed %d %s port(s) at %s", switch.id, len(assignments), role, speed)
        return assignments

    def reserve(self, switch: SwitchInstance, port_ids: Sequence[str]) -> list[PortAssignment]:
        """Commit whole physical ports at their native speed."""
        profile = self.catalog.get_profile(switch.model)
        assignments = []
        for pid in port_ids:
            spec = profile.port(pid)
            if spec is None:
                raise KeyError(f"{switch.model} has no port {pid}")
            assignments.append(PortAssignment(physical_port_id=pid, speed=spec.speed))
        switch.commit(assignments)
        return assignments
