"""
Error taxonomy for fabric generation.

Validation problems are collected into a single InvalidRequest so the caller
can show every problem at once. Allocation and planning errors are raised
immediately and leave no committed port state behind.

None of these are retryable with the same input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from wiregen_core.models.validation import Finding

ALLOWED_CONNECTION_COUNTS = (1, 2, 4, 8)


class WiregenError(Exception):
    """Base class for all wiregen exceptions."""


class UnknownModel(WiregenError):
    """Raised when a switch model is not present in the catalog."""

    def __init__(self, model: str, known: Iterable[str] = ()):
        self.model = model
        known = list(known)
        message = f"unknown switch model {model!r}"
        if known:
            message += f" (known: {', '.join(known)})"
        super().__init__(message)


class InvalidRequest(WiregenError, ValueError):
    """Raised when a fabric request fails validation.

    Carries every FAIL finding produced by the validator.
    """

    def __init__(self, message: str, findings: list[Finding] | None = None):
        self.findings = list(findings or [])
        super().__init__(message)

    @classmethod
    def from_findings(cls, findings: list[Finding]) -> InvalidRequest:
        messages = "; ".join(f.message for f in findings)
        return cls(f"invalid fabric request: {messages}", findings)

    @property
    def kinds(self) -> set[str]:
        return {f.kind for f in self.findings if f.kind}


class InvalidConnectionCount(InvalidRequest):
    """Raised when connections per server is not one of 1, 2, 4 or 8."""

    def __init__(self, count: int):
        self.count = count
        allowed = ", ".join(str(c) for c in ALLOWED_CONNECTION_COUNTS)
        super().__init__(f"invalid connection count: {count}. Must be one of: {allowed}")


class CapacityExceeded(WiregenError):
    """Raised when a switch cannot offer enough logical ports."""

    def __init__(self, message: str, shortfall: int):
        self.shortfall = shortfall
        super().__init__(message)


class UnevenFabricFanout(WiregenError):
    """Raised when uplinks per leaf cannot be spread evenly across spines."""

    def __init__(self, fabric_ports_per_leaf: int, spine_count: int):
        self.fabric_ports_per_leaf = fabric_ports_per_leaf
        self.spine_count = spine_count
        super().__init__(
            f"fabric ports per leaf ({fabric_ports_per_leaf}) must be a positive multiple "
            f"of the spine count ({spine_count})"
        )


class InsufficientLeavesForRedundancy(WiregenError):
    """Raised when the leaf count is too small for the server redundancy mode."""

    def __init__(self, mode: str, required: int, available: int):
        self.mode = mode
        self.required = required
        self.available = available
        super().__init__(f"{mode} needs at least {required} leaf switches, got {available}")


class InsufficientPorts(WiregenError):
    """Raised when a candidate port pool runs out before the requirement is met."""

    def __init__(self, shortfall: int, device: str | None = None, role: str | None = None, speed: str | None = None):
        self.shortfall = shortfall
        self.device = device
        self.role = role
        self.speed = speed
        where = ""
        if device:
            where = f" on {device}"
            if role:
                where += f" ({role} ports"
                where += f" at {speed})" if speed else ")"
        super().__init__(f"not enough ports available{where}. Still need {shortfall} more ports.")
