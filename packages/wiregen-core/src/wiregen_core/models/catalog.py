"""
Switch catalog records.

Raw YAML records (`SwitchProfileRec`, `PortGroupRec`) are parsed with the
same pydantic conventions as every other record in the project and are then
resolved into frozen `SwitchProfile`/`PortSpec` values by the catalog loader.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

PortRole = Literal["management", "fabric", "server"]

_BREAKOUT_RE = re.compile(r"^\s*(\d+)\s*x\s*(\d+(?:\.\d+)?[GM])\s*$", re.IGNORECASE)
_RANGE_RE = re.compile(r"^(.*?)(\d+)-(\d+)$")
_SHORT_NAME_RE = re.compile(r"^([a-z]*\d+)")


def parse_breakout(mode: str) -> tuple[int, str]:
    """Split a breakout string like ``"4x25G"`` into ``(4, "25G")``."""
    m = _BREAKOUT_RE.match(mode)
    if not m:
        raise ValueError(f"invalid breakout mode {mode!r}, expected '<count>x<speed>' such as '4x25G'")
    count = int(m.group(1))
    if count < 1:
        raise ValueError(f"breakout mode {mode!r} must have at least one lane")
    return count, m.group(2).upper()


def expand_port_ids(spec: str) -> list[str]:
    """Expand compact port ids.

    ``"E1/1-3"`` -> ``["E1/1", "E1/2", "E1/3"]``; comma separated lists are
    expanded piecewise, plain ids pass through.
    """
    ids: list[str] = []
    for part in (p.strip() for p in spec.split(",")):
        if not part:
            continue
        m = _RANGE_RE.match(part)
        if not m:
            ids.append(part)
            continue
        prefix, lo, hi = m.group(1), int(m.group(2)), int(m.group(3))
        if hi < lo:
            raise ValueError(f"invalid port range {part!r}: end is before start")
        ids.extend(f"{prefix}{n}" for n in range(lo, hi + 1))
    return ids


def derive_short_name(model: str) -> str:
    """Short label used for switch names: ``dell-s5248f-on`` -> ``s5248``."""
    tokens = model.lower().split("-")
    for token in tokens[1:] + tokens[:1]:
        m = _SHORT_NAME_RE.match(token)
        if m:
            return m.group(1)
    return tokens[0]


class BreakoutMode(BaseModel):
    """One way of running a physical port, e.g. ``4x25G``."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    mode: str
    sub_port_count: int = Field(ge=1)
    sub_port_speed: str

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, v):
        if isinstance(v, str):
            count, speed = parse_breakout(v)
            return {"mode": f"{count}x{speed}", "sub_port_count": count, "sub_port_speed": speed}
        return v

    def __str__(self) -> str:
        return self.mode


class _PortTraits(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)
    roles: tuple[PortRole, ...] = Field(validation_alias=AliasChoices("roles", "role"))
    base_speed: str | None = Field(default=None, validation_alias=AliasChoices("base_speed", "speed"))
    breakout_modes: tuple[BreakoutMode, ...] = Field(
        default=(),
        validation_alias=AliasChoices("breakout_modes", "breakouts", "supported_speeds"),
    )
    default_breakout: str | None = Field(
        default=None, validation_alias=AliasChoices("default_breakout", "default_speed")
    )

    @field_validator("roles", mode="before")
    @classmethod
    def _coerce_roles(cls, v):
        if isinstance(v, str):
            v = [v]
        return [str(r).lower() for r in v]

    @field_validator("base_speed", mode="before")
    @classmethod
    def _coerce_speed(cls, v):
        return None if v is None else str(v).upper()

    @field_validator("default_breakout", mode="before")
    @classmethod
    def _normalize_default(cls, v):
        if v is None:
            return None
        count, speed = parse_breakout(str(v))
        return f"{count}x{speed}"

    @model_validator(mode="after")
    def _check_speeds(self):
        modes = [m.mode for m in self.breakout_modes]
        if self.default_breakout is not None and modes and self.default_breakout not in modes:
            raise ValueError(f"default breakout {self.default_breakout} is not one of {modes}")
        if self.speed is None:
            raise ValueError("port needs a base_speed, a default breakout or a single-lane breakout mode")
        return self

    @property
    def speed(self) -> str | None:
        """Native speed of the physical port."""
        if self.base_speed:
            return self.base_speed
        if self.default_breakout:
            count, speed = parse_breakout(self.default_breakout)
            if count == 1:
                return speed
        for m in self.breakout_modes:
            if m.sub_port_count == 1:
                return m.sub_port_speed
        return None

    def modes_at(self, speed: str) -> list[BreakoutMode]:
        speed = speed.upper()
        return [m for m in self.breakout_modes if m.sub_port_speed == speed]

    def logical_capacity(self, speed: str) -> int:
        """Most logical ports this physical port can offer at `speed`."""
        modes = self.modes_at(speed)
        if modes:
            return max(m.sub_port_count for m in modes)
        return 1 if self.speed == speed.upper() else 0


class PortSpec(_PortTraits):
    """A single physical port on a switch model."""

    id: str

    @property
    def role(self) -> PortRole:
        return self.roles[0]

    def has_role(self, role: str) -> bool:
        return role in self.roles


class PortGroupRec(_PortTraits):
    """A run of identical ports declared with a compact id range."""

    ids: str = Field(validation_alias=AliasChoices("ids", "id", "range"))

    def expand(self) -> list[PortSpec]:
        traits = self.model_dump(exclude={"ids"})
        return [PortSpec(id=pid, **traits) for pid in expand_port_ids(self.ids)]


class SwitchProfileRec(BaseModel):
    """Switch profile as written in catalog YAML."""

    model_config = ConfigDict(extra="ignore")
    model: str
    name: str | None = None
    short_name: str | None = None
    inherits: str | None = Field(default=None, validation_alias=AliasChoices("inherits", "use_profile_from"))
    ports: list[PortSpec] = Field(default_factory=list)
    port_groups: list[PortGroupRec] = Field(default_factory=list)

    def own_ports(self) -> list[PortSpec]:
        out = list(self.ports)
        for group in self.port_groups:
            out.extend(group.expand())
        return out


class CatalogFileRec(BaseModel):
    model_config = ConfigDict(extra="ignore")
    switch_profiles: list[SwitchProfileRec]


class SwitchProfile(BaseModel):
    """Fully resolved, immutable switch profile."""

    model_config = ConfigDict(extra="ignore", frozen=True)
    model: str
    name: str
    short_name: str
    ports: tuple[PortSpec, ...]

    @model_validator(mode="after")
    def _unique_ports(self):
        seen: set[str] = set()
        for p in self.ports:
            if p.id in seen:
                raise ValueError(f"duplicate port id {p.id} in profile {self.model}")
            seen.add(p.id)
        return self

    def port(self, port_id: str) -> PortSpec | None:
        for p in self.ports:
            if p.id == port_id:
                return p
        return None

    def ports_for_role(self, role: str) -> list[PortSpec]:
        return [p for p in self.ports if p.has_role(role)]
