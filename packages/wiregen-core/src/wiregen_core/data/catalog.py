"""
Switch catalog: loads switch profiles from YAML and answers port questions.

Profiles are resolved once at load time (port ranges expanded, `inherits`
chains flattened) and the resulting catalog is read-only.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Iterable

from wiregen_core.data.loader import YamlSource, load_model
from wiregen_core.errors import UnknownModel
from wiregen_core.models.catalog import (
    BreakoutMode,
    CatalogFileRec,
    PortSpec,
    SwitchProfile,
    SwitchProfileRec,
    derive_short_name,
)

logger = logging.getLogger("wiregen.catalog")

CATALOG_ENV = "WIREGEN_CATALOG"
BUNDLED_CATALOG = "switch_profiles.yaml"


class SwitchCatalog:
    """Read-only mapping of switch model -> SwitchProfile."""

    def __init__(self, profiles: Iterable[SwitchProfile]):
        self._profiles: dict[str, SwitchProfile] = {}
        for p in profiles:
            if p.model in self._profiles:
                raise ValueError(f"duplicate switch profile {p.model}")
            self._profiles[p.model] = p

    def __contains__(self, model: object) -> bool:
        return model in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def models(self) -> list[str]:
        return list(self._profiles)

    def profiles(self) -> list[SwitchProfile]:
        return list(self._profiles.values())

    def get_profile(self, model: str) -> SwitchProfile:
        try:
            return self._profiles[model]
        except KeyError:
            raise UnknownModel(model, self._profiles) from None

    def ports_for_role(self, model: str, role: str) -> list[str]:
        return [p.id for p in self.get_profile(model).ports_for_role(role)]

    def port(self, model: str, port_id: str) -> PortSpec:
        spec = self.get_profile(model).port(port_id)
        if spec is None:
            raise KeyError(f"{model} has no port {port_id}")
        return spec

    def breakout_options(self, model: str, port_id: str) -> list[BreakoutMode]:
        return list(self.port(model, port_id).breakout_modes)

    def default_speed(self, model: str, role: str) -> str | None:
        """Native speed of the first port carrying `role`, or None."""
        for p in self.get_profile(model).ports_for_role(role):
            return p.speed
        return None


def max_logical_ports(profile: SwitchProfile, port_ids: Iterable[str], speed: str) -> int:
    """Logical ports a pool can offer at `speed` when every port is broken out as far as possible."""
    total = 0
    for pid in port_ids:
        spec = profile.port(pid)
        if spec is not None:
            total += spec.logical_capacity(speed)
    return total


# -------------------------------
# Loading
# -------------------------------


def _merge_ports(parent: list[PortSpec], own: list[PortSpec]) -> list[PortSpec]:
    overrides = {p.id: p for p in own}
    merged = [overrides.pop(p.id, p) for p in parent]
    merged.extend(p for p in own if p.id in overrides)
    return merged


def build_catalog(records: Iterable[SwitchProfileRec]) -> SwitchCatalog:
    """Resolve raw profile records (ranges, inheritance) into a SwitchCatalog."""
    recs = {r.model: r for r in records}
    resolved: dict[str, list[PortSpec]] = {}

    def resolve(model: str, chain: tuple[str, ...] = ()) -> list[PortSpec]:
        if model in resolved:
            return resolved[model]
        if model in chain:
            raise ValueError(f"profile inheritance cycle: {' -> '.join(chain + (model,))}")
        rec = recs.get(model)
        if rec is None:
            raise UnknownModel(model, recs)
        ports = rec.own_ports()
        if rec.inherits:
            ports = _merge_ports(resolve(rec.inherits, chain + (model,)), ports)
        resolved[model] = ports
        return ports

    profiles = []
    for model, rec in recs.items():
        ports = resolve(model)
        if not ports:
            raise ValueError(f"switch profile {model} has no ports")
        profiles.append(
            SwitchProfile(
                model=model,
                name=rec.name or model,
                short_name=rec.short_name or derive_short_name(model),
                ports=tuple(ports),
            )
        )
    logger.debug("resolved %d switch profiles", len(profiles))
    return SwitchCatalog(profiles)


def load_catalog(source: YamlSource) -> SwitchCatalog:
    rec = load_model(source, CatalogFileRec)
    return build_catalog(rec.switch_profiles)


@lru_cache(maxsize=None)
def _load_cached(path: str | None) -> SwitchCatalog:
    if path:
        logger.info("loading switch catalog from %s", path)
        return load_catalog(path)
    return load_catalog(resources.files("wiregen_core.data").joinpath(BUNDLED_CATALOG))


def default_catalog() -> SwitchCatalog:
    """Bundled catalog, or the file named by WIREGEN_CATALOG. Memoized per source."""
    return _load_cached(os.environ.get(CATALOG_ENV) or None)


def resolve_catalog(path: Path | str | None = None) -> SwitchCatalog:
    if path is None:
        return default_catalog()
    return _load_cached(str(path))
