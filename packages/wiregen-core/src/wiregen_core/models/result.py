from __future__ import annotations

from collections import Counter

from pydantic import BaseModel, ConfigDict, Field

from .manifest import Manifest
from .topology import LinkRecord, ServerInstance, SwitchInstance
from .validation import ValidationResult


class FabricResult(BaseModel):
    """Everything produced by one generation run."""

    model_config = ConfigDict(extra="ignore")
    manifests: list[Manifest] = Field(default_factory=list)
    switches: list[SwitchInstance] = Field(default_factory=list)
    servers: list[ServerInstance] = Field(default_factory=list)
    links: list[LinkRecord] = Field(default_factory=list)
    validation: ValidationResult = Field(default_factory=ValidationResult)

    def count_by_kind(self) -> dict[str, int]:
        return dict(Counter(m.kind for m in self.manifests))

    def by_kind(self, kind: str) -> list[Manifest]:
        return [m for m in self.manifests if m.kind == kind]
