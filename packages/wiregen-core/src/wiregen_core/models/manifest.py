from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

WIRING_API = "wiring.githedgehog.com/v1beta1"
VPC_API = "vpc.githedgehog.com/v1beta1"

ManifestKind = Literal["VLANNamespace", "IPv4Namespace", "Switch", "Connection", "Server"]


class ManifestMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: str
    namespace: str = "default"


class Manifest(BaseModel):
    """One declarative resource document."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    api_version: str = Field(alias="apiVersion")
    kind: ManifestKind
    metadata: ManifestMetadata
    spec: dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
