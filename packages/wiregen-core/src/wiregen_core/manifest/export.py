from pathlib import Path
from typing import Iterable

import yaml

from wiregen_core.models.manifest import Manifest


def dump_manifests(manifests: Iterable[Manifest]) -> str:
    """Multi-document YAML, one document per manifest, keys in emission order."""
    return yaml.safe_dump_all(
        [m.to_document() for m in manifests],
        sort_keys=False,
        default_flow_style=False,
    )


def write_manifests(manifests: Iterable[Manifest], path: Path | str) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(dump_manifests(manifests), encoding="utf-8")
    return out
