from .engine import generate_fabric
from .manifest.export import dump_manifests

__all__ = ["generate_fabric", "dump_manifests"]
