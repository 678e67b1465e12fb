from .catalog import SwitchCatalog, build_catalog, default_catalog, load_catalog, max_logical_ports, resolve_catalog
from .request import load_fabric_request

__all__ = [
    "SwitchCatalog",
    "build_catalog",
    "default_catalog",
    "load_catalog",
    "load_fabric_request",
    "max_logical_ports",
    "resolve_catalog",
]
