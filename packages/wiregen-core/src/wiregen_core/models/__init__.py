from .catalog import BreakoutMode, PortSpec, SwitchProfile
from .manifest import Manifest
from .request import FabricRequest, IPv4Pool, LeafGroup, SwitchGroup, VlanRange
from .result import FabricResult
from .topology import Endpoint, LinkRecord, PortAssignment, ServerInstance, SwitchInstance
from .validation import Finding, ValidationResult

__all__ = [
    "BreakoutMode",
    "Endpoint",
    "FabricRequest",
    "FabricResult",
    "Finding",
    "IPv4Pool",
    "LeafGroup",
    "LinkRecord",
    "Manifest",
    "PortAssignment",
    "PortSpec",
    "ServerInstance",
    "SwitchGroup",
    "SwitchInstance",
    "SwitchProfile",
    "ValidationResult",
    "VlanRange",
]
