from pathlib import Path

from wiregen_core.data.loader import load_model
from wiregen_core.models.request import FabricRequest


def load_fabric_request(path: Path | str) -> FabricRequest:
    """Load a fabric request YAML file.

    Raises FileNotFoundError when the file is missing and ValueError (naming
    the file) for bad YAML or a structure that does not validate.
    """
    return load_model(path, FabricRequest)
