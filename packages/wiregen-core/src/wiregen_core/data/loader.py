"""
YAML documents parsed into pydantic models.

A source is a filesystem path or a package resource (anything with
``is_file`` and ``read_text``), so user files and the bundled catalog go
through the same checks. Every error message names the source.
"""

from __future__ import annotations

from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)

YamlSource = Path | str | Traversable


def read_yaml(source: YamlSource) -> Any:
    """Parse one YAML document; refuse missing, undecodable or empty sources."""
    src = Path(source) if isinstance(source, str) else source
    if not src.is_file():
        raise FileNotFoundError(f"File not found: {src}")
    try:
        text = src.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Unable to decode UTF-8 in {src}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {src}: {e}") from e
    if data is None:
        raise ValueError(f"Empty YAML file: {src}")
    return data


def load_model(source: YamlSource, model: type[M]) -> M:
    """Read `source` and validate it as `model`.

    Example:
        load_model("fabric.yaml", FabricRequest)
    """
    data = read_yaml(source)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid structure in {source}: {e}") from e
