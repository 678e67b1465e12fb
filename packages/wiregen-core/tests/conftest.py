import pytest
from wiregen_core.data.catalog import default_catalog
from wiregen_core.models.request import FabricRequest


@pytest.fixture(autouse=True)
def _no_catalog_override(monkeypatch):
    monkeypatch.delenv("WIREGEN_CATALOG", raising=False)


@pytest.fixture
def catalog():
    return default_catalog()


def make_request(**overrides) -> FabricRequest:
    """Two s5232 spines, four s5248 leaves, eight single-homed servers."""
    data = {
        "spine": {"model": "dell-s5232f-on", "count": 2},
        "leaf": {"model": "dell-s5248f-on", "count": 4, "fabric_ports_per_leaf": 4},
        "server_count": 8,
        "server_redundancy_mode": "unbundled-single-homed",
        "connections_per_server": 1,
    }
    for key, value in overrides.items():
        if key in ("spine", "leaf"):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return FabricRequest.model_validate(data)


@pytest.fixture
def request_factory():
    return make_request
