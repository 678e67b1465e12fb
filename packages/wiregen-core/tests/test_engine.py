"""
End-to-end tests for generate_fabric, manifest emission and export.
"""

from collections import Counter

import pytest
import yaml
from wiregen_core import dump_manifests, generate_fabric
from wiregen_core.data.request import load_fabric_request
from wiregen_core.errors import InvalidRequest
from wiregen_core.models.manifest import VPC_API, WIRING_API
from wiregen_core.models.request import FabricRequest


class TestDefaultFabric:
    """Two spines, four leaves, eight single-homed servers."""

    def test_manifest_counts(self, catalog, request_factory):
        result = generate_fabric(request_factory(), catalog)
        assert result.count_by_kind() == {
            "VLANNamespace": 1,
            "IPv4Namespace": 1,
            "Switch": 6,
            "Connection": 20,
            "Server": 8,
        }
        assert len(result.manifests) == 36

    def test_manifest_order(self, catalog, request_factory):
        kinds = [m.kind for m in generate_fabric(request_factory(), catalog).manifests]
        order = ["VLANNamespace", "IPv4Namespace", "Switch", "Connection", "Server"]
        assert kinds == sorted(kinds, key=order.index)

    def test_switch_names_and_roles(self, catalog, request_factory):
        switches = generate_fabric(request_factory(), catalog).by_kind("Switch")
        assert [m.name for m in switches] == ["s5232-01", "s5232-02", "s5248-01", "s5248-02", "s5248-03", "s5248-04"]
        assert switches[0].spec["role"] == "spine"
        assert switches[2].spec == {"profile": "dell-s5248f-on", "role": "server-leaf", "description": "leaf-1"}

    def test_two_servers_per_leaf(self, catalog, request_factory):
        result = generate_fabric(request_factory(), catalog)
        server_links = [l for l in result.links if l.kind == "server"]
        assert len(server_links) == 8
        assert set(Counter(l.endpoint_b.device_id for l in server_links).values()) == {2}
        conns = [m for m in result.by_kind("Connection") if "unbundled" in m.spec]
        assert len(conns) == 8
        assert conns[0].spec == {
            "unbundled": {
                "link": {"server": {"port": "server-1/enp0s1"}, "switch": {"port": "s5248-01/E1/1"}}
            }
        }

    def test_fabric_connections(self, catalog, request_factory):
        conns = [m for m in generate_fabric(request_factory(), catalog).by_kind("Connection") if "fabric" in m.spec]
        assert len(conns) == 8
        assert conns[0].name == "s5232-01--fabric--s5248-01"
        assert conns[0].spec["fabric"]["links"] == [
            {"spine": {"port": "s5232-01/E1/1"}, "leaf": {"port": "s5248-01/E1/49"}},
            {"spine": {"port": "s5232-01/E1/2"}, "leaf": {"port": "s5248-01/E1/50"}},
        ]

    def test_loopback_connections(self, catalog, request_factory):
        conns = [m for m in generate_fabric(request_factory(), catalog).by_kind("Connection") if "vpcLoopback" in m.spec]
        assert [m.name for m in conns] == [f"s5248-0{i}--vpc-loopback" for i in range(1, 5)]
        assert conns[0].spec["vpcLoopback"]["links"] == [
            {"switch1": {"port": "s5248-01/E1/47"}, "switch2": {"port": "s5248-01/E1/48"}}
        ]

    def test_namespaces(self, catalog, request_factory):
        result = generate_fabric(request_factory(), catalog)
        vlan = result.by_kind("VLANNamespace")[0]
        assert vlan.api_version == WIRING_API
        assert vlan.spec == {"ranges": [{"from": 1000, "to": 2999}]}
        ipv4 = result.by_kind("IPv4Namespace")[0]
        assert ipv4.api_version == VPC_API
        assert ipv4.spec == {"subnets": ["10.10.0.0/16"]}

    def test_ports_disjoint_per_switch(self, catalog, request_factory):
        for sw in generate_fabric(request_factory(), catalog).switches:
            ids = [a.physical_port_id for a in sw.assignments]
            assert len(ids) == len(set(ids))
            assert set(ids) == sw.used_ports

    def test_idempotent(self, catalog, request_factory):
        req = request_factory()
        assert dump_manifests(generate_fabric(req, catalog).manifests) == dump_manifests(
            generate_fabric(req, catalog).manifests
        )

    def test_uses_default_catalog(self, request_factory):
        assert len(generate_fabric(request_factory()).manifests) == 36


class TestOptions:
    def test_no_loopback(self, catalog, request_factory):
        result = generate_fabric(request_factory(vpc_loopback=False), catalog)
        assert not any("vpcLoopback" in m.spec for m in result.by_kind("Connection"))

    def test_serials_in_boot(self, catalog, request_factory):
        result = generate_fabric(request_factory(switch_serials={"s5248-01": "SN-1"}), catalog)
        leaf = next(m for m in result.by_kind("Switch") if m.name == "s5248-01")
        assert leaf.spec["boot"] == {"serial": "SN-1"}

    def test_port_breakouts_recorded(self, catalog, request_factory):
        req = request_factory(leaf={"model": "celestica-ds3000", "count": 2}, server_count=4, server_speed="25G")
        result = generate_fabric(req, catalog)
        leaf = result.by_kind("Switch")[2]
        assert leaf.spec["portBreakouts"] == {"E1/5": "4x25G"}
        ports = [l.endpoint_b.port_id for l in result.links if l.kind == "server" and l.endpoint_b.device_id == leaf.name]
        assert ports == ["E1/5/1", "E1/5/2"]

    def test_port_speeds_recorded(self, catalog, request_factory):
        result = generate_fabric(request_factory(server_speed="10G"), catalog)
        leaf = result.by_kind("Switch")[2]
        assert leaf.spec["portSpeeds"] == {"E1/1": "10G", "E1/2": "10G"}

    def test_shared_short_name_numbering(self, catalog, request_factory):
        req = request_factory(spine={"model": "dell-s5248f-on"})
        names = [m.name for m in generate_fabric(req, catalog).by_kind("Switch")]
        assert names == ["s5248-01", "s5248-02", "s5248-03", "s5248-04", "s5248-05", "s5248-06"]

    def test_eslag_eight_connections(self, catalog, request_factory):
        req = request_factory(server_redundancy_mode="bundled-eslag", connections_per_server=8)
        result = generate_fabric(req, catalog)
        eslag = [m for m in result.by_kind("Connection") if "eslag" in m.spec]
        assert len(eslag) == 8
        assert all(len(m.spec["eslag"]["links"]) == 8 for m in eslag)

    def test_mclag_bundles(self, catalog, request_factory):
        req = request_factory(server_redundancy_mode="bundled-mclag", connections_per_server=2)
        conns = [m for m in generate_fabric(req, catalog).by_kind("Connection") if "mclag" in m.spec]
        assert conns[0].name == "server-1--mclag--s5248-01--s5248-02"
        assert len(conns[0].spec["mclag"]["links"]) == 2


class TestErrors:
    def test_uneven_fanout(self, catalog, request_factory):
        with pytest.raises(InvalidRequest) as exc:
            generate_fabric(request_factory(spine={"count": 3}), catalog)
        assert "UnevenFabricFanout" in exc.value.kinds

    def test_mclag_single_leaf(self, catalog, request_factory):
        req = request_factory(server_redundancy_mode="bundled-mclag", connections_per_server=2, leaf={"count": 1})
        with pytest.raises(InvalidRequest) as exc:
            generate_fabric(req, catalog)
        assert "InsufficientLeavesForRedundancy" in exc.value.kinds

    def test_busiest_leaf_rejected_before_planning(self, catalog, request_factory):
        # MCLAG rotation loads the middle leaves harder than the even share
        req = request_factory(
            server_redundancy_mode="bundled-mclag",
            connections_per_server=8,
            server_count=15,
            leaf={"count": 4},
        )
        assert generate_fabric(req, catalog).count_by_kind()["Server"] == 15
        heavy = request_factory(
            server_redundancy_mode="bundled-mclag", connections_per_server=8, server_count=22, leaf={"count": 4}
        )
        with pytest.raises(InvalidRequest) as exc:
            generate_fabric(heavy, catalog)
        assert "CapacityExceeded" in exc.value.kinds


class TestExport:
    def test_dump_is_multi_document(self, catalog, request_factory):
        text = dump_manifests(generate_fabric(request_factory(), catalog).manifests)
        docs = list(yaml.safe_load_all(text))
        assert len(docs) == 36
        assert list(docs[0]) == ["apiVersion", "kind", "metadata", "spec"]
        assert docs[0]["metadata"] == {"name": "default", "namespace": "default"}


class TestLoadFabricRequest:
    def test_camel_case_keys(self, tmp_path):
        path = tmp_path / "fabric.yaml"
        path.write_text(
            """
spine: {model: dell-s5232f-on, count: "2"}
leaf: {model: dell-s5248f-on, count: 4, fabricPortsPerLeaf: 4}
serverCount: 8
serverRedundancyMode: unbundled-SH
connectionsPerServer: 2
vlanNamespace:
  - {from: 1000, to: 1999}
"""
        )
        req = load_fabric_request(path)
        assert isinstance(req, FabricRequest)
        assert req.spine.count == 2
        assert req.server_redundancy_mode == "unbundled-single-homed"
        assert req.leaf.total_server_ports == 16
        assert req.vlan_namespace[0].end == 1999

    def test_request_is_frozen(self, request_factory):
        req = request_factory()
        with pytest.raises(ValueError):
            req.server_count = 9

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_fabric_request(tmp_path / "nope.yaml")

    def test_bad_mode(self, tmp_path):
        path = tmp_path / "fabric.yaml"
        path.write_text("spine: {model: a}\nleaf: {model: b}\nserver_count: 1\nserver_redundancy_mode: triple\n")
        with pytest.raises(ValueError, match="Invalid structure"):
            load_fabric_request(path)
