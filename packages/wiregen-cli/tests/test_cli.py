"""
CLI tests driven through click's CliRunner.
"""

import pytest
import yaml
from click.testing import CliRunner
from wiregen_cli.cli import cli

WIDE = {"COLUMNS": "200"}

REQUEST_YAML = """
spine: {model: dell-s5232f-on, count: 2}
leaf: {model: dell-s5248f-on, count: 4, fabric_ports_per_leaf: 4}
server_count: 8
server_redundancy_mode: unbundled-single-homed
connections_per_server: 1
"""


@pytest.fixture(autouse=True)
def _no_catalog_override(monkeypatch):
    monkeypatch.delenv("WIREGEN_CATALOG", raising=False)


@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "fabric.yaml"
    path.write_text(REQUEST_YAML)
    return path


class TestCatalogCommands:
    """Test the catalog command group."""

    def test_list(self):
        """Test that catalog list shows the bundled models."""
        result = CliRunner().invoke(cli, ["catalog", "list"], env=WIDE)
        assert result.exit_code == 0, result.output
        assert "dell-s5248f-on" in result.output
        assert "celestica-ds3000" in result.output

    def test_show(self):
        """Test that catalog show prints ports and breakouts."""
        result = CliRunner().invoke(cli, ["catalog", "show", "dell-s5248f-on"], env=WIDE)
        assert result.exit_code == 0, result.output
        assert "E1/49" in result.output
        assert "4x25G" in result.output

    def test_show_unknown_model(self):
        """Test that an unknown model exits with status 1."""
        result = CliRunner().invoke(cli, ["catalog", "show", "acme-nope"], env=WIDE)
        assert result.exit_code == 1
        assert "unknown switch model" in result.output

    def test_custom_catalog(self, tmp_path):
        """Test that --catalog replaces the bundled catalog."""
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "switch_profiles:\n"
            "  - model: acme-x300\n"
            "    port_groups:\n"
            "      - {ids: E1/1-4, roles: [fabric], breakouts: [1x100G]}\n"
        )
        result = CliRunner().invoke(cli, ["catalog", "list", "--catalog", str(path)], env=WIDE)
        assert result.exit_code == 0, result.output
        assert "acme-x300" in result.output
        assert "dell-s5248f-on" not in result.output


class TestFabricValidate:
    """Test fabric validate exit codes and output."""

    def test_valid_request(self, request_file):
        """Test that a valid request exits cleanly."""
        result = CliRunner().invoke(cli, ["fabric", "validate", "--request", str(request_file)], env=WIDE)
        assert result.exit_code == 0, result.output
        assert "Validation completed successfully" in result.output

    def test_invalid_request_exits_1(self, tmp_path):
        """Test that a failing request exits with status 1."""
        path = tmp_path / "fabric.yaml"
        path.write_text(REQUEST_YAML.replace("count: 2", "count: 3"))
        result = CliRunner().invoke(cli, ["fabric", "validate", "--request", str(path)], env=WIDE)
        assert result.exit_code == 1
        assert "UNEVEN_FABRIC_FANOUT" in result.output

    def test_strict_warnings_exit_2(self, tmp_path):
        """Test that --strict turns warnings into exit status 2."""
        path = tmp_path / "fabric.yaml"
        path.write_text(REQUEST_YAML + "switch_serials: {leaf-99: ABC}\n")
        result = CliRunner().invoke(cli, ["fabric", "validate", "--request", str(path), "--strict"], env=WIDE)
        assert result.exit_code == 2
        assert "SERIAL_UNMATCHED" in result.output

    def test_export_findings(self, tmp_path):
        """Test that --export writes the findings as YAML."""
        path = tmp_path / "fabric.yaml"
        path.write_text(REQUEST_YAML.replace("connections_per_server: 1", "connections_per_server: 3"))
        export = tmp_path / "findings.yaml"
        result = CliRunner().invoke(
            cli, ["fabric", "validate", "--request", str(path), "--export", str(export)], env=WIDE
        )
        assert result.exit_code == 1
        data = yaml.safe_load(export.read_text())
        assert data["summary"]["fail"] >= 1
        assert any(f["code"] == "CONNECTION_COUNT" for f in data["findings"])

    def test_missing_request_file(self, tmp_path):
        """Test that a missing request file is reported."""
        result = CliRunner().invoke(cli, ["fabric", "validate", "--request", str(tmp_path / "nope.yaml")], env=WIDE)
        assert result.exit_code == 1
        assert "File not found" in result.output


class TestFabricGenerate:
    """Test fabric generate."""

    def test_generate_writes_manifests(self, request_file, tmp_path):
        """Test that generate writes every manifest to the export file."""
        out = tmp_path / "out" / "fabric.yaml"
        result = CliRunner().invoke(
            cli, ["fabric", "generate", "--request", str(request_file), "--export", str(out)], env=WIDE
        )
        assert result.exit_code == 0, result.output
        docs = list(yaml.safe_load_all(out.read_text()))
        assert len(docs) == 36
        assert sum(1 for d in docs if d["kind"] == "Server") == 8

    def test_generate_invalid_request(self, tmp_path):
        """Test that an invalid request writes nothing."""
        path = tmp_path / "fabric.yaml"
        path.write_text(REQUEST_YAML.replace("count: 4", "count: 1").replace("unbundled-single-homed", "bundled-mclag").replace("connections_per_server: 1", "connections_per_server: 2"))
        out = tmp_path / "fabric-out.yaml"
        result = CliRunner().invoke(
            cli, ["fabric", "generate", "--request", str(path), "--export", str(out)], env=WIDE
        )
        assert result.exit_code == 1
        assert "MCLAG_LEAF_COUNT" in result.output
        assert not out.exists()
