"""
Tests for breakout selection and port allocation.
"""

import pytest
from wiregen_core.allocation.ports import PortAllocator, logical_ports, select_breakout_mode, staged
from wiregen_core.errors import InsufficientPorts
from wiregen_core.models.topology import SwitchInstance


def _switch(model="dell-s5248f-on", name="s5248-01"):
    return SwitchInstance(id=name, model=model, role="leaf", index=0)


class TestSelectBreakoutMode:
    """Exact match first, then the smallest covering mode, then the largest."""

    def test_exact_match(self, catalog):
        port = catalog.port("dell-s5248f-on", "E1/49")
        assert select_breakout_mode(port, 4, "25G").mode == "4x25G"
        assert select_breakout_mode(port, 1, "100G").mode == "1x100G"

    def test_smallest_covering(self, catalog):
        port = catalog.port("dell-s5248f-on", "E1/49")
        assert select_breakout_mode(port, 2, "25G").mode == "4x25G"

    def test_largest_when_nothing_covers(self, catalog):
        port = catalog.port("celestica-ds4000", "E1/1")
        assert select_breakout_mode(port, 9, "100G").mode == "4x100G"
        assert select_breakout_mode(port, 3, "200G").mode == "2x200G"

    def test_no_mode_at_speed(self, catalog):
        port = catalog.port("dell-s5248f-on", "E1/1")
        assert select_breakout_mode(port, 1, "100G") is None


class TestAllocate:
    """Pure allocation against a candidate list."""

    def test_single_lane_keeps_physical_name(self, catalog):
        profile = catalog.get_profile("dell-s5248f-on")
        allocator = PortAllocator(catalog)
        out = allocator.allocate(["E1/1", "E1/2", "E1/3"], 2, "25G", profile)
        assert [a.physical_port_id for a in out] == ["E1/1", "E1/2"]
        assert logical_ports(out) == ["E1/1", "E1/2"]
        assert out[0].breakout_mode == "1x25G"

    def test_breakout_creates_sub_ports(self, catalog):
        profile = catalog.get_profile("dell-s5248f-on")
        out = PortAllocator(catalog).allocate(["E1/49", "E1/50"], 6, "25G", profile)
        assert [a.physical_port_id for a in out] == ["E1/49", "E1/50"]
        assert logical_ports(out)[:6] == ["E1/49/1", "E1/49/2", "E1/49/3", "E1/49/4", "E1/50/1", "E1/50/2"]
        assert all(a.breakout_mode == "4x25G" for a in out)

    def test_skips_ports_that_cannot_run_the_speed(self, catalog):
        profile = catalog.get_profile("dell-s5232f-on")
        out = PortAllocator(catalog).allocate(["E1/33", "E1/1"], 1, "100G", profile)
        assert [a.physical_port_id for a in out] == ["E1/1"]

    def test_insufficient_ports_reports_shortfall(self, catalog):
        profile = catalog.get_profile("dell-s5248f-on")
        with pytest.raises(InsufficientPorts) as exc:
            PortAllocator(catalog).allocate(["E1/49", "E1/50"], 3, "100G", profile)
        assert exc.value.shortfall == 1
        assert "Still need 1 more ports" in str(exc.value)

    def test_deterministic(self, catalog):
        profile = catalog.get_profile("dell-s5248f-on")
        allocator = PortAllocator(catalog)
        pool = catalog.ports_for_role("dell-s5248f-on", "fabric")
        assert allocator.allocate(pool, 5, "25G", profile) == allocator.allocate(pool, 5, "25G", profile)


class TestCommit:
    """Committing marks ports used only after the whole request succeeds."""

    def test_commit_marks_used(self, catalog):
        sw = _switch()
        PortAllocator(catalog).commit(sw, "fabric", 2, "100G")
        assert sw.used_ports == {"E1/49", "E1/50"}

    def test_second_commit_takes_next_free_ports(self, catalog):
        sw = _switch()
        allocator = PortAllocator(catalog)
        allocator.commit(sw, "fabric", 2, "100G")
        second = allocator.commit(sw, "fabric", 2, "100G")
        assert [a.physical_port_id for a in second] == ["E1/51", "E1/52"]

    def test_failed_commit_leaves_switch_untouched(self, catalog):
        sw = _switch()
        with pytest.raises(InsufficientPorts) as exc:
            PortAllocator(catalog).commit(sw, "fabric", 9, "100G")
        assert exc.value.device == "s5248-01"
        assert sw.used_ports == set()
        assert sw.assignments == []

    def test_reserve_whole_ports(self, catalog):
        sw = _switch()
        out = PortAllocator(catalog).reserve(sw, ["E1/47", "E1/48"])
        assert [a.speed for a in out] == ["25G", "25G"]
        assert sw.used_ports == {"E1/47", "E1/48"}

    def test_double_commit_rejected(self, catalog):
        sw = _switch()
        allocator = PortAllocator(catalog)
        allocator.reserve(sw, ["E1/1"])
        with pytest.raises(ValueError, match="already committed"):
            allocator.reserve(sw, ["E1/1"])


class TestStaged:
    """Scratch copies are copied back only when the block succeeds."""

    def test_success_copies_back(self, catalog):
        sw = _switch()
        with staged([sw]) as (scratch,):
            PortAllocator(catalog).commit(scratch, "server", 1, "25G")
        assert sw.used_ports == {"E1/1"}

    def test_failure_discards(self, catalog):
        a, b = _switch(name="a"), _switch(name="b")
        allocator = PortAllocator(catalog)
        with pytest.raises(InsufficientPorts):
            with staged([a, b]) as (sa, sb):
                allocator.commit(sa, "fabric", 2, "100G")
                allocator.commit(sb, "fabric", 20, "100G")
        assert a.used_ports == set()
        assert b.used_ports == set()
