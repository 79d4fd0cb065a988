# tests/backend/test_ipam.py
"""
Unit Tests for IP allocation and conflict checking

Run with:
    pytest tests/backend/test_ipam.py -v
"""

import pytest

from core.ipam import (
    IPAMService,
    IPConflictError,
    RANGE_EXHAUSTED_WARNING,
)


def fill_cameras(add_device, project, start, end):
    for host in range(start, end + 1):
        add_device(project, f"192.168.220.{host}", vlan=20)


class TestNextAddress:
    """Tests for IPAMService.next_address"""

    def test_empty_project_gets_range_start(self, db, ipam, project):
        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.address == "192.168.220.131"
        assert result.vlan_id == 20
        assert result.warning is None

    def test_last_free_address_in_range(self, db, ipam, project, add_device):
        """Cameras on .131-.199 leave only .200"""
        fill_cameras(add_device, project, 131, 199)

        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.address == "192.168.220.200"
        assert result.vlan_id == 20
        assert result.warning is None

    def test_exhausted_range_returns_fallback_with_warning(self, db, ipam, registry, project, add_device):
        fill_cameras(add_device, project, 131, 200)

        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.address == registry.lookup("camera", "camera").fallback_address
        assert result.address == "192.168.220.131"
        assert result.vlan_id == 20
        assert result.warning == RANGE_EXHAUSTED_WARNING

    def test_fills_gaps_first(self, db, ipam, project, add_device):
        add_device(project, "192.168.220.131")
        add_device(project, "192.168.220.133")

        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.address == "192.168.220.132"

    def test_ascending_across_growing_device_set(self, db, ipam, project, add_device):
        seen = []
        for _ in range(5):
            result = ipam.next_address(db, project.id, "touch-panel", "control-system")
            seen.append(result.address)
            add_device(project, result.address, category="control-system", device_type="touch-panel")

        assert seen == [f"192.168.210.{i}" for i in range(101, 106)]

    def test_never_returns_used_address(self, db, ipam, project, add_device):
        used = set()
        for _ in range(12):
            result = ipam.next_address(db, project.id, "nvr", "camera")
            if result.warning:
                break
            assert result.address not in used
            used.add(result.address)
            add_device(project, result.address, device_type="nvr")

        # nvr range is .81-.90
        assert len(used) == 10
        assert result.warning

    def test_other_projects_do_not_count(self, db, ipam, make_project, add_device):
        first = make_project("First")
        second = make_project("Second")
        add_device(first, "192.168.220.131")

        result = ipam.next_address(db, second.id, "camera", "camera")

        assert result.address == "192.168.220.131"

    def test_addresses_in_other_subnets_are_ignored(self, db, ipam, project, add_device):
        add_device(project, "192.168.210.131", category="other", device_type="generic")

        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.address == "192.168.220.131"

    def test_shared_subnet_pools_see_each_other(self, db, ipam, project, add_device):
        """hvac (.30) sits inside the access-point range (.11-.30)"""
        add_device(project, "192.168.210.30", category="other", device_type="hvac")

        result = ipam.next_address(db, project.id, "hvac", "other")

        assert result.address == "192.168.210.30"
        assert result.warning

    def test_category_fallback_pool(self, db, ipam, project):
        result = ipam.next_address(db, project.id, "projector", "av")

        assert result.address == "192.168.210.41"
        assert result.vlan_id == 1

    def test_catch_all_pool(self, db, ipam, project):
        result = ipam.next_address(db, project.id, "generic", "unknown")

        assert result.address == "192.168.210.200"

    def test_devices_without_ip_are_ignored(self, db, ipam, project, add_device):
        add_device(project, None)

        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.address == "192.168.220.131"

    def test_substitute_registry(self, db, small_registry, project, add_device):
        ipam = IPAMService(small_registry)
        add_device(project, "10.0.20.10")

        assert ipam.next_address(db, project.id, "camera", None).address == "10.0.20.11"
        assert ipam.next_address(db, project.id, "tv", "av").address == "10.0.1.100"

    def test_to_dict(self, db, ipam, project):
        result = ipam.next_address(db, project.id, "camera", "camera")

        assert result.to_dict() == {"ip": "192.168.220.131", "vlan": 20}


class TestAssign:
    """Tests for IPAMService.assign (allocation for a device about to be saved)"""

    def test_free_address(self, db, ipam, project):
        assert ipam.assign(db, project.id, "camera", "camera") == ("192.168.220.131", 20, None)

    def test_fallback_taken_leaves_device_unaddressed(self, db, small_registry, project, add_device):
        ipam = IPAMService(small_registry)
        for host in (10, 11, 12):
            add_device(project, f"10.0.20.{host}")

        address, vlan, warning = ipam.assign(db, project.id, "camera", "camera")

        assert address is None
        assert vlan == 20
        assert RANGE_EXHAUSTED_WARNING in warning

    def test_fallback_free_is_used(self, db, small_registry, project, add_device):
        ipam = IPAMService(small_registry)
        for host in (100, 101):
            add_device(project, f"10.0.1.{host}", category="other", device_type="generic")

        address, vlan, warning = ipam.assign(db, project.id, "generic", "other")

        assert address == "10.0.1.250"
        assert vlan == 1
        assert RANGE_EXHAUSTED_WARNING in warning


class TestCheckConflict:
    """Tests for IPAMService.check_conflict"""

    def test_reports_holder(self, db, ipam, project, add_device):
        device = add_device(project, "192.168.210.100", name="Main Controller",
                            category="control-system", device_type="control-processor")

        result = ipam.check_conflict(db, project.id, "192.168.210.100")

        assert result.has_conflict is True
        assert result.conflicting_device.id == device.id
        assert result.conflicting_device.name == "Main Controller"
        assert result.conflicting_device.category == "control-system"

    def test_excluding_the_only_holder_is_not_a_conflict(self, db, ipam, project, add_device):
        device = add_device(project, "192.168.210.100")

        result = ipam.check_conflict(db, project.id, "192.168.210.100", device.id)

        assert result.has_conflict is False
        assert result.conflicting_device is None

    def test_free_address(self, db, ipam, project):
        assert ipam.check_conflict(db, project.id, "192.168.210.100").has_conflict is False

    def test_same_address_in_other_project(self, db, ipam, make_project, add_device):
        first = make_project("First")
        second = make_project("Second")
        add_device(first, "192.168.210.100")

        assert ipam.check_conflict(db, second.id, "192.168.210.100").has_conflict is False

    def test_ensure_available_raises(self, db, ipam, project, add_device):
        device = add_device(project, "192.168.220.131", name="Front Door Cam")

        with pytest.raises(IPConflictError) as exc_info:
            ipam.ensure_available(db, project.id, "192.168.220.131")

        assert exc_info.value.conflict.conflicting_device.id == device.id
        assert "Front Door Cam" in str(exc_info.value)

    def test_ensure_available_passes_for_self(self, db, ipam, project, add_device):
        device = add_device(project, "192.168.220.131")

        ipam.ensure_available(db, project.id, "192.168.220.131", exclude_device_id=device.id)
