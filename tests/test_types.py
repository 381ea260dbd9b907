"""Tests for inventory agent type definitions."""

import dataclasses
import json

import pytest

from inventory_agent._types import (
    Device,
    ScanResult,
    Software,
    SystemInfo,
    FINGERPRINT_PORTS,
    FALLBACK_PORTS,
    STATUS_ONLINE,
)


class TestDevice:
    """Tests for Device dataclass."""

    def test_device_defaults(self):
        """Device should default to online with empty identity fields."""
        device = Device(ip="192.168.1.10")

        assert device.ip == "192.168.1.10"
        assert device.hostname == ""
        assert device.mac == ""
        assert device.vendor == ""
        assert device.ports == ()
        assert device.status == STATUS_ONLINE

    def test_device_is_immutable(self):
        """Device records should not change after creation."""
        device = Device(ip="192.168.1.10")

        with pytest.raises(dataclasses.FrozenInstanceError):
            device.hostname = "changed"

    def test_to_dict_uses_wire_names(self):
        """Should serialize ports under open_ports."""
        device = Device(ip="10.0.0.5", hostname="printer.lan", ports=(80, 9100))

        assert device.to_dict() == {
            "ip": "10.0.0.5",
            "hostname": "printer.lan",
            "mac": "",
            "open_ports": [80, 9100],
            "vendor": "",
            "status": "online",
        }

    def test_empty_ports_serialize_as_list(self):
        """Should emit [] rather than null for a host with no open ports."""
        data = json.loads(json.dumps(Device(ip="10.0.0.5").to_dict()))

        assert data["open_ports"] == []


class TestScanResult:
    """Tests for ScanResult dataclass."""

    def test_to_dict(self):
        """Should serialize range and devices."""
        result = ScanResult(
            range="10.0.0.0/30",
            devices=(Device(ip="10.0.0.1", ports=(80,)), Device(ip="10.0.0.2")),
        )

        data = result.to_dict()

        assert data["range"] == "10.0.0.0/30"
        assert [d["ip"] for d in data["devices"]] == ["10.0.0.1", "10.0.0.2"]
        assert data["devices"][0]["open_ports"] == [80]
        assert data["devices"][1]["open_ports"] == []

    def test_empty_result(self):
        """Should serialize an empty device list."""
        assert ScanResult(range="10.0.0.0/24").to_dict() == {
            "range": "10.0.0.0/24",
            "devices": [],
        }


class TestSoftware:
    """Tests for Software dataclass."""

    def test_optional_fields_omitted(self):
        """Should leave empty optional fields out of the payload."""
        assert Software(name="curl").to_dict() == {"name": "curl"}

    def test_all_fields(self):
        """Should include populated optional fields."""
        software = Software(
            name="bash",
            version="5.2",
            vendor="Red Hat",
            install_date="2024-03-01",
        )

        assert software.to_dict() == {
            "name": "bash",
            "version": "5.2",
            "vendor": "Red Hat",
            "install_date": "2024-03-01",
        }


class TestSystemInfo:
    """Tests for SystemInfo dataclass."""

    def test_to_dict_fields(self):
        """Should serialize every check-in field."""
        info = SystemInfo(
            hostname="ws-01",
            username="alice",
            os="Ubuntu 22.04.4 LTS",
            platform="linux",
            cpu_cores=8,
            ram_gb=16,
            installed_software=[Software(name="curl", version="7.81.0")],
        )

        data = info.to_dict()

        assert set(data) == {
            "hostname", "username", "serial_number", "os", "platform",
            "ip_address", "mac_address", "make", "model", "cpu_model",
            "cpu_cores", "ram_gb", "disk_total_gb", "disk_free_gb",
            "installed_software",
        }
        assert data["hostname"] == "ws-01"
        assert data["cpu_cores"] == 8
        assert data["installed_software"] == [{"name": "curl", "version": "7.81.0"}]


class TestPortLists:
    """Tests for the fixed port lists."""

    def test_fingerprint_ports(self):
        """Fingerprint list should be the nine well-known ports in order."""
        assert FINGERPRINT_PORTS == (21, 22, 23, 80, 443, 445, 3389, 8080, 9100)

    def test_fallback_ports(self):
        """Fallback list should be tried in its fixed order."""
        assert FALLBACK_PORTS == (80, 443, 135, 445, 22)
