# backend/core/address_pool.py
"""
Address Pool Registry
Maps a device type (falling back to its category) to a subnet, VLAN,
address range and fallback address.

Resolution order:
1. Exact match on device_type
2. Exact match on category
3. Catch-all "other" entry

The registry is built once at startup and handed to the IPAM service,
so tests and deployments can swap in their own table.
"""

import ipaddress
import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


DEFAULT_POOL_KEY = "other"


@dataclass(frozen=True)
class AddressPoolEntry:
    """One subnet/VLAN/range assignment for a device type or category"""
    key: str
    subnet: str           # First three octets, e.g. "192.168.210"
    vlan_id: int
    range_start: int
    range_end: int
    fallback_address: str

    def __post_init__(self):
        octets = self.subnet.split(".")
        if len(octets) != 3 or not all(o.isdigit() and 0 <= int(o) <= 255 for o in octets):
            raise ValueError(f"Invalid subnet '{self.subnet}' for pool '{self.key}'")
        if not 0 <= self.range_start <= self.range_end <= 255:
            raise ValueError(
                f"Invalid range {self.range_start}-{self.range_end} for pool '{self.key}'"
            )
        try:
            ipaddress.IPv4Address(self.fallback_address)
        except ValueError:
            raise ValueError(
                f"Invalid fallback address '{self.fallback_address}' for pool '{self.key}'"
            )

    def address(self, host: int) -> str:
        return f"{self.subnet}.{host}"

    @property
    def size(self) -> int:
        return self.range_end - self.range_start + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subnet": self.subnet,
            "vlan": self.vlan_id,
            "range": {"start": self.range_start, "end": self.range_end},
            "default_ip": self.fallback_address,
        }


class ResolutionKind(str, Enum):
    """Which path a lookup took"""
    EXACT = "exact"
    CATEGORY_FALLBACK = "category_fallback"
    DEFAULT = "default"


@dataclass(frozen=True)
class PoolResolution:
    kind: ResolutionKind
    key: str
    entry: AddressPoolEntry


def _entry(key: str, subnet: str, vlan: int, start: int, end: int, fallback: str) -> AddressPoolEntry:
    return AddressPoolEntry(
        key=key,
        subnet=subnet,
        vlan_id=vlan,
        range_start=start,
        range_end=end,
        fallback_address=fallback,
    )


# Bảng cấp phát IP mặc định theo loại thiết bị
# VLAN 1 = 192.168.210.x, VLAN 20 (camera) = 192.168.220.x
DEFAULT_POOL_TABLE = (
    # Networking
    _entry("router", "192.168.210", 1, 1, 10, "192.168.210.1"),
    _entry("switch", "192.168.210", 1, 240, 254, "192.168.210.251"),
    _entry("access-point", "192.168.210", 1, 11, 30, "192.168.210.11"),

    # Security cameras
    _entry("camera", "192.168.220", 20, 131, 200, "192.168.220.131"),
    _entry("nvr", "192.168.220", 20, 81, 90, "192.168.220.81"),

    # Security system
    _entry("security", "192.168.210", 1, 80, 89, "192.168.210.80"),

    # Control system
    _entry("control-processor", "192.168.210", 1, 100, 100, "192.168.210.100"),
    _entry("touch-panel", "192.168.210", 1, 101, 120, "192.168.210.101"),
    _entry("secondary-processor", "192.168.210", 1, 91, 99, "192.168.210.91"),
    _entry("door-station", "192.168.210", 1, 121, 130, "192.168.210.121"),

    # Lighting
    _entry("lighting", "192.168.210", 1, 248, 250, "192.168.210.250"),

    # AV system
    _entry("receiver", "192.168.210", 1, 71, 79, "192.168.210.71"),
    _entry("tv", "192.168.210", 1, 41, 50, "192.168.210.41"),
    _entry("audio-matrix", "192.168.210", 1, 21, 30, "192.168.210.21"),

    # Other smart devices
    _entry("fan", "192.168.210", 1, 31, 40, "192.168.210.31"),
    _entry("irrigation", "192.168.210", 1, 110, 119, "192.168.210.110"),
    _entry("hvac", "192.168.210", 1, 30, 30, "192.168.210.30"),
    _entry("relay", "192.168.210", 1, 51, 60, "192.168.210.51"),
    _entry("fireplace", "192.168.210", 1, 55, 70, "192.168.210.55"),

    # Power
    _entry("pdu", "192.168.210", 1, 5, 10, "192.168.210.5"),
    _entry("ups", "192.168.210", 1, 5, 10, "192.168.210.5"),

    # Network controllers
    _entry("cloudkey", "192.168.210", 1, 2, 4, "192.168.210.2"),

    # Generic categories
    _entry("network", "192.168.210", 1, 200, 220, "192.168.210.200"),
    _entry("av", "192.168.210", 1, 41, 70, "192.168.210.41"),
    _entry("control-system", "192.168.210", 1, 91, 130, "192.168.210.100"),
    _entry(DEFAULT_POOL_KEY, "192.168.210", 1, 200, 230, "192.168.210.200"),
)


class AddressPoolRegistry:
    """
    Read-only registry of address pools keyed by device type or category
    """

    def __init__(self, entries, default_key: str = DEFAULT_POOL_KEY):
        table = {}
        for entry in entries:
            if entry.key in table:
                raise ValueError(f"Duplicate pool key '{entry.key}'")
            table[entry.key] = entry

        if default_key not in table:
            raise ValueError(f"Pool table has no catch-all entry '{default_key}'")

        self._table: Mapping[str, AddressPoolEntry] = MappingProxyType(table)
        self.default_key = default_key

    def __contains__(self, key: str) -> bool:
        return key in self._table

    def __len__(self) -> int:
        return len(self._table)

    def get(self, key: Optional[str]) -> Optional[AddressPoolEntry]:
        if not key:
            return None
        return self._table.get(key)

    def resolve(self, device_type: Optional[str], category: Optional[str]) -> PoolResolution:
        """Two-step resolution: device type, then category, then catch-all"""
        entry = self.get(device_type)
        if entry is not None:
            return PoolResolution(ResolutionKind.EXACT, device_type, entry)

        entry = self.get(category)
        if entry is not None:
            return PoolResolution(ResolutionKind.CATEGORY_FALLBACK, category, entry)

        return PoolResolution(
            ResolutionKind.DEFAULT,
            self.default_key,
            self._table[self.default_key],
        )

    def lookup(self, device_type: Optional[str], category: Optional[str]) -> AddressPoolEntry:
        return self.resolve(device_type, category).entry

    def default_vlan(self, device_type: Optional[str], category: Optional[str]) -> int:
        return self.lookup(device_type, category).vlan_id

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        return {key: entry.to_dict() for key, entry in self._table.items()}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]],
                     default_key: str = DEFAULT_POOL_KEY) -> "AddressPoolRegistry":
        """
        Build a registry from the same shape `as_dict()` produces:

            {"camera": {"subnet": "192.168.220", "vlan": 20,
                        "range": {"start": 131, "end": 200},
                        "default_ip": "192.168.220.131"}}
        """
        entries = []
        for key, raw in data.items():
            try:
                entries.append(_entry(
                    key,
                    str(raw["subnet"]),
                    int(raw["vlan"]),
                    int(raw["range"]["start"]),
                    int(raw["range"]["end"]),
                    str(raw["default_ip"]),
                ))
            except (KeyError, TypeError) as e:
                raise ValueError(f"Malformed pool entry '{key}': {e}")
        return cls(entries, default_key=default_key)


def default_registry() -> AddressPoolRegistry:
    return AddressPoolRegistry(DEFAULT_POOL_TABLE)


def load_registry(path: Optional[str] = None) -> AddressPoolRegistry:
    """Load a pool table from a JSON file, or the built-in table when no path is given"""
    if not path:
        return default_registry()

    with open(Path(path), encoding="utf-8") as f:
        data = json.load(f)

    registry = AddressPoolRegistry.from_mapping(data)
    logger.info(f"Loaded {len(registry)} address pools from {path}")
    return registry
