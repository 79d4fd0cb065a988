# backend/core/ipam.py
"""
IP Address Management for installation projects

- next_address: first free address of the device's pool inside a project
- check_conflict: is an address already held by another device of the project
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from core.address_pool import AddressPoolRegistry
from database.models import Device

logger = logging.getLogger(__name__)


RANGE_EXHAUSTED_WARNING = "IP range exhausted, may have conflicts"


@dataclass(frozen=True)
class AllocationResult:
    address: str
    vlan_id: int
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"ip": self.address, "vlan": self.vlan_id}
        if self.warning:
            data["warning"] = self.warning
        return data


@dataclass(frozen=True)
class ConflictingDevice:
    id: int
    name: str
    category: str


@dataclass(frozen=True)
class ConflictResult:
    has_conflict: bool
    conflicting_device: Optional[ConflictingDevice] = None


class IPConflictError(Exception):
    """Raised when an address is already held by another device in the project"""

    def __init__(self, ip_address: str, conflict: Optional[ConflictResult] = None):
        self.ip_address = ip_address
        self.conflict = conflict
        if conflict and conflict.conflicting_device:
            holder = conflict.conflicting_device
            message = f"IP {ip_address} is already used by device '{holder.name}' (id={holder.id})"
        else:
            message = f"IP {ip_address} is already used in this project"
        super().__init__(message)


class IPAMService:
    """
    Per-project address allocator and conflict checker.
    Holds no state besides the pool registry it was given.
    """

    def __init__(self, registry: AddressPoolRegistry):
        self.registry = registry

    def used_addresses(self, db: Session, project_id: int, subnet: str) -> set:
        rows = db.query(Device.ip_address).filter(
            Device.project_id == project_id,
            Device.ip_address.like(f"{subnet}.%"),
        ).all()
        return {ip for (ip,) in rows}

    def next_address(
        self,
        db: Session,
        project_id: int,
        device_type: Optional[str],
        category: Optional[str],
    ) -> AllocationResult:
        """Tìm IP rảnh đầu tiên trong dải của loại thiết bị"""
        entry = self.registry.lookup(device_type, category)
        used = self.used_addresses(db, project_id, entry.subnet)

        for host in range(entry.range_start, entry.range_end + 1):
            candidate = entry.address(host)
            if candidate not in used:
                return AllocationResult(address=candidate, vlan_id=entry.vlan_id)

        logger.warning(
            f"Pool '{entry.key}' exhausted in project {project_id} "
            f"({entry.subnet}.{entry.range_start}-{entry.range_end}), "
            f"falling back to {entry.fallback_address}"
        )
        return AllocationResult(
            address=entry.fallback_address,
            vlan_id=entry.vlan_id,
            warning=RANGE_EXHAUSTED_WARNING,
        )

    def assign(
        self,
        db: Session,
        project_id: int,
        device_type: Optional[str],
        category: Optional[str],
    ) -> Tuple[Optional[str], int, Optional[str]]:
        """
        Pick an address for a device about to be saved.

        Returns (address, vlan, warning). When the pool is exhausted and the
        fallback address is itself taken, the device is left without an
        address so the (project, ip) constraint holds.
        """
        allocation = self.next_address(db, project_id, device_type, category)
        if not allocation.warning:
            return allocation.address, allocation.vlan_id, None

        if self.check_conflict(db, project_id, allocation.address).has_conflict:
            return (
                None,
                allocation.vlan_id,
                f"{allocation.warning}; fallback {allocation.address} already in use, "
                f"IP left unassigned",
            )
        return allocation.address, allocation.vlan_id, f"{allocation.warning} ({allocation.address})"

    def check_conflict(
        self,
        db: Session,
        project_id: int,
        ip_address: str,
        exclude_device_id: Optional[int] = None,
    ) -> ConflictResult:
        query = db.query(Device).filter(
            Device.project_id == project_id,
            Device.ip_address == ip_address,
        )
        if exclude_device_id is not None:
            query = query.filter(Device.id != exclude_device_id)

        device = query.order_by(Device.id).first()
        if device is None:
            return ConflictResult(has_conflict=False)

        return ConflictResult(
            has_conflict=True,
            conflicting_device=ConflictingDevice(
                id=device.id,
                name=device.name,
                category=device.category,
            ),
        )

    def ensure_available(
        self,
        db: Session,
        project_id: int,
        ip_address: str,
        exclude_device_id: Optional[int] = None,
    ):
        """Raise IPConflictError if the address is taken"""
        result = self.check_conflict(db, project_id, ip_address, exclude_device_id)
        if result.has_conflict:
            logger.warning(
                f"IP conflict in project {project_id}: {ip_address} "
                f"held by device {result.conflicting_device.id}"
            )
            raise IPConflictError(ip_address, result)
