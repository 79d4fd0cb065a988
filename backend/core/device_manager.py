# backend/core/device_manager.py
"""
Device Manager
CRUD for project devices with automatic IP assignment and conflict checks
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.ipam import IPAMService, IPConflictError
from core.project_manager import ProjectManager
from database.models import Device

logger = logging.getLogger(__name__)


class DeviceNotFoundError(LookupError):
    def __init__(self, device_id: int):
        self.device_id = device_id
        super().__init__(f"Device with id {device_id} not found")


@dataclass
class CreatedDevice:
    device: Device
    warning: Optional[str] = None


@dataclass
class BulkCreateResult:
    devices: List[Device] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class DeviceManager:
    def __init__(self, ipam: IPAMService, projects: ProjectManager):
        self.ipam = ipam
        self.projects = projects

    # === Queries ===

    def get_devices_for_project(
        self, db: Session, project_id: int, category: Optional[str] = None
    ) -> List[Device]:
        self.projects.get_project_or_raise(db, project_id)
        query = db.query(Device).filter(Device.project_id == project_id)
        if category:
            query = query.filter(Device.category == category)
        return query.order_by(Device.created_at.desc(), Device.id.desc()).all()

    def get_device_by_id(self, db: Session, device_id: int) -> Optional[Device]:
        return db.query(Device).filter(Device.id == device_id).first()

    def get_device_or_raise(self, db: Session, device_id: int) -> Device:
        device = self.get_device_by_id(db, device_id)
        if device is None:
            raise DeviceNotFoundError(device_id)
        return device

    # === Mutations ===

    def _build_device(
        self, db: Session, project_id: int, data: dict, auto_assign_ip: bool = True
    ) -> CreatedDevice:
        """Create (unsaved, but flushed) device, picking an address if none was given"""
        data = dict(data)
        requested_vlan = data.pop("vlan", None)
        device = Device(project_id=project_id, **data)
        warning = None

        if device.ip_address:
            self.ipam.ensure_available(db, project_id, device.ip_address)
            device.vlan = requested_vlan or self.ipam.registry.default_vlan(
                device.device_type, device.category
            )
        elif auto_assign_ip:
            address, vlan, warning = self.ipam.assign(
                db, project_id, device.device_type, device.category
            )
            device.ip_address = address
            device.vlan = requested_vlan or vlan
        else:
            device.vlan = requested_vlan or 1

        db.add(device)
        self._flush(db, device.ip_address)
        return CreatedDevice(device=device, warning=warning)

    def _flush(self, db: Session, ip_address: Optional[str]):
        # Unique (project_id, ip_address) là chốt chặn cuối cho race condition
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Storage rejected duplicate IP {ip_address}")
            raise IPConflictError(ip_address)

    def create_device(
        self, db: Session, project_id: int, data: dict, auto_assign_ip: bool = True
    ) -> CreatedDevice:
        self.projects.get_project_or_raise(db, project_id)
        created = self._build_device(db, project_id, data, auto_assign_ip)
        db.commit()
        db.refresh(created.device)

        device = created.device
        logger.info(
            f"Device '{device.name}' ({device.device_type}) created in project "
            f"{project_id} with IP {device.ip_address or '-'} / VLAN {device.vlan}"
        )
        if created.warning:
            logger.warning(f"Device '{device.name}': {created.warning}")
        return created

    def bulk_create(self, db: Session, project_id: int, items: List[dict]) -> BulkCreateResult:
        """Create several devices in one transaction, each with its own fresh address"""
        self.projects.get_project_or_raise(db, project_id)
        result = BulkCreateResult()

        for data in items:
            created = self._build_device(db, project_id, data)
            result.devices.append(created.device)
            if created.warning:
                result.warnings.append(f"{created.device.name}: {created.warning}")

        db.commit()
        for device in result.devices:
            db.refresh(device)

        logger.info(f"Bulk created {len(result.devices)} devices in project {project_id}")
        return result

    def update_device(self, db: Session, device_id: int, changes: dict) -> Device:
        device = self.get_device_or_raise(db, device_id)

        new_ip = changes.get("ip_address")
        if "ip_address" in changes and new_ip and new_ip != device.ip_address:
            self.ipam.ensure_available(db, device.project_id, new_ip, exclude_device_id=device.id)

        for key, value in changes.items():
            setattr(device, key, value)

        self._flush(db, device.ip_address)
        db.commit()
        db.refresh(device)
        logger.info(f"Device '{device.name}' updated (id={device.id})")
        return device

    def delete_device(self, db: Session, device_id: int):
        device = self.get_device_or_raise(db, device_id)
        name = device.name
        db.delete(device)
        db.commit()
        logger.info(f"Device '{name}' deleted (id={device_id})")
