# backend/core/project_manager.py
"""
Project Manager
CRUD for installation projects and project cloning.

Cloning copies the descriptive fields of a project and, optionally, its
devices. Cloned devices never keep the source addresses: each one is
re-addressed inside the new project through the IPAM service.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.ipam import IPAMService, IPConflictError
from database.models import Device, Project, ProjectStatus

logger = logging.getLogger(__name__)


# Fields copied verbatim when cloning
PROJECT_CLONE_FIELDS = (
    "description", "client_name", "client_email", "client_phone",
    "address", "notes",
)

DEVICE_CLONE_FIELDS = (
    "name", "category", "device_type", "manufacturer", "model",
    "firmware_version", "location", "room", "rack_position", "config_notes",
    "is_active",
)


class ProjectNotFoundError(LookupError):
    def __init__(self, project_id: int):
        self.project_id = project_id
        super().__init__(f"Project with id {project_id} not found")


@dataclass
class CloneResult:
    project: Project
    devices_cloned: int = 0
    warnings: List[str] = field(default_factory=list)


class ProjectManager:
    def __init__(self, ipam: IPAMService):
        self.ipam = ipam

    def get_all_projects(self, db: Session, status: Optional[str] = None) -> List[Project]:
        query = db.query(Project)
        if status:
            query = query.filter(Project.status == status)
        return query.order_by(Project.created_at.desc(), Project.id.desc()).all()

    def get_project_by_id(self, db: Session, project_id: int) -> Optional[Project]:
        return db.query(Project).filter(Project.id == project_id).first()

    def get_project_or_raise(self, db: Session, project_id: int) -> Project:
        project = self.get_project_by_id(db, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def create_project(self, db: Session, data: dict) -> Project:
        project = Project(**data)
        db.add(project)
        db.commit()
        db.refresh(project)
        logger.info(f"Project '{project.name}' created (id={project.id})")
        return project

    def update_project(self, db: Session, project_id: int, changes: dict) -> Project:
        project = self.get_project_or_raise(db, project_id)
        for key, value in changes.items():
            setattr(project, key, value)
        db.commit()
        db.refresh(project)
        logger.info(f"Project '{project.name}' updated")
        return project

    def delete_project(self, db: Session, project_id: int):
        project = self.get_project_or_raise(db, project_id)
        name = project.name
        db.delete(project)
        db.commit()
        logger.info(f"Project '{name}' deleted (id={project_id})")

    def clone_project(
        self,
        db: Session,
        project_id: int,
        name: str,
        clone_devices: bool = True,
    ) -> CloneResult:
        """
        Clone a project under a new name.

        Devices are copied in id order. A device that had an address gets the
        next free one of its pool in the new project, so clones never share
        the source project's addresses. Serial/MAC numbers are per-unit and
        are not copied.
        """
        source = self.get_project_or_raise(db, project_id)

        clone = Project(name=name, status=ProjectStatus.PLANNING.value)
        for attr in PROJECT_CLONE_FIELDS:
            setattr(clone, attr, getattr(source, attr))
        db.add(clone)
        db.flush()

        result = CloneResult(project=clone)

        if clone_devices:
            for device in list(source.devices):
                copy = Device(project_id=clone.id, vlan=device.vlan)
                for attr in DEVICE_CLONE_FIELDS:
                    setattr(copy, attr, getattr(device, attr))

                if device.ip_address:
                    address, vlan, warning = self.ipam.assign(
                        db, clone.id, device.device_type, device.category
                    )
                    copy.ip_address = address
                    copy.vlan = vlan
                    if warning:
                        result.warnings.append(f"{device.name}: {warning}")

                db.add(copy)
                # Flush để lần cấp IP kế tiếp thấy địa chỉ vừa gán
                try:
                    db.flush()
                except IntegrityError:
                    db.rollback()
                    raise IPConflictError(copy.ip_address)
                result.devices_cloned += 1

        db.commit()
        db.refresh(clone)

        logger.info(
            f"Project '{source.name}' cloned to '{clone.name}' (id={clone.id}), "
            f"{result.devices_cloned} devices"
        )
        return result
