# backend/api/v1/devices.py
"""
Device API Endpoints
CRUD for project devices plus the IP helpers used by the device form:
next free IP, conflict check and the pool table.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from api.deps import (
    get_device_manager,
    get_ipam,
    get_project_manager,
    ip_conflict,
    not_found,
)
from core.device_manager import DeviceManager, DeviceNotFoundError
from core.ipam import IPAMService, IPConflictError
from core.project_manager import ProjectManager, ProjectNotFoundError
from database.models import DeviceCategory
from database.session import get_db
from schemas.base import BaseResponse, ErrorResponse
from schemas.device import (
    BulkDeviceCreate,
    BulkDeviceResponse,
    ConflictingDeviceInfo,
    DeviceCreate,
    DeviceCreateResponse,
    DeviceResponse,
    DeviceUpdate,
    IPConfigResponse,
    IPConflictCheckRequest,
    IPConflictCheckResponse,
    NextIPResponse,
)

router = APIRouter()

# Các trường không được phép đặt về None khi cập nhật
REQUIRED_DEVICE_FIELDS = ("name", "category", "device_type", "status", "is_active", "vlan")


# === IP Management ===
# Declared before /devices/{device_id} so the literal paths win.

@router.get(
    "/devices/ip-config",
    response_model=IPConfigResponse,
    summary="IP pool table",
    description="Subnet, VLAN, range and fallback address per device type or category"
)
def get_ip_config(ipam: IPAMService = Depends(get_ipam)):
    return IPConfigResponse(
        pools=ipam.registry.as_dict(),
        default_pool=ipam.registry.default_key,
    )


@router.get(
    "/devices/next-ip/{project_id}/{device_type}",
    response_model=NextIPResponse,
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="Next available IP",
    description="First unused address of the device type's pool in this project"
)
def get_next_ip(
    project_id: int,
    device_type: str,
    category: Optional[str] = Query(None, description="Fallback key when the type has no pool"),
    db: Session = Depends(get_db),
    ipam: IPAMService = Depends(get_ipam),
    projects: ProjectManager = Depends(get_project_manager),
):
    try:
        projects.get_project_or_raise(db, project_id)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")

    result = ipam.next_address(db, project_id, device_type, category)
    return NextIPResponse(ip=result.address, vlan=result.vlan_id, warning=result.warning)


@router.post(
    "/devices/check-ip-conflict",
    response_model=IPConflictCheckResponse,
    summary="Check IP conflict",
)
def check_ip_conflict(
    check_in: IPConflictCheckRequest,
    db: Session = Depends(get_db),
    ipam: IPAMService = Depends(get_ipam),
):
    result = ipam.check_conflict(
        db, check_in.project_id, check_in.ip_address, check_in.exclude_device_id
    )
    if not result.has_conflict:
        return IPConflictCheckResponse(has_conflict=False)

    holder = result.conflicting_device
    return IPConflictCheckResponse(
        has_conflict=True,
        conflicting_device=ConflictingDeviceInfo(
            id=holder.id, name=holder.name, category=holder.category
        ),
    )


# === Device CRUD ===

@router.get(
    "/devices/project/{project_id}",
    response_model=List[DeviceResponse],
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="List devices of a project",
)
def list_project_devices(
    project_id: int,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    try:
        items = devices.get_devices_for_project(db, project_id)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    return [DeviceResponse.model_validate(d) for d in items]


@router.get(
    "/devices/project/{project_id}/category/{category}",
    response_model=List[DeviceResponse],
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="List devices of a project by category",
)
def list_project_devices_by_category(
    project_id: int,
    category: DeviceCategory,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    try:
        items = devices.get_devices_for_project(db, project_id, category=category.value)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    return [DeviceResponse.model_validate(d) for d in items]


@router.post(
    "/devices",
    response_model=DeviceCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Project not found", "model": ErrorResponse},
        409: {"description": "IP already used in project", "model": ErrorResponse},
    },
    summary="Create device",
    description="Creates a device; an empty ip_address is auto-assigned from the device type's pool"
)
def create_device(
    device_in: DeviceCreate,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    data = device_in.model_dump(exclude={"project_id", "auto_assign_ip"})
    try:
        created = devices.create_device(
            db, device_in.project_id, data, auto_assign_ip=device_in.auto_assign_ip
        )
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    except IPConflictError as e:
        raise ip_conflict(e)

    response = DeviceCreateResponse.model_validate(created.device)
    response.ip_warning = created.warning
    return response


@router.post(
    "/devices/bulk",
    response_model=BulkDeviceResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Project not found", "model": ErrorResponse},
        409: {"description": "IP already used in project", "model": ErrorResponse},
    },
    summary="Bulk create devices",
)
def bulk_create_devices(
    bulk_in: BulkDeviceCreate,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    items = [d.model_dump() for d in bulk_in.devices]
    try:
        result = devices.bulk_create(db, bulk_in.project_id, items)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    except IPConflictError as e:
        raise ip_conflict(e)

    return BulkDeviceResponse(
        devices=[DeviceResponse.model_validate(d) for d in result.devices],
        created=len(result.devices),
        warnings=result.warnings,
    )


@router.get(
    "/devices/{device_id}",
    response_model=DeviceResponse,
    responses={404: {"description": "Device not found", "model": ErrorResponse}},
    summary="Get device by ID",
)
def get_device(
    device_id: int,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    try:
        device = devices.get_device_or_raise(db, device_id)
    except DeviceNotFoundError as e:
        raise not_found(e, "DEVICE_NOT_FOUND")
    return DeviceResponse.model_validate(device)


@router.put(
    "/devices/{device_id}",
    response_model=DeviceResponse,
    responses={
        404: {"description": "Device not found", "model": ErrorResponse},
        409: {"description": "IP already used in project", "model": ErrorResponse},
    },
    summary="Update device",
    description="A changed ip_address is checked against the other devices of the project"
)
def update_device(
    device_id: int,
    device_update: DeviceUpdate,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    changes = device_update.model_dump(exclude_unset=True)
    for key in REQUIRED_DEVICE_FIELDS:
        if key in changes and changes[key] is None:
            changes.pop(key)

    try:
        device = devices.update_device(db, device_id, changes)
    except DeviceNotFoundError as e:
        raise not_found(e, "DEVICE_NOT_FOUND")
    except IPConflictError as e:
        raise ip_conflict(e)
    return DeviceResponse.model_validate(device)


@router.delete(
    "/devices/{device_id}",
    response_model=BaseResponse,
    responses={404: {"description": "Device not found", "model": ErrorResponse}},
    summary="Delete device",
)
def delete_device(
    device_id: int,
    db: Session = Depends(get_db),
    devices: DeviceManager = Depends(get_device_manager),
):
    try:
        devices.delete_device(db, device_id)
    except DeviceNotFoundError as e:
        raise not_found(e, "DEVICE_NOT_FOUND")
    return BaseResponse(success=True, message="Device deleted successfully")
