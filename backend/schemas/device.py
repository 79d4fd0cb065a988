# backend/schemas/device.py
"""
Pydantic Schemas for Devices and IP management
"""

import ipaddress
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator

from database.models import DeviceCategory, DeviceStatus, DEVICE_TYPES


def _validate_ip(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    try:
        ipaddress.IPv4Address(v)
    except ValueError:
        raise ValueError(f"'{v}' is not a valid IPv4 address")
    return v


def _validate_device_type(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in DEVICE_TYPES:
        raise ValueError(f"Unknown device type '{v}'")
    return v


# =============================================================================
# Device Schemas
# =============================================================================

class DeviceFields(BaseModel):
    """Fields shared by create requests"""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=1, max_length=200)
    category: DeviceCategory
    device_type: str = Field("generic", description="Device type, e.g. camera, nvr, touch-panel")
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    mac_address: Optional[str] = None
    ip_address: Optional[str] = Field(None, description="Leave empty to auto-assign")
    vlan: Optional[int] = Field(None, ge=1, le=4094)
    firmware_version: Optional[str] = None
    location: Optional[str] = None
    room: Optional[str] = None
    rack_position: Optional[str] = None
    config_notes: Optional[str] = None
    status: DeviceStatus = DeviceStatus.NOT_INSTALLED

    @field_validator("ip_address")
    @classmethod
    def validate_ip(cls, v):
        return _validate_ip(v)

    @field_validator("device_type")
    @classmethod
    def validate_device_type(cls, v):
        return _validate_device_type(v)


class DeviceCreate(DeviceFields):
    """Schema for creating a device"""
    project_id: int
    auto_assign_ip: bool = Field(True, description="Assign the next free IP when ip_address is empty")


class BulkDeviceCreate(BaseModel):
    project_id: int
    devices: List[DeviceFields] = Field(..., min_length=1)


class DeviceUpdate(BaseModel):
    """Schema for updating a device, every field optional"""
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[DeviceCategory] = None
    device_type: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    mac_address: Optional[str] = None
    ip_address: Optional[str] = None
    vlan: Optional[int] = Field(None, ge=1, le=4094)
    firmware_version: Optional[str] = None
    location: Optional[str] = None
    room: Optional[str] = None
    rack_position: Optional[str] = None
    config_notes: Optional[str] = None
    status: Optional[DeviceStatus] = None
    is_active: Optional[bool] = None

    @field_validator("ip_address")
    @classmethod
    def validate_ip(cls, v):
        return _validate_ip(v)

    @field_validator("device_type")
    @classmethod
    def validate_device_type(cls, v):
        return _validate_device_type(v)


class DeviceResponse(BaseModel):
    id: int
    project_id: int
    name: str
    category: str
    device_type: str
    manufacturer: Optional[str]
    model: Optional[str]
    serial_number: Optional[str]
    mac_address: Optional[str]
    ip_address: Optional[str]
    vlan: int
    firmware_version: Optional[str]
    location: Optional[str]
    room: Optional[str]
    rack_position: Optional[str]
    config_notes: Optional[str]
    status: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DeviceCreateResponse(DeviceResponse):
    ip_warning: Optional[str] = None


class BulkDeviceResponse(BaseModel):
    devices: List[DeviceResponse]
    created: int
    warnings: List[str] = []


# =============================================================================
# IP Management Schemas
# =============================================================================

class NextIPResponse(BaseModel):
    ip: str
    vlan: int
    warning: Optional[str] = None


class IPConflictCheckRequest(BaseModel):
    project_id: int
    ip_address: str
    exclude_device_id: Optional[int] = None

    @field_validator("ip_address")
    @classmethod
    def validate_ip(cls, v):
        v = _validate_ip(v)
        if v is None:
            raise ValueError("ip_address is required")
        return v


class ConflictingDeviceInfo(BaseModel):
    id: int
    name: str
    category: str


class IPConflictCheckResponse(BaseModel):
    has_conflict: bool
    conflicting_device: Optional[ConflictingDeviceInfo] = None


class IPConfigResponse(BaseModel):
    pools: Dict[str, Dict[str, Any]]
    default_pool: str
