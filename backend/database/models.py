# backend/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
from enum import Enum

Base = declarative_base()


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class DeviceCategory(str, Enum):
    NETWORK = "network"
    CAMERA = "camera"
    SECURITY = "security"
    CONTROL_SYSTEM = "control-system"
    LIGHTING = "lighting"
    AV = "av"
    OTHER = "other"


class DeviceStatus(str, Enum):
    NOT_INSTALLED = "not-installed"
    INSTALLED = "installed"
    CONFIGURED = "configured"
    TESTED = "tested"
    COMMISSIONED = "commissioned"


# Loại thiết bị theo từng nhóm
DEVICE_TYPES = (
    # Network
    "router", "switch", "access-point",
    # Camera
    "camera", "nvr", "dvr",
    # Security
    "alarm-panel", "keypad", "door-controller",
    # Control System
    "control-processor", "touch-panel", "secondary-processor", "door-station", "remote",
    # Lighting
    "lighting-gateway", "dali-gateway",
    # AV
    "receiver", "tv", "projector", "audio-matrix", "video-matrix", "amplifier",
    "soundbar", "media-player",
    # Other
    "fan", "irrigation", "hvac", "relay", "fireplace", "shade", "pool", "generic",
)


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    client_name = Column(String, nullable=True)
    client_email = Column(String, nullable=True)
    client_phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    status = Column(String, default=ProjectStatus.PLANNING.value)
    start_date = Column(DateTime, nullable=True)
    completion_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    devices = relationship(
        "Device",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Device.id",
    )

    @property
    def device_count(self) -> int:
        return len(self.devices)


class Device(Base):
    __tablename__ = "devices"
    # Một IP chỉ thuộc về một thiết bị trong cùng project
    __table_args__ = (
        UniqueConstraint("project_id", "ip_address", name="uq_device_project_ip"),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"),
                        nullable=False, index=True)
    name = Column(String, nullable=False)

    category = Column(String, nullable=False, index=True)
    device_type = Column(String, default="generic", index=True)

    manufacturer = Column(String, nullable=True)
    model = Column(String, nullable=True)
    serial_number = Column(String, nullable=True)
    mac_address = Column(String, nullable=True)
    ip_address = Column(String, nullable=True, index=True)
    vlan = Column(Integer, default=1)
    firmware_version = Column(String, nullable=True)

    location = Column(String, nullable=True)
    room = Column(String, nullable=True)
    rack_position = Column(String, nullable=True)
    config_notes = Column(Text, nullable=True)

    status = Column(String, default=DeviceStatus.NOT_INSTALLED.value)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="devices")
