# backend/schemas/project.py
"""
Pydantic Schemas for Projects
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from database.models import ProjectStatus


class ProjectCreate(BaseModel):
    """Schema for creating a project"""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=1, max_length=200, description="Project name")
    description: Optional[str] = None
    client_name: Optional[str] = Field(None, max_length=200)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500, description="Site address")
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None


class ProjectUpdate(BaseModel):
    """Schema for updating a project, every field optional"""
    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = Field(None, max_length=200)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None


class ProjectCloneRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Name of the new project")
    clone_devices: bool = Field(True, description="Copy devices with freshly assigned IPs")


class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    client_name: Optional[str]
    client_email: Optional[str]
    client_phone: Optional[str]
    address: Optional[str]
    status: str
    start_date: Optional[datetime]
    completion_date: Optional[datetime]
    notes: Optional[str]
    device_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    total: int


class ProjectCloneResponse(BaseModel):
    project: ProjectResponse
    devices_cloned: int
    warnings: List[str] = []
