# backend/api/v1/projects.py
"""
Project API Endpoints
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from api.deps import get_project_manager, ip_conflict, not_found
from core.ipam import IPConflictError
from core.project_manager import ProjectManager, ProjectNotFoundError
from database.models import ProjectStatus
from database.session import get_db
from schemas.base import BaseResponse, ErrorResponse
from schemas.project import (
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectListResponse,
    ProjectCloneRequest,
    ProjectCloneResponse,
)

router = APIRouter()


@router.get(
    "/projects",
    response_model=ProjectListResponse,
    summary="List projects",
)
def list_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status", description="Filter by status"),
    db: Session = Depends(get_db),
    projects: ProjectManager = Depends(get_project_manager),
):
    items = projects.get_all_projects(
        db, status=status_filter.value if status_filter else None
    )
    return ProjectListResponse(
        projects=[ProjectResponse.model_validate(p) for p in items],
        total=len(items)
    )


@router.post(
    "/projects",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
)
def create_project(
    project_in: ProjectCreate,
    db: Session = Depends(get_db),
    projects: ProjectManager = Depends(get_project_manager),
):
    project = projects.create_project(db, project_in.model_dump())
    return ProjectResponse.model_validate(project)


@router.get(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="Get project by ID",
)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    projects: ProjectManager = Depends(get_project_manager),
):
    try:
        project = projects.get_project_or_raise(db, project_id)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    return ProjectResponse.model_validate(project)


@router.put(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="Update project",
)
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    db: Session = Depends(get_db),
    projects: ProjectManager = Depends(get_project_manager),
):
    changes = project_update.model_dump(exclude_unset=True)
    # Không cho phép xoá các trường bắt buộc
    for key in ("name", "status"):
        if key in changes and changes[key] is None:
            changes.pop(key)
    try:
        project = projects.update_project(db, project_id, changes)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    return ProjectResponse.model_validate(project)


@router.delete(
    "/projects/{project_id}",
    response_model=BaseResponse,
    responses={404: {"description": "Project not found", "model": ErrorResponse}},
    summary="Delete project and its devices",
)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    projects: ProjectManager = Depends(get_project_manager),
):
    try:
        projects.delete_project(db, project_id)
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    return BaseResponse(success=True, message="Project deleted successfully")


@router.post(
    "/projects/{project_id}/clone",
    response_model=ProjectCloneResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"description": "Project not found", "model": ErrorResponse},
        409: {"description": "IP conflict while cloning", "model": ErrorResponse},
    },
    summary="Clone project",
    description="Copy a project and (optionally) its devices; cloned devices get fresh IPs"
)
def clone_project(
    project_id: int,
    clone_in: ProjectCloneRequest,
    db: Session = Depends(get_db),
    projects: ProjectManager = Depends(get_project_manager),
):
    try:
        result = projects.clone_project(
            db, project_id, clone_in.name, clone_devices=clone_in.clone_devices
        )
    except ProjectNotFoundError as e:
        raise not_found(e, "PROJECT_NOT_FOUND")
    except IPConflictError as e:
        raise ip_conflict(e)

    return ProjectCloneResponse(
        project=ProjectResponse.model_validate(result.project),
        devices_cloned=result.devices_cloned,
        warnings=result.warnings,
    )
