# backend/api/deps.py
"""
Shared FastAPI dependencies

Services are created once in main.create_app() and stored on app.state;
routers pull them from there instead of importing module-level singletons.
"""

from fastapi import HTTPException, Request, status

from core.device_manager import DeviceManager
from core.ipam import IPAMService, IPConflictError
from core.project_manager import ProjectManager


def get_ipam(request: Request) -> IPAMService:
    return request.app.state.ipam


def get_project_manager(request: Request) -> ProjectManager:
    return request.app.state.project_manager


def get_device_manager(request: Request) -> DeviceManager:
    return request.app.state.device_manager


def not_found(error: LookupError, error_code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": str(error),
            "error_code": error_code
        }
    )


def ip_conflict(error: IPConflictError) -> HTTPException:
    detail = {
        "error": str(error),
        "error_code": "IP_CONFLICT",
        "ip_address": error.ip_address,
    }
    if error.conflict and error.conflict.conflicting_device:
        holder = error.conflict.conflicting_device
        detail["conflicting_device"] = {
            "id": holder.id,
            "name": holder.name,
            "category": holder.category,
        }
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
