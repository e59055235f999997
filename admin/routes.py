# src/admin/routes.py
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from auth.models import Admin
from auth.schemas import AdminCreate, AdminUpdate, AdminResponse
from auth.routes import get_current_admin
from admin.schemas import ActivityLogResponse
from admin.services import ActivityLogger, AdminService, ActionType, ResourceType
from database import get_db

router = APIRouter(prefix="/admin", tags=["admin"])

@router.get("/logs", response_model=List[ActivityLogResponse])
def get_admin_logs(
    admin_id: Optional[str] = None,
    resource_type: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Retrieve admin activity logs, newest first."""
    return ActivityLogger.get_logs(db, admin_id=admin_id, resource_type=resource_type, limit=limit)

@router.get("", response_model=List[AdminResponse])
def get_admins(
    is_active: Optional[bool] = None,
    is_super_admin: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Retrieve admins with optional filters."""
    return AdminService.list_admins(db, is_active=is_active, is_super_admin=is_super_admin)

@router.post("", response_model=AdminResponse, status_code=201)
def create_admin(
    admin_data: AdminCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Create an admin account."""
    admin = AdminService.create_admin(admin_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.ADMIN,
        resource_id=admin.id, description=f"Created admin {admin.username}",
        metadata={"new_values": {"username": admin.username, "is_super_admin": admin.is_super_admin}},
        request=request
    )
    return admin

@router.get("/{admin_id}", response_model=AdminResponse)
def get_admin(admin_id: str, db: Session = Depends(get_db), current_admin: Admin = Depends(get_current_admin)):
    return AdminService.get_admin(admin_id, db)

@router.patch("/{admin_id}", response_model=AdminResponse)
def update_admin(
    admin_id: str,
    admin_data: AdminUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Update an admin account; a password in the body replaces the current one."""
    admin, old_values, password_changed = AdminService.update_admin(admin_id, admin_data, current_admin, db)
    new_values = {key: getattr(admin, key) for key in old_values}
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.ADMIN,
        resource_id=admin.id, description=f"Updated admin {admin.username}",
        metadata={"old_values": old_values, "new_values": new_values},
        request=request
    )
    if password_changed:
        ActivityLogger.log(
            db, current_admin.id, ActionType.PASSWORD_CHANGE, ResourceType.ADMIN,
            resource_id=admin.id, description=f"Changed password of admin {admin.username}", request=request
        )
    return admin

@router.delete("/{admin_id}", response_model=AdminResponse)
def delete_admin(
    admin_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Deactivate an admin account."""
    admin = AdminService.deactivate_admin(admin_id, current_admin, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.ADMIN,
        resource_id=admin.id, description=f"Deactivated admin {admin.username}", request=request
    )
    return admin
