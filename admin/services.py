# src/admin/services.py
import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Tuple
from auth.models import Admin, AdminActivityLog
from auth.schemas import AdminCreate, AdminUpdate
from auth.services import AuthService
from admin.schemas import ActivityLogResponse
from database import atomic
from errors import AuditLogError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

class ActionType:
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"
    BULK_UPDATE = "BULK_UPDATE"

class ResourceType:
    TRYOUT = "TRYOUT"
    QUESTION = "QUESTION"
    ANSWER_OPTION = "ANSWER_OPTION"
    USER = "USER"
    PACKAGE = "PACKAGE"
    CATEGORY = "CATEGORY"
    ADMIN_PROFILE = "ADMIN_PROFILE"
    ADMIN = "ADMIN"
    SETTINGS = "SETTINGS"
    SUBSCRIPTION_TYPE = "SUBSCRIPTION_TYPE"
    TRANSACTION = "TRANSACTION"
    USER_SUBSCRIPTION = "USER_SUBSCRIPTION"
    TRYOUT_SESSION = "TRYOUT_SESSION"
    SUB_CHAPTER = "SUB_CHAPTER"

def get_request_info(request: Optional[Request]) -> Tuple[Optional[str], Optional[str]]:
    """Client IP (first x-forwarded-for hop, then x-real-ip, then the socket peer) and user agent."""
    if request is None:
        return None, None
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
    return ip_address, request.headers.get("user-agent")

class ActivityLogger:
    @staticmethod
    def log(
            db: Session,
            admin_id: str,
            action_type: str,
            resource_type: str,
            resource_id: Optional[str] = None,
            description: Optional[str] = None,
            metadata: Optional[Dict[str, Any]] = None,
            request: Optional[Request] = None
    ) -> Optional[AdminActivityLog]:
        """Record an admin action. Best-effort: a failed write is logged and never raised."""
        try:
            return ActivityLogger._write(db, admin_id, action_type, resource_type, resource_id, description, metadata, request)
        except AuditLogError as e:
            logger.error(f"Failed to log {action_type} {resource_type} {resource_id} by admin {admin_id}: {str(e)}")
            return None
        except Exception as e:
            # Building the entry failed before anything was written
            logger.error(
                f"Failed to log {action_type} {resource_type} {resource_id} by admin {admin_id}: {str(e)}",
                exc_info=True
            )
            return None

    @staticmethod
    def _write(db, admin_id, action_type, resource_type, resource_id, description, metadata, request) -> AdminActivityLog:
        ip_address, user_agent = get_request_info(request)
        entry = AdminActivityLog(
            admin_id=admin_id,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=resource_id,
            description=description,
            metadata_=jsonable_encoder(metadata) if metadata is not None else None,
            ip_address=ip_address,
            user_agent=user_agent
        )
        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise AuditLogError(str(e)) from e
        return entry

    @staticmethod
    def get_logs(
            db: Session,
            admin_id: Optional[str] = None,
            resource_type: Optional[str] = None,
            limit: int = 100
    ) -> List[ActivityLogResponse]:
        query = db.query(AdminActivityLog, Admin.username).outerjoin(Admin, Admin.id == AdminActivityLog.admin_id)
        if admin_id:
            query = query.filter(AdminActivityLog.admin_id == admin_id)
        if resource_type:
            query = query.filter(AdminActivityLog.resource_type == resource_type)
        rows = query.order_by(AdminActivityLog.created_at.desc()).limit(limit).all()
        return [
            ActivityLogResponse.from_orm(entry).model_copy(update={"admin_username": username})
            for entry, username in rows
        ]

class AdminService:
    @staticmethod
    def list_admins(db: Session, is_active: Optional[bool] = None, is_super_admin: Optional[bool] = None) -> List[Admin]:
        query = db.query(Admin)
        if is_active is not None:
            query = query.filter(Admin.is_active == is_active)
        if is_super_admin is not None:
            query = query.filter(Admin.is_super_admin == is_super_admin)
        return query.order_by(Admin.created_at.desc()).all()

    @staticmethod
    def get_admin(admin_id: str, db: Session) -> Admin:
        admin = AuthService.get_admin_by_id(admin_id, db)
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    @staticmethod
    def create_admin(admin_data: AdminCreate, db: Session) -> Admin:
        if AuthService.get_admin_by_username(admin_data.username, db):
            raise ConflictError("Username already taken")
        admin = Admin(
            username=admin_data.username,
            password_hash=AuthService.hash_password(admin_data.password),
            full_name=admin_data.full_name or None,
            email=admin_data.email or None,
            is_super_admin=admin_data.is_super_admin,
            is_active=True
        )
        with atomic(db):
            db.add(admin)
        db.refresh(admin)
        return admin

    @staticmethod
    def update_admin(admin_id: str, admin_data: AdminUpdate, current_admin: Admin, db: Session) -> Tuple[Admin, Dict[str, Any], bool]:
        """Apply a partial update. Returns the admin, the previous values and whether the password changed."""
        admin = AdminService.get_admin(admin_id, db)
        updates = admin_data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")
        if admin.id == current_admin.id and updates.get("is_active") is False:
            raise ValidationError("You cannot deactivate your own account")
        if "username" in updates and updates["username"] != admin.username:
            if AuthService.get_admin_by_username(updates["username"], db):
                raise ConflictError("Username already taken")

        password = updates.pop("password", None)
        old_values = {key: getattr(admin, key) for key in updates}
        with atomic(db):
            for key, value in updates.items():
                setattr(admin, key, value)
            if password:
                admin.password_hash = AuthService.hash_password(password)
        db.refresh(admin)
        return admin, old_values, bool(password)

    @staticmethod
    def deactivate_admin(admin_id: str, current_admin: Admin, db: Session) -> Admin:
        """Soft delete: the account stays for the audit trail but can no longer log in."""
        admin = AdminService.get_admin(admin_id, db)
        if admin.id == current_admin.id:
            raise ValidationError("You cannot delete your own account")
        with atomic(db):
            admin.is_active = False
        db.refresh(admin)
        return admin
