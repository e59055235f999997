# src/auth/routes.py
from fastapi import APIRouter, Cookie, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session
from typing import Optional
from auth.services import AuthService
from auth.schemas import AdminLogin, AdminResponse, SessionResponse
from auth.models import Admin
from admin.services import ActivityLogger, ActionType, ResourceType
from config import settings
from database import get_db

router = APIRouter(prefix="/admin", tags=["auth"])

def get_optional_admin(
    session_token: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
    db: Session = Depends(get_db)
) -> Optional[Admin]:
    """Resolve the session cookie to an active admin, or None."""
    if not session_token:
        return None
    admin_id = AuthService.decode_session_token(session_token)
    if not admin_id:
        return None
    admin = AuthService.get_admin_by_id(admin_id, db)
    if not admin or not admin.is_active:
        return None
    return admin

def get_current_admin(admin: Optional[Admin] = Depends(get_optional_admin)) -> Admin:
    """Require a logged-in admin."""
    if admin is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return admin

@router.post("/login", response_model=AdminResponse)
def login(credentials: AdminLogin, request: Request, response: Response, db: Session = Depends(get_db)):
    """Log in with username and password and set the session cookie."""
    admin = AuthService.authenticate_admin(credentials.username, credentials.password, db)
    if not admin:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect username or password")
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        AuthService.create_session_token(admin.id),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
    )
    ActivityLogger.log(
        db, admin.id, ActionType.LOGIN, ResourceType.ADMIN,
        resource_id=admin.id, description=f"Admin {admin.username} logged in", request=request
    )
    return admin

@router.get("/session", response_model=SessionResponse)
def get_session(admin: Optional[Admin] = Depends(get_optional_admin)):
    """Return the logged-in admin, if any."""
    return SessionResponse(admin=AdminResponse.from_orm(admin) if admin else None)

@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    admin: Optional[Admin] = Depends(get_optional_admin)
):
    """Clear the session cookie."""
    if admin:
        ActivityLogger.log(
            db, admin.id, ActionType.LOGOUT, ResourceType.ADMIN,
            resource_id=admin.id, description=f"Admin {admin.username} logged out", request=request
        )
    response.delete_cookie(
        settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite=settings.SESSION_COOKIE_SAMESITE,
    )
    return None
