# src/auth/services.py
import logging

from sqlalchemy.orm import Session
from jose import JWTError, jwt
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import Optional
from auth.models import Admin
from config import settings
from database import atomic
from timeutils import utcnow

logger = logging.getLogger(__name__)

class AuthService:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt."""
        return AuthService.pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        return AuthService.pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def create_session_token(admin_id: str, expires_delta: Optional[timedelta] = None) -> str:
        """Create the signed JWT stored in the admin session cookie."""
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
        expire = datetime.now(timezone.utc) + expires_delta
        return jwt.encode({"sub": admin_id, "exp": expire}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_session_token(token: str) -> Optional[str]:
        """Return the admin id carried by a session token, or None when it is invalid or expired."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            return None
        return payload.get("sub")

    @staticmethod
    def get_admin_by_id(admin_id: str, db: Session) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.id == admin_id).first()

    @staticmethod
    def get_admin_by_username(username: str, db: Session) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.username == username).first()

    @staticmethod
    def authenticate_admin(username: str, password: str, db: Session) -> Optional[Admin]:
        """Check credentials of an active admin and stamp last_login_at."""
        admin = AuthService.get_admin_by_username(username.strip(), db)
        if not admin or not admin.is_active or not AuthService.verify_password(password, admin.password_hash):
            return None
        with atomic(db):
            admin.last_login_at = utcnow()
        db.refresh(admin)
        return admin

    @staticmethod
    def ensure_bootstrap_admin(db: Session) -> Optional[Admin]:
        """Create the configured super admin when no admin exists yet."""
        if not settings.BOOTSTRAP_ADMIN_USERNAME or not settings.BOOTSTRAP_ADMIN_PASSWORD:
            return None
        if db.query(Admin).first():
            return None
        admin = Admin(
            username=settings.BOOTSTRAP_ADMIN_USERNAME,
            password_hash=AuthService.hash_password(settings.BOOTSTRAP_ADMIN_PASSWORD),
            is_super_admin=True,
            is_active=True
        )
        with atomic(db):
            db.add(admin)
        logger.info(f"Created bootstrap super admin {admin.username}")
        return admin
