# src/auth/models.py
from sqlalchemy import Column, String, Boolean, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from database import Base, generate_uuid
from datetime import datetime
from timeutils import utcnow

class Admin(Base):
    """Represents a back-office administrator account."""
    __tablename__ = "admins"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    username: str = Column(String(50), unique=True, index=True, nullable=False)
    password_hash: str = Column(String, nullable=False)
    full_name: str = Column(String(255), nullable=True)
    email: str = Column(String(255), nullable=True)
    is_super_admin: bool = Column(Boolean, nullable=False, default=False)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    last_login_at: datetime = Column(DateTime, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    activity_logs = relationship("AdminActivityLog", back_populates="admin")

class AdminActivityLog(Base):
    """Represents an audit-trail entry for an admin action."""
    __tablename__ = "admin_activity_log"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    admin_id: str = Column(String(36), ForeignKey("admins.id"), nullable=False, index=True)
    action_type: str = Column(String(30), nullable=False)
    resource_type: str = Column(String(30), nullable=False)
    resource_id: str = Column(String(36), nullable=True)
    description: str = Column(Text, nullable=True)
    metadata_: dict = Column("metadata", JSON, nullable=True)
    ip_address: str = Column(String(64), nullable=True)
    user_agent: str = Column(Text, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow, index=True)

    admin = relationship("Admin", back_populates="activity_logs")
