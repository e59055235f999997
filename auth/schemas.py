# src/auth/schemas.py
from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional
from base_schemas import CamelModel

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"

class AdminLogin(CamelModel):
    """Schema for admin login."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class AdminCreate(CamelModel):
    """Schema for creating an admin account."""
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=6, max_length=100)
    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None
    is_super_admin: bool = False

class AdminUpdate(CamelModel):
    """Schema for updating an admin account. An absent password keeps the current one."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    password: Optional[str] = Field(default=None, min_length=6, max_length=100)
    full_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None
    is_super_admin: Optional[bool] = None
    is_active: Optional[bool] = None

class AdminResponse(CamelModel):
    """Schema for admin response."""
    id: str
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    is_super_admin: bool
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

class SessionResponse(CamelModel):
    """Current admin, or null when not logged in."""
    admin: Optional[AdminResponse] = None
