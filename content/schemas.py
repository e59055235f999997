# src/content/schemas.py
from pydantic import Field
from datetime import datetime
from typing import List, Optional
from base_schemas import CamelModel

class CategoryCreate(CamelModel):
    """Schema for creating or replacing a category."""
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None

class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None

class CategoryResponse(CamelModel):
    """Schema for category response."""
    id: str
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class PackageCreate(CamelModel):
    """Schema for creating a package."""
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: bool = True

class PackageUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None

class PackageResponse(CamelModel):
    """Schema for package response."""
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

class TryoutCreate(CamelModel):
    """Schema for creating a tryout. The package is found, or created, by name."""
    title: str = Field(min_length=1)
    description: Optional[str] = None
    duration_minutes: int = Field(ge=1)
    is_active: bool = True
    package_name: str = Field(min_length=1)

class TryoutUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None
    package_name: Optional[str] = Field(default=None, min_length=1)

class TryoutResponse(CamelModel):
    """Schema for tryout response."""
    id: str
    title: str
    description: Optional[str] = None
    duration_minutes: int
    is_active: bool
    package_id: Optional[str] = None
    package_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class SubChapterCreate(CamelModel):
    """Schema for creating a sub-chapter inside a tryout."""
    category_id: str = Field(min_length=1)
    order_index: int = Field(default=0, ge=0)

class SubChapterUpdate(CamelModel):
    category_id: Optional[str] = Field(default=None, min_length=1)
    order_index: Optional[int] = Field(default=None, ge=0)

class SubChapterResponse(CamelModel):
    """Schema for sub-chapter response."""
    id: str
    tryout_id: str
    category_id: str
    category_name: Optional[str] = None
    order_index: int
    question_count: int = 0
    created_at: datetime
    updated_at: datetime

class TryoutSessionCreate(CamelModel):
    """Schema for making a package available to a subscription type."""
    package_id: str = Field(min_length=1)
    subscription_type_id: str = Field(min_length=1)
    available_until: Optional[datetime] = None
    is_active: bool = True

class TryoutSessionUpdate(CamelModel):
    available_until: Optional[datetime] = None
    is_active: Optional[bool] = None

class TryoutSessionResponse(CamelModel):
    """Schema for tryout session response."""
    id: str
    package_id: str
    package_name: Optional[str] = None
    subscription_type_id: str
    subscription_type_name: Optional[str] = None
    available_until: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

class SessionTryout(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    duration_minutes: int

class UserTryoutSessionResponse(CamelModel):
    """A session a user can open, with the tryouts of its package."""
    id: str
    package_id: str
    package_name: Optional[str] = None
    package_description: Optional[str] = None
    subscription_type_id: str
    subscription_type_name: Optional[str] = None
    available_until: Optional[datetime] = None
    tryouts: List[SessionTryout] = []
