# src/subscription/schemas.py
from pydantic import Field
from datetime import datetime
from typing import Any, Dict, Optional
from base_schemas import CamelModel

class SubscriptionTypeCreate(CamelModel):
    """Schema for creating a subscription type."""
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration_days: int = Field(default=30, ge=1)
    features: Optional[Dict[str, Any]] = None
    is_active: bool = True

class SubscriptionTypeUpdate(CamelModel):
    """Schema for a partial subscription type update."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration_days: Optional[int] = Field(default=None, ge=1)
    features: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

class SubscriptionTypeResponse(CamelModel):
    """Schema for subscription type response."""
    id: str
    name: str
    description: Optional[str] = None
    price: float
    duration_days: Optional[int] = None
    features: Optional[Dict[str, Any]] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

class UserSubscriptionCreate(CamelModel):
    """Admin grant of a subscription. userId and subscriptionTypeId are checked by the service."""
    user_id: Optional[str] = None
    subscription_type_id: Optional[str] = None
    transaction_id: Optional[str] = None
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    recalculate_expires_at: bool = True

class UserSubscriptionUpdate(CamelModel):
    """Admin change, extension or (de)activation of a subscription."""
    subscription_type_id: Optional[str] = None
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    recalculate_expires_at: bool = True
    is_active: Optional[bool] = None

class UserSubscriptionResponse(CamelModel):
    """Schema for user subscription response."""
    id: str
    user_id: str
    subscription_type_id: str
    subscription_type_name: Optional[str] = None
    transaction_id: Optional[str] = None
    started_at: datetime
    expires_at: datetime
    is_active: bool
    is_effectively_active: bool = False
    created_at: datetime
    updated_at: datetime

class SubscriptionAssignmentResponse(CamelModel):
    """Result of an admin grant or change."""
    subscription: UserSubscriptionResponse
    transaction_id: Optional[str] = None
    was_update: bool
    source: Optional[str] = None
