# src/admin/schemas.py
from pydantic import Field
from datetime import datetime
from typing import Optional
from base_schemas import CamelModel

class ActivityLogResponse(CamelModel):
    """Schema for an admin activity log entry."""
    id: str
    admin_id: str
    admin_username: Optional[str] = None
    action_type: str
    resource_type: str
    resource_id: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[dict] = Field(default=None, validation_alias="metadata_")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
