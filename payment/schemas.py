# src/payment/schemas.py
from pydantic import Field
from datetime import datetime
from typing import Any, Dict, Literal, Optional
from base_schemas import CamelModel

PaymentStatus = Literal["pending", "paid", "failed", "cancelled"]

class TransactionCreate(CamelModel):
    """Schema for recording a transaction by hand."""
    user_id: str = Field(min_length=1)
    subscription_type_id: str = Field(min_length=1)
    amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[str] = None
    payment_status: PaymentStatus = "pending"
    metadata: Optional[Dict[str, Any]] = None

class TransactionUpdate(CamelModel):
    """Schema for a partial transaction update."""
    amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    metadata: Optional[Dict[str, Any]] = None

class TransactionResponse(CamelModel):
    """Schema for transaction response."""
    id: str
    user_id: str
    subscription_type_id: str
    subscription_type_name: Optional[str] = None
    amount: float
    payment_method: Optional[str] = None
    payment_status: str
    paid_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="metadata_")
    created_at: datetime
    updated_at: datetime
    user_subscription_id: Optional[str] = None
    subscription_updated: Optional[bool] = None
