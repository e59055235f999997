# src/payment/models.py
from sqlalchemy import Column, String, Numeric, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from database import Base, generate_uuid
from datetime import datetime
from timeutils import utcnow

PAYMENT_STATUSES = ("pending", "paid", "failed", "cancelled")

class Transaction(Base):
    """A payment for a subscription type, manual or recorded from a gateway."""
    __tablename__ = "transactions"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    user_id: str = Column(String(36), nullable=False, index=True)
    subscription_type_id: str = Column(String(36), ForeignKey("subscription_types.id"), nullable=False)
    amount: float = Column(Numeric(12, 2, asdecimal=False), nullable=False)  # price snapshot at creation
    payment_method: str = Column(String(50), nullable=True)
    payment_status: str = Column(String(20), nullable=False, default="pending", index=True)
    paid_at: datetime = Column(DateTime, nullable=True)
    expires_at: datetime = Column(DateTime, nullable=True)
    metadata_: dict = Column("metadata", JSON, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    subscription_type = relationship("SubscriptionType", back_populates="transactions")
    user_subscriptions = relationship("UserSubscription", back_populates="transaction")
