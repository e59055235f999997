# src/subscription/models.py
from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, Text, JSON, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from database import Base, generate_uuid
from datetime import datetime
from timeutils import utcnow

class SubscriptionType(Base):
    """A purchasable plan: price, length in days and an open-ended features bag."""
    __tablename__ = "subscription_types"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    name: str = Column(String(255), unique=True, nullable=False)
    description: str = Column(Text, nullable=True)
    price: float = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    duration_days: int = Column(Integer, nullable=True, default=30)
    features: dict = Column(JSON, nullable=True)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    transactions = relationship("Transaction", back_populates="subscription_type")
    user_subscriptions = relationship("UserSubscription", back_populates="subscription_type")

class UserSubscription(Base):
    """A user's entitlement to a subscription type, funded by a transaction."""
    __tablename__ = "user_subscriptions"
    __table_args__ = (
        # At most one active row per user
        Index(
            "uq_user_subscriptions_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    user_id: str = Column(String(36), nullable=False, index=True)
    subscription_type_id: str = Column(String(36), ForeignKey("subscription_types.id"), nullable=False)
    transaction_id: str = Column(String(36), ForeignKey("transactions.id"), nullable=True)
    started_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    expires_at: datetime = Column(DateTime, nullable=False)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    subscription_type = relationship("SubscriptionType", back_populates="user_subscriptions")
    transaction = relationship("Transaction", back_populates="user_subscriptions")

    def is_current(self, now: datetime) -> bool:
        return bool(self.is_active) and self.expires_at > now
