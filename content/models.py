# src/content/models.py
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base, generate_uuid
from datetime import datetime
from timeutils import utcnow

class Category(Base):
    """Represents a question category, e.g. a subject area."""
    __tablename__ = "categories"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    name: str = Column(String(255), unique=True, nullable=False)
    description: str = Column(Text, nullable=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    sub_chapters = relationship("SubChapter", back_populates="category")

class Package(Base):
    """Represents a bundle of tryouts that can be unlocked by a subscription."""
    __tablename__ = "packages"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    name: str = Column(String(255), unique=True, nullable=False)
    description: str = Column(Text, nullable=True)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tryouts = relationship("Tryout", back_populates="package")
    tryout_sessions = relationship("TryoutSession", back_populates="package")

class Tryout(Base):
    """Represents a timed practice exam."""
    __tablename__ = "tryouts"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    title: str = Column(String(255), nullable=False)
    description: str = Column(Text, nullable=True)
    duration_minutes: int = Column(Integer, nullable=False)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    package_id: str = Column(String(36), ForeignKey("packages.id"), nullable=True, index=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    package = relationship("Package", back_populates="tryouts")
    sub_chapters = relationship(
        "SubChapter",
        back_populates="tryout",
        cascade="all, delete-orphan",
        order_by="SubChapter.order_index",
    )

class SubChapter(Base):
    """Represents one categorized section of a tryout."""
    __tablename__ = "sub_chapters"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    tryout_id: str = Column(String(36), ForeignKey("tryouts.id"), nullable=False, index=True)
    category_id: str = Column(String(36), ForeignKey("categories.id"), nullable=False)
    order_index: int = Column(Integer, nullable=False, default=0)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    tryout = relationship("Tryout", back_populates="sub_chapters")
    category = relationship("Category", back_populates="sub_chapters")
    question_links = relationship("QuestionSubChapter", back_populates="sub_chapter", cascade="all, delete-orphan")

class TryoutSession(Base):
    """Makes a package available to holders of a subscription type."""
    __tablename__ = "tryout_sessions"
    __table_args__ = (
        UniqueConstraint("package_id", "subscription_type_id", name="uq_tryout_sessions_package_type"),
    )

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    package_id: str = Column(String(36), ForeignKey("packages.id"), nullable=False)
    subscription_type_id: str = Column(String(36), ForeignKey("subscription_types.id"), nullable=False)
    available_until: datetime = Column(DateTime, nullable=True)
    is_active: bool = Column(Boolean, nullable=False, default=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    package = relationship("Package", back_populates="tryout_sessions")
    subscription_type = relationship("SubscriptionType")
