# src/question/models.py
from typing import Optional
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base, generate_uuid
from datetime import datetime
from timeutils import utcnow

class Question(Base):
    """Represents a question in the shared pool."""
    __tablename__ = "questions"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    text: str = Column(Text, nullable=False)
    explanation: str = Column(Text, nullable=True)
    link: str = Column(String(2048), nullable=True)
    category_id: str = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)
    updated_at: datetime = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    category = relationship("Category")
    answer_options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="AnswerOption.order_index",
    )
    sub_chapter_links = relationship("QuestionSubChapter", back_populates="question", cascade="all, delete-orphan")

    @property
    def correct_answer_option_id(self) -> Optional[str]:
        for option in self.answer_options:
            if option.is_correct:
                return option.id
        return None

class AnswerOption(Base):
    """Represents one answer choice of a question."""
    __tablename__ = "answer_options"

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    question_id: str = Column(String(36), ForeignKey("questions.id"), nullable=False, index=True)
    text: str = Column(Text, nullable=False)
    is_correct: bool = Column(Boolean, nullable=False, default=False)
    order_index: int = Column(Integer, nullable=False, default=0)

    question = relationship("Question", back_populates="answer_options")

class QuestionSubChapter(Base):
    """Places a pool question into a sub-chapter at a position."""
    __tablename__ = "question_sub_chapters"
    __table_args__ = (
        UniqueConstraint("question_id", "sub_chapter_id", name="uq_question_sub_chapters_pair"),
    )

    id: str = Column(String(36), primary_key=True, default=generate_uuid)
    question_id: str = Column(String(36), ForeignKey("questions.id"), nullable=False)
    sub_chapter_id: str = Column(String(36), ForeignKey("sub_chapters.id"), nullable=False, index=True)
    order_index: int = Column(Integer, nullable=False, default=0)
    created_at: datetime = Column(DateTime, nullable=False, default=utcnow)

    question = relationship("Question", back_populates="sub_chapter_links")
    sub_chapter = relationship("SubChapter", back_populates="question_links")
