# src/question/schemas.py
from pydantic import Field, HttpUrl, field_validator
from datetime import datetime
from typing import List, Optional
from base_schemas import CamelModel

class AnswerOptionInput(CamelModel):
    text: str = Field(min_length=1)
    is_correct: bool = False

def _check_options(options: Optional[List[AnswerOptionInput]]) -> Optional[List[AnswerOptionInput]]:
    if options is None:
        return options
    if len(options) < 2:
        raise ValueError("At least 2 answer options are required")
    correct = sum(1 for option in options if option.is_correct)
    if correct != 1:
        raise ValueError("Exactly 1 answer option must be correct")
    return options

class QuestionCreate(CamelModel):
    """Schema for adding a question to the pool."""
    text: str = Field(min_length=1)
    explanation: Optional[str] = None
    link: Optional[HttpUrl] = None
    category_id: Optional[str] = None
    answer_options: List[AnswerOptionInput]

    @field_validator("link", mode="before")
    @classmethod
    def empty_link_is_none(cls, value):
        return value or None

    @field_validator("answer_options")
    @classmethod
    def validate_answer_options(cls, value):
        return _check_options(value)

class QuestionUpdate(CamelModel):
    """Schema for editing a question. Sending answerOptions replaces all options."""
    text: Optional[str] = Field(default=None, min_length=1)
    explanation: Optional[str] = None
    link: Optional[HttpUrl] = None
    category_id: Optional[str] = None
    answer_options: Optional[List[AnswerOptionInput]] = None

    @field_validator("link", mode="before")
    @classmethod
    def empty_link_is_none(cls, value):
        return value or None

    @field_validator("answer_options")
    @classmethod
    def validate_answer_options(cls, value):
        return _check_options(value)

class AnswerOptionResponse(CamelModel):
    id: str
    text: str
    is_correct: bool
    order_index: int

class QuestionResponse(CamelModel):
    """Schema for question response."""
    id: str
    text: str
    explanation: Optional[str] = None
    link: Optional[str] = None
    category_id: Optional[str] = None
    correct_answer_option_id: Optional[str] = None
    answer_options: List[AnswerOptionResponse] = []
    created_at: datetime
    updated_at: datetime

class QuestionPage(CamelModel):
    """One page of the question pool."""
    data: List[QuestionResponse]
    total: int
    limit: int
    offset: int

class QuestionAssign(CamelModel):
    """Schema for assigning a pool question to a sub-chapter."""
    question_id: str = Field(min_length=1)
    order_index: Optional[int] = Field(default=None, ge=0)

class QuestionAssignmentUpdate(CamelModel):
    order_index: int = Field(ge=0)

class QuestionAssignmentResponse(CamelModel):
    """Schema for a question placed in a sub-chapter."""
    id: str
    question_id: str
    sub_chapter_id: str
    order_index: int
    question: Optional[QuestionResponse] = None
    created_at: datetime
