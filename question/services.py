# src/question/services.py
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional, Tuple
from question.models import Question, AnswerOption, QuestionSubChapter
from question.schemas import QuestionCreate, QuestionUpdate, QuestionPage, QuestionResponse, QuestionAssign, AnswerOptionInput
from content.services import CategoryService, SubChapterService
from database import atomic
from errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

def _build_options(options: List[AnswerOptionInput]) -> List[AnswerOption]:
    return [
        AnswerOption(text=option.text, is_correct=option.is_correct, order_index=index)
        for index, option in enumerate(options)
    ]

class QuestionService:
    @staticmethod
    def list_questions(
            db: Session,
            search: Optional[str] = None,
            category_id: Optional[str] = None,
            limit: int = 50,
            offset: int = 0
    ) -> QuestionPage:
        """Page through the question pool, newest first."""
        query = db.query(Question)
        if search:
            query = query.filter(Question.text.ilike(f"%{search}%"))
        if category_id:
            query = query.filter(Question.category_id == category_id)
        total = query.count()
        questions = query.order_by(Question.created_at.desc()).offset(offset).limit(limit).all()
        return QuestionPage(
            data=[QuestionResponse.from_orm(q) for q in questions],
            total=total,
            limit=limit,
            offset=offset
        )

    @staticmethod
    def get_question(question_id: str, db: Session) -> Question:
        question = db.query(Question).filter(Question.id == question_id).first()
        if not question:
            raise NotFoundError("Question not found")
        return question

    @staticmethod
    def create_question(question_data: QuestionCreate, db: Session) -> Question:
        if question_data.category_id:
            CategoryService.get_category(question_data.category_id, db)
        question = Question(
            text=question_data.text.strip(),
            explanation=question_data.explanation,
            link=str(question_data.link) if question_data.link else None,
            category_id=question_data.category_id or None,
            answer_options=_build_options(question_data.answer_options)
        )
        with atomic(db):
            db.add(question)
        db.refresh(question)
        return question

    @staticmethod
    def update_question(question_id: str, question_data: QuestionUpdate, db: Session) -> Tuple[Question, Dict[str, Any]]:
        question = QuestionService.get_question(question_id, db)
        updates = question_data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")
        if updates.get("category_id"):
            CategoryService.get_category(updates["category_id"], db)

        old_values = {key: getattr(question, key) for key in updates if key != "answer_options"}
        with atomic(db):
            if "text" in updates and question_data.text:
                question.text = question_data.text.strip()
            if "explanation" in updates:
                question.explanation = question_data.explanation
            if "link" in updates:
                question.link = str(question_data.link) if question_data.link else None
            if "category_id" in updates:
                question.category_id = question_data.category_id or None
            if question_data.answer_options is not None:
                old_values["answer_options"] = [
                    {"text": o.text, "is_correct": o.is_correct} for o in question.answer_options
                ]
                question.answer_options = _build_options(question_data.answer_options)
        db.refresh(question)
        return question, old_values

    @staticmethod
    def delete_question(question_id: str, db: Session) -> None:
        """Delete a question together with its answer options and sub-chapter assignments."""
        question = QuestionService.get_question(question_id, db)
        with atomic(db):
            db.delete(question)

class AssignmentService:
    @staticmethod
    def list_assignments(tryout_id: str, sub_chapter_id: str, db: Session) -> List[QuestionSubChapter]:
        SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db)
        return db.query(QuestionSubChapter).filter(
            QuestionSubChapter.sub_chapter_id == sub_chapter_id
        ).order_by(QuestionSubChapter.order_index, QuestionSubChapter.created_at).all()

    @staticmethod
    def get_assignment(sub_chapter_id: str, assignment_id: str, db: Session) -> QuestionSubChapter:
        assignment = db.query(QuestionSubChapter).filter(
            QuestionSubChapter.id == assignment_id,
            QuestionSubChapter.sub_chapter_id == sub_chapter_id
        ).first()
        if not assignment:
            raise NotFoundError("Question assignment not found")
        return assignment

    @staticmethod
    def assign_question(tryout_id: str, sub_chapter_id: str, assign_data: QuestionAssign, db: Session) -> QuestionSubChapter:
        """Place a pool question into a sub-chapter; without an orderIndex it goes last."""
        SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db)
        QuestionService.get_question(assign_data.question_id, db)
        if db.query(QuestionSubChapter).filter(
            QuestionSubChapter.question_id == assign_data.question_id,
            QuestionSubChapter.sub_chapter_id == sub_chapter_id
        ).first():
            raise ConflictError("Question is already assigned to this sub-chapter")

        order_index = assign_data.order_index
        if order_index is None:
            current_max = db.query(func.max(QuestionSubChapter.order_index)).filter(
                QuestionSubChapter.sub_chapter_id == sub_chapter_id
            ).scalar()
            order_index = 0 if current_max is None else current_max + 1

        assignment = QuestionSubChapter(
            question_id=assign_data.question_id,
            sub_chapter_id=sub_chapter_id,
            order_index=order_index
        )
        with atomic(db):
            db.add(assignment)
        db.refresh(assignment)
        return assignment

    @staticmethod
    def reorder_assignment(tryout_id: str, sub_chapter_id: str, assignment_id: str, order_index: int, db: Session) -> Tuple[QuestionSubChapter, int]:
        SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db)
        assignment = AssignmentService.get_assignment(sub_chapter_id, assignment_id, db)
        previous = assignment.order_index
        with atomic(db):
            assignment.order_index = order_index
        db.refresh(assignment)
        return assignment, previous

    @staticmethod
    def unassign_question(tryout_id: str, sub_chapter_id: str, assignment_id: str, db: Session) -> None:
        SubChapterService.get_sub_chapter(tryout_id, sub_chapter_id, db)
        assignment = AssignmentService.get_assignment(sub_chapter_id, assignment_id, db)
        with atomic(db):
            db.delete(assignment)
