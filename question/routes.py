# src/question/routes.py
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from question.services import QuestionService, AssignmentService
from question.schemas import (
    QuestionCreate, QuestionUpdate, QuestionResponse, QuestionPage,
    QuestionAssign, QuestionAssignmentUpdate, QuestionAssignmentResponse
)
from admin.services import ActivityLogger, ActionType, ResourceType
from auth.routes import get_current_admin
from auth.models import Admin
from database import get_db

router = APIRouter(prefix="/questions", tags=["questions"])
assignment_router = APIRouter(prefix="/tryouts/{tryout_id}/sub-chapters/{sub_chapter_id}/questions", tags=["questions"])

@router.get("", response_model=QuestionPage)
def get_questions(
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Search the question pool."""
    return QuestionService.list_questions(db, search=search, category_id=category_id, limit=limit, offset=offset)

@router.get("/{question_id}", response_model=QuestionResponse)
def get_question(question_id: str, db: Session = Depends(get_db)):
    return QuestionService.get_question(question_id, db)

@router.post("", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
def create_question(
    question_data: QuestionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    question = QuestionService.create_question(question_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.QUESTION,
        resource_id=question.id, description="Added question to the pool",
        metadata={"new_values": question_data.model_dump(mode="json")}, request=request
    )
    return question

@router.patch("/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: str,
    question_data: QuestionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    question, old_values = QuestionService.update_question(question_id, question_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.QUESTION,
        resource_id=question_id, description="Updated question",
        metadata={"old_values": old_values, "new_values": question_data.model_dump(mode="json", exclude_unset=True)},
        request=request
    )
    return question

@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(
    question_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    QuestionService.delete_question(question_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.QUESTION,
        resource_id=question_id, description="Deleted question", request=request
    )

@assignment_router.get("", response_model=List[QuestionAssignmentResponse])
def get_assigned_questions(tryout_id: str, sub_chapter_id: str, db: Session = Depends(get_db)):
    """Retrieve the questions of a sub-chapter in order."""
    return AssignmentService.list_assignments(tryout_id, sub_chapter_id, db)

@assignment_router.post("", response_model=QuestionAssignmentResponse, status_code=status.HTTP_201_CREATED)
def assign_question(
    tryout_id: str,
    sub_chapter_id: str,
    assign_data: QuestionAssign,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    assignment = AssignmentService.assign_question(tryout_id, sub_chapter_id, assign_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.QUESTION,
        resource_id=assign_data.question_id,
        description=f"Assigned question to sub-chapter {sub_chapter_id}",
        metadata={"assignment_id": assignment.id, "order_index": assignment.order_index},
        request=request
    )
    return assignment

@assignment_router.patch("/{assignment_id}", response_model=QuestionAssignmentResponse)
def reorder_assigned_question(
    tryout_id: str,
    sub_chapter_id: str,
    assignment_id: str,
    update_data: QuestionAssignmentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    assignment, previous = AssignmentService.reorder_assignment(
        tryout_id, sub_chapter_id, assignment_id, update_data.order_index, db
    )
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.QUESTION,
        resource_id=assignment.question_id,
        description=f"Moved question in sub-chapter {sub_chapter_id}",
        metadata={"old_values": {"order_index": previous}, "new_values": {"order_index": update_data.order_index}},
        request=request
    )
    return assignment

@assignment_router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def unassign_question(
    tryout_id: str,
    sub_chapter_id: str,
    assignment_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    AssignmentService.unassign_question(tryout_id, sub_chapter_id, assignment_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.QUESTION,
        resource_id=assignment_id, description=f"Removed question from sub-chapter {sub_chapter_id}", request=request
    )
