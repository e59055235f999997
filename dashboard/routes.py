# src/dashboard/routes.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List
from admin.schemas import ActivityLogResponse
from auth.routes import get_current_admin
from dashboard.schemas import DashboardStats, DashboardHealth
from dashboard.services import DashboardService
from database import get_db

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(get_current_admin)])

@router.get("/stats", response_model=DashboardStats)
def get_stats(db: Session = Depends(get_db)):
    """Counts shown on the dashboard."""
    return DashboardService.get_stats(db)

@router.get("/activities", response_model=List[ActivityLogResponse])
def get_activities(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    """Most recent admin activity."""
    return DashboardService.get_recent_activities(db, limit=limit)

@router.get("/health", response_model=DashboardHealth, response_model_exclude_none=True)
def get_health(db: Session = Depends(get_db)):
    """Content that is incomplete or unreachable."""
    return DashboardService.get_health(db)
