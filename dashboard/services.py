# src/dashboard/services.py
from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Optional
from content.models import Category, Package, Tryout, SubChapter
from question.models import Question, QuestionSubChapter
from subscription.models import SubscriptionType, UserSubscription
from payment.models import Transaction
from admin.schemas import ActivityLogResponse
from admin.services import ActivityLogger
from dashboard.schemas import (
    ActiveCounts, TransactionCounts, UserSubscriptionCounts, DashboardStats, DashboardHealth, HealthWarning
)
from timeutils import utcnow

class DashboardService:
    @staticmethod
    def _active_counts(model, db: Session) -> ActiveCounts:
        total = db.query(func.count(model.id)).scalar() or 0
        active = db.query(func.count(model.id)).filter(model.is_active == True).scalar() or 0
        return ActiveCounts(total=total, active=active, inactive=total - active)

    @staticmethod
    def get_stats(db: Session, now: Optional[datetime] = None) -> DashboardStats:
        now = now or utcnow()
        transactions_total = db.query(func.count(Transaction.id)).scalar() or 0
        paid = db.query(func.count(Transaction.id)).filter(Transaction.payment_status == "paid").scalar() or 0
        pending = db.query(func.count(Transaction.id)).filter(Transaction.payment_status == "pending").scalar() or 0

        subscriptions_total = db.query(func.count(UserSubscription.id)).scalar() or 0
        # Active means usable right now, not just flagged
        subscriptions_active = db.query(func.count(UserSubscription.id)).filter(
            UserSubscription.is_active == True,
            UserSubscription.expires_at > now
        ).scalar() or 0

        return DashboardStats(
            tryouts=DashboardService._active_counts(Tryout, db),
            packages=DashboardService._active_counts(Package, db),
            subscription_types=DashboardService._active_counts(SubscriptionType, db),
            categories=db.query(func.count(Category.id)).scalar() or 0,
            questions=db.query(func.count(Question.id)).scalar() or 0,
            sub_chapters=db.query(func.count(SubChapter.id)).scalar() or 0,
            transactions=TransactionCounts(total=transactions_total, paid=paid, pending=pending),
            user_subscriptions=UserSubscriptionCounts(
                total=subscriptions_total,
                active=subscriptions_active,
                expired=subscriptions_total - subscriptions_active
            )
        )

    @staticmethod
    def get_recent_activities(db: Session, limit: int = 10) -> List[ActivityLogResponse]:
        return ActivityLogger.get_logs(db, limit=limit)

    @staticmethod
    def get_health(db: Session) -> DashboardHealth:
        """Content gaps: tryouts without sub-chapters or questions, empty packages, uncategorized questions.

        A warning is only listed when its count is above zero.
        """
        warnings = []

        no_sub_chapters = db.query(Tryout).outerjoin(SubChapter, SubChapter.tryout_id == Tryout.id).filter(
            SubChapter.id == None
        ).order_by(Tryout.created_at).all()
        if no_sub_chapters:
            warnings.append(HealthWarning(
                type="tryout_no_subchapters",
                message=f"{len(no_sub_chapters)} tryout tanpa sub-bab",
                count=len(no_sub_chapters),
                tryout_ids=[t.id for t in no_sub_chapters],
                tryout_titles=[t.title for t in no_sub_chapters]
            ))

        # A tryout has questions through its sub-chapters
        with_questions = {
            row.tryout_id for row in db.query(SubChapter.tryout_id).join(
                QuestionSubChapter, QuestionSubChapter.sub_chapter_id == SubChapter.id
            ).distinct().all()
        }
        no_questions = [t for t in db.query(Tryout).order_by(Tryout.created_at).all() if t.id not in with_questions]
        if no_questions:
            warnings.append(HealthWarning(
                type="tryout_no_questions",
                message=f"{len(no_questions)} tryout tanpa soal",
                count=len(no_questions),
                tryout_ids=[t.id for t in no_questions],
                tryout_titles=[t.title for t in no_questions]
            ))

        no_tryouts = db.query(Package).outerjoin(Tryout, Tryout.package_id == Package.id).filter(
            Tryout.id == None
        ).order_by(Package.created_at).all()
        if no_tryouts:
            warnings.append(HealthWarning(
                type="package_no_tryouts",
                message=f"{len(no_tryouts)} paket tanpa tryout",
                count=len(no_tryouts),
                package_ids=[p.id for p in no_tryouts],
                package_names=[p.name for p in no_tryouts]
            ))

        uncategorized = db.query(func.count(Question.id)).filter(Question.category_id == None).scalar() or 0
        if uncategorized:
            warnings.append(HealthWarning(
                type="questions_no_category",
                message=f"{uncategorized} soal tanpa kategori",
                count=uncategorized
            ))

        return DashboardHealth(warnings=warnings)
