# src/scheduler/tasks.py
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional
from config import settings
from database import SessionLocal
from subscription.models import UserSubscription
from timeutils import utcnow

logger = logging.getLogger(__name__)

def deactivate_expired_subscriptions(db: Optional[Session] = None, now: Optional[datetime] = None) -> int:
    """Clear is_active on subscriptions whose expiry has passed. Returns the number of rows touched."""
    logger.info("Starting deactivate_expired_subscriptions task")
    owns_session = db is None
    if owns_session:
        db = SessionLocal()
    now = now or utcnow()
    count = 0
    try:
        expired = db.query(UserSubscription).filter(
            UserSubscription.is_active == True,
            UserSubscription.expires_at <= now
        ).all()
        for subscription in expired:
            subscription.is_active = False
            logger.info(f"Subscription {subscription.id} of user {subscription.user_id} expired at {subscription.expires_at}")
        db.commit()
        count = len(expired)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error in deactivate_expired_subscriptions: {str(e)}", exc_info=True)
    finally:
        if owns_session:
            db.close()
    logger.info(f"Finished deactivate_expired_subscriptions task, {count} deactivated")
    return count

def start_scheduler() -> Optional[BackgroundScheduler]:
    """Start the background scheduler when the expiry sweep is enabled."""
    if not settings.ENABLE_EXPIRY_SWEEP:
        logger.info("Expiry sweep disabled, scheduler not started")
        return None
    scheduler = BackgroundScheduler()
    scheduler.add_job(deactivate_expired_subscriptions, 'interval', minutes=settings.EXPIRY_SWEEP_INTERVAL_MINUTES)
    scheduler.start()
    return scheduler
