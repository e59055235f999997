# src/subscription/services.py
import logging

from sqlalchemy.orm import Session
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from subscription.models import SubscriptionType, UserSubscription
from subscription.schemas import (
    SubscriptionTypeCreate, SubscriptionTypeUpdate,
    UserSubscriptionCreate, UserSubscriptionUpdate, UserSubscriptionResponse
)
from subscription.reconciliation import ReconciliationService, AssignmentResult
from payment.models import Transaction
from database import atomic
from errors import ConflictError, NotFoundError, ValidationError, SUBSCRIPTION_UPDATE_FAILED
from timeutils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

class SubscriptionTypeService:
    @staticmethod
    def list_types(db: Session, is_active: Optional[bool] = None) -> List[SubscriptionType]:
        query = db.query(SubscriptionType)
        if is_active is not None:
            query = query.filter(SubscriptionType.is_active == is_active)
        return query.order_by(SubscriptionType.created_at.desc()).all()

    @staticmethod
    def get_type(type_id: str, db: Session) -> SubscriptionType:
        return ReconciliationService.get_subscription_type(type_id, db)

    @staticmethod
    def _ensure_name_free(name: str, db: Session, exclude_id: Optional[str] = None):
        query = db.query(SubscriptionType).filter(SubscriptionType.name == name)
        if exclude_id:
            query = query.filter(SubscriptionType.id != exclude_id)
        if query.first():
            raise ConflictError("Subscription type name already exists")

    @staticmethod
    def create_type(type_data: SubscriptionTypeCreate, db: Session) -> SubscriptionType:
        name = type_data.name.strip()
        SubscriptionTypeService._ensure_name_free(name, db)
        subscription_type = SubscriptionType(**type_data.model_dump(exclude={"name"}), name=name)
        with atomic(db):
            db.add(subscription_type)
        db.refresh(subscription_type)
        return subscription_type

    @staticmethod
    def update_type(type_id: str, type_data: SubscriptionTypeUpdate, db: Session) -> Tuple[SubscriptionType, Dict[str, Any]]:
        subscription_type = SubscriptionTypeService.get_type(type_id, db)
        updates = type_data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")
        if "name" in updates:
            updates["name"] = updates["name"].strip()
            SubscriptionTypeService._ensure_name_free(updates["name"], db, exclude_id=type_id)
        old_values = {key: getattr(subscription_type, key) for key in updates}
        with atomic(db):
            for key, value in updates.items():
                setattr(subscription_type, key, value)
        db.refresh(subscription_type)
        return subscription_type, old_values

    @staticmethod
    def delete_type(type_id: str, db: Session) -> str:
        subscription_type = SubscriptionTypeService.get_type(type_id, db)
        if db.query(Transaction).filter(Transaction.subscription_type_id == type_id).first():
            raise ConflictError("Subscription type is used by transactions and cannot be deleted")
        if db.query(UserSubscription).filter(UserSubscription.subscription_type_id == type_id).first():
            raise ConflictError("Subscription type is used by user subscriptions and cannot be deleted")
        name = subscription_type.name
        with atomic(db):
            db.delete(subscription_type)
        return name

class UserSubscriptionService:
    @staticmethod
    def to_response(subscription: UserSubscription, now: Optional[datetime] = None) -> UserSubscriptionResponse:
        now = now or utcnow()
        response = UserSubscriptionResponse.from_orm(subscription)
        return response.model_copy(update={
            "subscription_type_name": subscription.subscription_type.name if subscription.subscription_type else None,
            "is_effectively_active": subscription.is_current(now),
        })

    @staticmethod
    def list_subscriptions(
            db: Session,
            user_id: Optional[str] = None,
            is_active: Optional[bool] = None
    ) -> List[UserSubscriptionResponse]:
        query = db.query(UserSubscription)
        if user_id:
            query = query.filter(UserSubscription.user_id == user_id)
        if is_active is not None:
            query = query.filter(UserSubscription.is_active == is_active)
        now = utcnow()
        return [
            UserSubscriptionService.to_response(s, now)
            for s in query.order_by(UserSubscription.created_at.desc()).all()
        ]

    @staticmethod
    def get_effectively_active(user_id: str, db: Session, now: Optional[datetime] = None) -> List[UserSubscriptionResponse]:
        """Rows that are flagged active and have not expired yet."""
        now = now or utcnow()
        subscriptions = db.query(UserSubscription).filter(
            UserSubscription.user_id == user_id,
            UserSubscription.is_active == True,
            UserSubscription.expires_at > now
        ).order_by(UserSubscription.expires_at.desc()).all()
        return [UserSubscriptionService.to_response(s, now) for s in subscriptions]

    @staticmethod
    def get_subscription(subscription_id: str, db: Session) -> UserSubscription:
        subscription = db.query(UserSubscription).filter(UserSubscription.id == subscription_id).first()
        if not subscription:
            raise NotFoundError("User subscription not found")
        return subscription

    @staticmethod
    def assign_subscription(
            subscription_data: UserSubscriptionCreate,
            admin_id: str,
            db: Session,
            now: Optional[datetime] = None
    ) -> AssignmentResult:
        """Grant a subscription, or change the user's current one, in a single unit of work."""
        with atomic(db, SUBSCRIPTION_UPDATE_FAILED):
            result = ReconciliationService.admin_assign_or_change_subscription(
                subscription_data.user_id,
                subscription_data.subscription_type_id,
                db,
                admin_id=admin_id,
                expires_at=subscription_data.expires_at,
                started_at=subscription_data.started_at,
                recalculate=subscription_data.recalculate_expires_at,
                transaction_id=subscription_data.transaction_id,
                now=now
            )
        db.refresh(result.subscription)
        return result

    @staticmethod
    def update_subscription(
            subscription_id: str,
            subscription_data: UserSubscriptionUpdate,
            admin_id: str,
            db: Session,
            now: Optional[datetime] = None
    ) -> Tuple[UserSubscription, Dict[str, Any], Optional[AssignmentResult]]:
        """Change, extend, activate or deactivate a subscription.

        Type or expiry changes on the active row go through the reconciliation path and
        record a synthetic transaction. Anything else is a plain field write.
        """
        subscription = UserSubscriptionService.get_subscription(subscription_id, db)
        updates = subscription_data.model_dump(exclude_unset=True, exclude={"recalculate_expires_at"})
        if not updates:
            raise ValidationError("No fields to update")

        old_values = {
            "subscription_type_id": subscription.subscription_type_id,
            "transaction_id": subscription.transaction_id,
            "started_at": subscription.started_at,
            "expires_at": subscription.expires_at,
            "is_active": subscription.is_active,
        }
        # An explicit null is not a change
        changes_plan = bool(updates.get("subscription_type_id")) or updates.get("expires_at") is not None
        result = None

        with atomic(db, SUBSCRIPTION_UPDATE_FAILED):
            if subscription.is_active and changes_plan and subscription_data.is_active is not False:
                result = ReconciliationService.admin_assign_or_change_subscription(
                    subscription.user_id,
                    subscription_data.subscription_type_id or subscription.subscription_type_id,
                    db,
                    admin_id=admin_id,
                    expires_at=subscription_data.expires_at,
                    started_at=subscription_data.started_at,
                    recalculate=subscription_data.recalculate_expires_at,
                    now=now
                )
                subscription = result.subscription
            else:
                UserSubscriptionService._apply_plain_update(subscription, subscription_data, updates, db)

        db.refresh(subscription)
        return subscription, old_values, result

    @staticmethod
    def _apply_plain_update(subscription: UserSubscription, subscription_data: UserSubscriptionUpdate, updates: dict, db: Session):
        if updates.get("is_active") is True and not subscription.is_active:
            current = ReconciliationService.get_active_subscription(subscription.user_id, db)
            if current and current.id != subscription.id:
                raise ConflictError("User already has an active subscription")

        if "started_at" in updates:
            subscription.started_at = to_naive_utc(subscription_data.started_at) or subscription.started_at
        if "subscription_type_id" in updates and subscription_data.subscription_type_id:
            subscription_type = ReconciliationService.get_subscription_type(subscription_data.subscription_type_id, db)
            subscription.subscription_type_id = subscription_type.id
            if "expires_at" not in updates and subscription_data.recalculate_expires_at:
                subscription.expires_at = ReconciliationService.compute_expires_at(subscription.started_at, subscription_type)
        if "expires_at" in updates and subscription_data.expires_at:
            subscription.expires_at = to_naive_utc(subscription_data.expires_at)
        if "is_active" in updates and subscription_data.is_active is not None:
            subscription.is_active = subscription_data.is_active
        db.flush()
