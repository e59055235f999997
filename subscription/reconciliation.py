# src/subscription/reconciliation.py
"""Keeps transactions and user subscriptions consistent.

Every path that grants or changes a subscription (a payment reaching ``paid``,
or an admin assigning, changing or extending a plan) goes through
``ReconciliationService.reconcile_subscription_on_payment``, which either updates
the user's single active row in place or inserts one.

These functions only flush. The caller owns the unit of work (see ``database.atomic``),
so the transaction write and the subscription write commit or roll back together.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from errors import NotFoundError, ValidationError
from payment.models import Transaction
from subscription.models import SubscriptionType, UserSubscription
from timeutils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

MANUAL_ADMIN_PAYMENT_METHOD = "manual_admin"

SOURCE_ADMIN_ASSIGNMENT = "admin_manual_assignment"
SOURCE_ADMIN_CHANGE = "admin_change_subscription"
SOURCE_ADMIN_EXTEND = "admin_extend_subscription"


@dataclass
class ReconciliationResult:
    subscription: UserSubscription
    was_update: bool


@dataclass
class AssignmentResult:
    subscription: UserSubscription
    transaction: Transaction
    was_update: bool
    source: str


class ReconciliationService:
    @staticmethod
    def compute_expires_at(started_at: datetime, subscription_type: SubscriptionType) -> datetime:
        """Add the plan's duration in calendar days. All datetimes are naive UTC, so a day is always 24h."""
        duration_days = subscription_type.duration_days
        if not duration_days:
            # Falsy duration usually means a broken subscription type row
            logger.warning(
                f"Subscription type {subscription_type.id} has no duration_days ({duration_days!r}), "
                f"falling back to {settings.DEFAULT_SUBSCRIPTION_DURATION_DAYS} days"
            )
            duration_days = settings.DEFAULT_SUBSCRIPTION_DURATION_DAYS
        return started_at + timedelta(days=duration_days)

    @staticmethod
    def get_subscription_type(subscription_type_id: str, db: Session) -> SubscriptionType:
        subscription_type = db.query(SubscriptionType).filter(SubscriptionType.id == subscription_type_id).first()
        if not subscription_type:
            raise NotFoundError("Subscription type not found")
        return subscription_type

    @staticmethod
    def get_active_subscription(user_id: str, db: Session, lock: bool = True) -> Optional[UserSubscription]:
        """Return the user's active row, locking it on dialects that support SELECT ... FOR UPDATE."""
        query = db.query(UserSubscription).filter(
            UserSubscription.user_id == user_id,
            UserSubscription.is_active == True
        )
        if lock:
            query = query.with_for_update()
        rows = query.order_by(UserSubscription.updated_at.desc()).all()
        if len(rows) > 1:
            logger.warning(f"User {user_id} has {len(rows)} active subscriptions, updating the most recent one")
        return rows[0] if rows else None

    @staticmethod
    def reconcile_subscription_on_payment(
            user_id: str,
            subscription_type_id: str,
            transaction_id: str,
            db: Session,
            started_at: Optional[datetime] = None,
            expires_at: Optional[datetime] = None,
            now: Optional[datetime] = None
    ) -> ReconciliationResult:
        """Point the user's active subscription at `transaction_id`, creating the row if there is none.

        `expires_at` overrides the computed expiry; otherwise it is `started_at` plus the
        plan's duration. `started_at` defaults to `now`.
        """
        if not user_id or not subscription_type_id:
            raise ValidationError("userId and subscriptionTypeId are required")
        if not transaction_id:
            raise ValidationError("transactionId is required")

        subscription_type = ReconciliationService.get_subscription_type(subscription_type_id, db)
        if not db.query(Transaction).filter(Transaction.id == transaction_id).first():
            raise NotFoundError("Transaction not found")

        now = to_naive_utc(now) or utcnow()
        started_at = to_naive_utc(started_at) or now
        expires_at = to_naive_utc(expires_at) or ReconciliationService.compute_expires_at(started_at, subscription_type)

        existing = ReconciliationService.get_active_subscription(user_id, db)
        if existing:
            existing.subscription_type_id = subscription_type_id
            existing.transaction_id = transaction_id
            existing.started_at = started_at
            existing.expires_at = expires_at
            existing.is_active = True
            db.flush()
            logger.info(
                f"Updated subscription {existing.id} for user {user_id}: type={subscription_type_id}, "
                f"transaction={transaction_id}, expires_at={expires_at.isoformat()}"
            )
            return ReconciliationResult(subscription=existing, was_update=True)

        subscription = UserSubscription(
            user_id=user_id,
            subscription_type_id=subscription_type_id,
            transaction_id=transaction_id,
            started_at=started_at,
            expires_at=expires_at,
            is_active=True
        )
        db.add(subscription)
        db.flush()
        logger.info(
            f"Created subscription {subscription.id} for user {user_id}: type={subscription_type_id}, "
            f"transaction={transaction_id}, expires_at={expires_at.isoformat()}"
        )
        return ReconciliationResult(subscription=subscription, was_update=False)

    @staticmethod
    def admin_assign_or_change_subscription(
            user_id: str,
            subscription_type_id: str,
            db: Session,
            admin_id: Optional[str] = None,
            expires_at: Optional[datetime] = None,
            started_at: Optional[datetime] = None,
            recalculate: bool = True,
            transaction_id: Optional[str] = None,
            now: Optional[datetime] = None
    ) -> AssignmentResult:
        """Grant, change or extend a user's subscription on an admin's behalf.

        A given `transaction_id` must be a paid transaction of this user for this plan.
        Without one, a synthetic paid ``manual_admin`` transaction is recorded first, so
        every subscription traces back to a paid transaction.

        Expiry: an explicit `expires_at` always wins. Without one, `recalculate` recomputes
        it from the plan's duration. With recalculation off, the current row keeps its expiry.
        """
        if not user_id or not subscription_type_id:
            raise ValidationError("userId and subscriptionTypeId are required")

        subscription_type = ReconciliationService.get_subscription_type(subscription_type_id, db)
        now = to_naive_utc(now) or utcnow()
        started_at = to_naive_utc(started_at) or now
        expires_at = to_naive_utc(expires_at)

        existing = ReconciliationService.get_active_subscription(user_id, db)
        if expires_at is None:
            if recalculate or existing is None:
                expires_at = ReconciliationService.compute_expires_at(started_at, subscription_type)
            else:
                expires_at = existing.expires_at

        if existing is None:
            source = SOURCE_ADMIN_ASSIGNMENT
        elif existing.subscription_type_id != subscription_type_id:
            source = SOURCE_ADMIN_CHANGE
        else:
            source = SOURCE_ADMIN_EXTEND

        if transaction_id:
            transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
            if not transaction:
                raise NotFoundError("Transaction not found")
            if transaction.user_id != user_id:
                raise ValidationError("Transaction belongs to another user")
            if transaction.subscription_type_id != subscription_type_id:
                raise ValidationError("Transaction is for a different subscription type")
            if transaction.payment_status != "paid":
                raise ValidationError("Transaction must be paid before it can fund a subscription")
        else:
            metadata = {"source": source, "admin_user_id": admin_id}
            if existing:
                metadata["previous_subscription_id"] = existing.id
                metadata["previous_subscription_type_id"] = existing.subscription_type_id
            transaction = Transaction(
                user_id=user_id,
                subscription_type_id=subscription_type_id,
                amount=subscription_type.price,
                payment_method=MANUAL_ADMIN_PAYMENT_METHOD,
                payment_status="paid",
                paid_at=now,
                expires_at=expires_at,
                metadata_=metadata
            )
            db.add(transaction)
            db.flush()
            logger.info(f"Recorded {source} transaction {transaction.id} for user {user_id}")

        result = ReconciliationService.reconcile_subscription_on_payment(
            user_id,
            subscription_type_id,
            transaction.id,
            db,
            started_at=started_at,
            expires_at=expires_at,
            now=now
        )
        return AssignmentResult(
            subscription=result.subscription,
            transaction=transaction,
            was_update=result.was_update,
            source=source
        )
