# src/payment/services.py
import logging

from sqlalchemy.orm import Session
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from payment.models import Transaction, PAYMENT_STATUSES
from payment.schemas import TransactionCreate, TransactionUpdate, TransactionResponse
from subscription.models import UserSubscription
from subscription.reconciliation import ReconciliationService, ReconciliationResult
from database import atomic
from errors import ConflictError, NotFoundError, ValidationError, SUBSCRIPTION_UPDATE_FAILED
from timeutils import utcnow

logger = logging.getLogger(__name__)

class TransactionService:
    @staticmethod
    def to_response(transaction: Transaction, result: Optional[ReconciliationResult] = None) -> TransactionResponse:
        response = TransactionResponse.from_orm(transaction)
        update = {
            "subscription_type_name": transaction.subscription_type.name if transaction.subscription_type else None,
        }
        if result is not None:
            update["user_subscription_id"] = result.subscription.id
            update["subscription_updated"] = result.was_update
        return response.model_copy(update=update)

    @staticmethod
    def list_transactions(
            db: Session,
            user_id: Optional[str] = None,
            payment_status: Optional[str] = None
    ) -> List[TransactionResponse]:
        query = db.query(Transaction)
        if user_id:
            query = query.filter(Transaction.user_id == user_id)
        if payment_status:
            query = query.filter(Transaction.payment_status == payment_status)
        return [TransactionService.to_response(t) for t in query.order_by(Transaction.created_at.desc()).all()]

    @staticmethod
    def get_transaction(transaction_id: str, db: Session) -> Transaction:
        transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()
        if not transaction:
            raise NotFoundError("Transaction not found")
        return transaction

    @staticmethod
    def record_payment(
            transaction: Transaction,
            new_status: str,
            db: Session,
            now: Optional[datetime] = None
    ) -> Optional[ReconciliationResult]:
        """Move a transaction to `new_status`.

        paid_at is stamped only on the edge into ``paid`` and cleared only on the edge out
        of it. Reconciliation runs only on the edge into ``paid``, and is skipped when a
        subscription already points at this transaction. Leaving ``paid`` never touches
        the linked subscription.
        """
        if new_status not in PAYMENT_STATUSES:
            raise ValidationError(f"Payment status must be one of: {', '.join(PAYMENT_STATUSES)}")
        now = now or utcnow()
        old_status = transaction.payment_status
        if new_status == old_status:
            return None

        transaction.payment_status = new_status
        if new_status == "paid":
            transaction.paid_at = now
            db.flush()
            linked = db.query(UserSubscription).filter(UserSubscription.transaction_id == transaction.id).first()
            if linked:
                logger.info(f"Transaction {transaction.id} already funds subscription {linked.id}, not reconciling again")
                return None
            return ReconciliationService.reconcile_subscription_on_payment(
                transaction.user_id,
                transaction.subscription_type_id,
                transaction.id,
                db,
                started_at=now,
                now=now
            )

        if old_status == "paid":
            transaction.paid_at = None
            logger.info(f"Transaction {transaction.id} left paid status ({old_status} -> {new_status}), subscription left as is")
        db.flush()
        return None

    @staticmethod
    def create_transaction(
            transaction_data: TransactionCreate,
            db: Session,
            now: Optional[datetime] = None
    ) -> Tuple[Transaction, Optional[ReconciliationResult]]:
        """Insert a transaction and, when it is created as paid, reconcile in the same unit of work."""
        now = now or utcnow()
        with atomic(db, SUBSCRIPTION_UPDATE_FAILED):
            subscription_type = ReconciliationService.get_subscription_type(transaction_data.subscription_type_id, db)
            transaction = Transaction(
                user_id=transaction_data.user_id,
                subscription_type_id=subscription_type.id,
                amount=transaction_data.amount if transaction_data.amount is not None else subscription_type.price,
                payment_method=transaction_data.payment_method,
                payment_status="pending",
                expires_at=ReconciliationService.compute_expires_at(now, subscription_type),
                metadata_=transaction_data.metadata
            )
            db.add(transaction)
            db.flush()
            result = TransactionService.record_payment(transaction, transaction_data.payment_status, db, now=now)
        db.refresh(transaction)
        return transaction, result

    @staticmethod
    def update_transaction(
            transaction_id: str,
            transaction_data: TransactionUpdate,
            db: Session,
            now: Optional[datetime] = None
    ) -> Tuple[Transaction, Dict[str, Any], Optional[ReconciliationResult]]:
        transaction = TransactionService.get_transaction(transaction_id, db)
        updates = transaction_data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No fields to update")

        old_values = {
            "amount": transaction.amount,
            "payment_method": transaction.payment_method,
            "payment_status": transaction.payment_status,
            "paid_at": transaction.paid_at,
        }
        result = None
        with atomic(db, SUBSCRIPTION_UPDATE_FAILED):
            if "amount" in updates and transaction_data.amount is not None:
                transaction.amount = transaction_data.amount
            if "payment_method" in updates:
                transaction.payment_method = transaction_data.payment_method
            if "metadata" in updates:
                transaction.metadata_ = transaction_data.metadata
            if transaction_data.payment_status is not None:
                result = TransactionService.record_payment(transaction, transaction_data.payment_status, db, now=now)
            db.flush()
        db.refresh(transaction)
        return transaction, old_values, result

    @staticmethod
    def delete_transaction(transaction_id: str, db: Session) -> None:
        transaction = TransactionService.get_transaction(transaction_id, db)
        if db.query(UserSubscription).filter(UserSubscription.transaction_id == transaction_id).first():
            raise ConflictError("Transaction is linked to a user subscription and cannot be deleted")
        with atomic(db):
            db.delete(transaction)
