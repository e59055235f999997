# src/payment/routes.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from payment.services import TransactionService
from payment.schemas import TransactionCreate, TransactionUpdate, TransactionResponse, PaymentStatus
from admin.services import ActivityLogger, ActionType, ResourceType
from auth.routes import get_current_admin
from auth.models import Admin
from database import get_db

router = APIRouter(prefix="/transactions", tags=["transactions"])

@router.get("", response_model=List[TransactionResponse])
def get_transactions(
    user_id: Optional[str] = None,
    payment_status: Optional[PaymentStatus] = None,
    db: Session = Depends(get_db)
):
    """Retrieve transactions, newest first."""
    return TransactionService.list_transactions(db, user_id=user_id, payment_status=payment_status)

@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: str, db: Session = Depends(get_db)):
    return TransactionService.to_response(TransactionService.get_transaction(transaction_id, db))

@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction_data: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Record a transaction; one created as paid activates the user's subscription."""
    transaction, result = TransactionService.create_transaction(transaction_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.TRANSACTION,
        resource_id=transaction.id,
        description=f"Created {transaction.payment_status} transaction for user {transaction.user_id}",
        metadata={"new_values": transaction_data.model_dump()},
        request=request
    )
    if result is not None:
        ActivityLogger.log(
            db, current_admin.id, ActionType.UPDATE if result.was_update else ActionType.CREATE,
            ResourceType.USER_SUBSCRIPTION,
            resource_id=result.subscription.id,
            description=f"Subscription for user {transaction.user_id} activated by transaction {transaction.id}",
            request=request
        )
    return TransactionService.to_response(transaction, result)

@router.patch("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    transaction_data: TransactionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Update a transaction; moving it to paid activates the user's subscription."""
    transaction, old_values, result = TransactionService.update_transaction(transaction_id, transaction_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.TRANSACTION,
        resource_id=transaction.id, description=f"Updated transaction {transaction.id}",
        metadata={"old_values": old_values, "new_values": transaction_data.model_dump(exclude_unset=True)},
        request=request
    )
    if result is not None:
        ActivityLogger.log(
            db, current_admin.id, ActionType.UPDATE if result.was_update else ActionType.CREATE,
            ResourceType.USER_SUBSCRIPTION,
            resource_id=result.subscription.id,
            description=f"Subscription for user {transaction.user_id} activated by transaction {transaction.id}",
            request=request
        )
    return TransactionService.to_response(transaction, result)

@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Delete a transaction that no subscription points at."""
    TransactionService.delete_transaction(transaction_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.TRANSACTION,
        resource_id=transaction_id, description=f"Deleted transaction {transaction_id}", request=request
    )
