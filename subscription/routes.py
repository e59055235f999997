# src/subscription/routes.py
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from subscription.services import SubscriptionTypeService, UserSubscriptionService
from subscription.schemas import (
    SubscriptionTypeCreate, SubscriptionTypeUpdate, SubscriptionTypeResponse,
    UserSubscriptionCreate, UserSubscriptionUpdate, UserSubscriptionResponse,
    SubscriptionAssignmentResponse
)
from admin.services import ActivityLogger, ActionType, ResourceType
from auth.routes import get_current_admin
from auth.models import Admin
from database import get_db

type_router = APIRouter(prefix="/subscription-types", tags=["subscription-types"])
router = APIRouter(prefix="/user-subscriptions", tags=["user-subscriptions"])

@type_router.get("", response_model=List[SubscriptionTypeResponse])
def get_subscription_types(is_active: Optional[bool] = None, db: Session = Depends(get_db)):
    """Retrieve subscription types."""
    return SubscriptionTypeService.list_types(db, is_active=is_active)

@type_router.get("/{type_id}", response_model=SubscriptionTypeResponse)
def get_subscription_type(type_id: str, db: Session = Depends(get_db)):
    return SubscriptionTypeService.get_type(type_id, db)

@type_router.post("", response_model=SubscriptionTypeResponse, status_code=status.HTTP_201_CREATED)
def create_subscription_type(
    type_data: SubscriptionTypeCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Create a subscription type."""
    subscription_type = SubscriptionTypeService.create_type(type_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.CREATE, ResourceType.SUBSCRIPTION_TYPE,
        resource_id=subscription_type.id, description=f"Created subscription type {subscription_type.name}",
        metadata={"new_values": type_data.model_dump()}, request=request
    )
    return subscription_type

@type_router.patch("/{type_id}", response_model=SubscriptionTypeResponse)
def update_subscription_type(
    type_id: str,
    type_data: SubscriptionTypeUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Partially update a subscription type."""
    subscription_type, old_values = SubscriptionTypeService.update_type(type_id, type_data, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.SUBSCRIPTION_TYPE,
        resource_id=type_id, description=f"Updated subscription type {subscription_type.name}",
        metadata={"old_values": old_values, "new_values": type_data.model_dump(exclude_unset=True)},
        request=request
    )
    return subscription_type

@type_router.delete("/{type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subscription_type(
    type_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Delete a subscription type that nothing references."""
    name = SubscriptionTypeService.delete_type(type_id, db)
    ActivityLogger.log(
        db, current_admin.id, ActionType.DELETE, ResourceType.SUBSCRIPTION_TYPE,
        resource_id=type_id, description=f"Deleted subscription type {name}", request=request
    )

@router.get("", response_model=List[UserSubscriptionResponse])
def get_user_subscriptions(
    user_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    """Retrieve user subscriptions with optional filters."""
    return UserSubscriptionService.list_subscriptions(db, user_id=user_id, is_active=is_active)

@router.get("/active", response_model=List[UserSubscriptionResponse])
def get_active_user_subscriptions(user_id: str = Query(...), db: Session = Depends(get_db)):
    """Retrieve the subscriptions a user can use right now."""
    return UserSubscriptionService.get_effectively_active(user_id, db)

@router.get("/{subscription_id}", response_model=UserSubscriptionResponse)
def get_user_subscription(subscription_id: str, db: Session = Depends(get_db)):
    subscription = UserSubscriptionService.get_subscription(subscription_id, db)
    return UserSubscriptionService.to_response(subscription)

@router.post("", response_model=SubscriptionAssignmentResponse, status_code=status.HTTP_201_CREATED)
def assign_user_subscription(
    subscription_data: UserSubscriptionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Grant a subscription to a user, or change the one they have."""
    result = UserSubscriptionService.assign_subscription(subscription_data, current_admin.id, db)
    subscription = result.subscription
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE if result.was_update else ActionType.CREATE,
        ResourceType.USER_SUBSCRIPTION,
        resource_id=subscription.id,
        description=f"{'Updated' if result.was_update else 'Created'} subscription for user {subscription.user_id}",
        metadata={"source": result.source, "transaction_id": result.transaction.id},
        request=request
    )
    return SubscriptionAssignmentResponse(
        subscription=UserSubscriptionService.to_response(subscription),
        transaction_id=result.transaction.id,
        was_update=result.was_update,
        source=result.source
    )

@router.patch("/{subscription_id}", response_model=SubscriptionAssignmentResponse)
def update_user_subscription(
    subscription_id: str,
    subscription_data: UserSubscriptionUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: Admin = Depends(get_current_admin)
):
    """Change, extend, activate or deactivate a user subscription."""
    subscription, old_values, result = UserSubscriptionService.update_subscription(
        subscription_id, subscription_data, current_admin.id, db
    )
    ActivityLogger.log(
        db, current_admin.id, ActionType.UPDATE, ResourceType.USER_SUBSCRIPTION,
        resource_id=subscription.id, description=f"Updated subscription for user {subscription.user_id}",
        metadata={
            "old_values": old_values,
            "new_values": subscription_data.model_dump(exclude_unset=True),
            "source": result.source if result else None,
        },
        request=request
    )
    return SubscriptionAssignmentResponse(
        subscription=UserSubscriptionService.to_response(subscription),
        transaction_id=result.transaction.id if result else subscription.transaction_id,
        was_update=True,
        source=result.source if result else None
    )
