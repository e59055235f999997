# src/dashboard/schemas.py
from typing import List, Optional
from base_schemas import CamelModel

class ActiveCounts(CamelModel):
    total: int
    active: int
    inactive: int

class TransactionCounts(CamelModel):
    total: int
    paid: int
    pending: int

class UserSubscriptionCounts(CamelModel):
    total: int
    active: int
    expired: int

class DashboardStats(CamelModel):
    """Headline counts for the back-office dashboard."""
    tryouts: ActiveCounts
    packages: ActiveCounts
    subscription_types: ActiveCounts
    categories: int
    questions: int
    sub_chapters: int
    transactions: TransactionCounts
    user_subscriptions: UserSubscriptionCounts

class HealthWarning(CamelModel):
    """A content gap worth an admin's attention. Id and name lists are set per warning type."""
    type: str
    message: str
    count: int
    tryout_ids: Optional[List[str]] = None
    tryout_titles: Optional[List[str]] = None
    package_ids: Optional[List[str]] = None
    package_names: Optional[List[str]] = None

class DashboardHealth(CamelModel):
    warnings: List[HealthWarning] = []
