# backend/app/schemas/subscription.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.core.constants import BillingCycle


class UpgradeRequest(BaseModel):
    plan_slug: str
    billing_cycle: BillingCycle = BillingCycle.MONTHLY


class Subscription(BaseModel):
    id: str
    organization_id: str
    plan_id: str
    status: str
    billing_cycle: str
    current_period_start: datetime
    current_period_end: datetime
    trial_ends_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpiredTrial(BaseModel):
    subscription_id: str
    organization_id: str
    slug: str
    name: str
    expired_at: datetime

    class Config:
        from_attributes = True


class TrialSweepResult(BaseModel):
    success: bool = True
    expired_count: int
    organizations: List[ExpiredTrial]
