# backend/app/schemas/plan.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, Optional
from datetime import datetime

from app.core.constants import PlanType, USAGE_RESOURCES


class CamelModel(BaseModel):
    """Serializes to the camelCase keys the dashboard expects"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlanLimits(CamelModel):
    max_users: int
    max_orders: int
    max_products: int
    max_storage_mb: int

    @classmethod
    def from_keys(cls, limits: Dict[str, int]) -> "PlanLimits":
        return cls.model_validate(limits)


class TrialInfo(CamelModel):
    is_active: bool = False
    ends_at: Optional[datetime] = None
    days_remaining: int = 0


class SubscriptionSnapshot(CamelModel):
    status: str
    billing_cycle: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None


class EffectiveAccess(CamelModel):
    """Features and limits an organization may use right now. Derived, never stored."""
    plan_name: str
    plan_slug: str
    features: Dict[str, bool]
    limits: PlanLimits
    trial: TrialInfo = Field(default_factory=TrialInfo)
    subscription: Optional[SubscriptionSnapshot] = None

    def can(self, feature: str) -> bool:
        # Closed world: unknown features are denied
        return self.features.get(feature) is True

    def cannot(self, feature: str) -> bool:
        return not self.can(feature)

    def limit_for(self, resource: str) -> int:
        if resource not in USAGE_RESOURCES:
            raise ValueError(f"Unknown usage resource: {resource}")
        limit_key, _ = USAGE_RESOURCES[resource]
        return self.limits.model_dump(by_alias=True)[limit_key]

    @property
    def is_basic(self) -> bool:
        return self.plan_slug == PlanType.BASIC.value

    @property
    def is_pro(self) -> bool:
        return self.plan_slug == PlanType.PRO.value

    @property
    def is_enterprise(self) -> bool:
        return self.plan_slug == PlanType.ENTERPRISE.value


class PlanOut(CamelModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    monthly_price: float
    yearly_price: Optional[float] = None
    features: Dict[str, bool]
    max_users: int
    max_orders: int
    max_products: int
    max_storage_mb: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
