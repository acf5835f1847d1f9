# backend/app/services/plan_access.py
"""
Plan/feature resolution.

Precedence for ``PlanResolver.resolve``:

1. no subscription (or no plan on it)  -> Basic defaults
2. trialing and now < trial_ends_at    -> Pro features + Pro trial limits
3. anything else                       -> the linked plan, with Basic filling
                                          any flag the plan does not store

An ended trial still marked ``trialing`` is reported as ``active`` on its
base plan; the trial sweep writes the real ``expired`` status later.
"""
import math
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import (
    BASIC_FEATURES,
    BASIC_LIMITS,
    PRO_FEATURES,
    PRO_TRIAL_LIMITS,
    PlanType,
    SubscriptionStatus,
    USAGE_RESOURCES,
)
from app.core.exceptions import FeatureNotAvailableError, UsageLimitExceededError
from app.core.logging import get_logger
from app.db.base import as_utc, utcnow
from app.db.models.subscription import Subscription
from app.db.repositories.scoped import create_scoped_client
from app.db.repositories.subscription_repository import SubscriptionRepository
from app.schemas.plan import EffectiveAccess, PlanLimits, SubscriptionSnapshot, TrialInfo

logger = get_logger("plan_access")

SECONDS_PER_DAY = 24 * 60 * 60


def basic_access() -> EffectiveAccess:
    """Fail-safe access for organizations without a usable subscription"""
    return EffectiveAccess(
        plan_name="Basic",
        plan_slug=PlanType.BASIC.value,
        features=dict(BASIC_FEATURES),
        limits=PlanLimits.from_keys(BASIC_LIMITS),
        trial=TrialInfo(),
    )


def is_trial_active(subscription: Subscription, now: datetime) -> bool:
    trial_ends_at = as_utc(subscription.trial_ends_at)
    return (
        subscription.status == SubscriptionStatus.TRIALING.value
        and trial_ends_at is not None
        and now < trial_ends_at
    )


def days_remaining(ends_at: datetime, now: datetime) -> int:
    return max(0, math.ceil((ends_at - now).total_seconds() / SECONDS_PER_DAY))


def plan_features(stored: Optional[dict]) -> Dict[str, bool]:
    """Basic defaults overlaid with the plan's flags; anything but ``True`` denies"""
    return {**BASIC_FEATURES, **{key: value is True for key, value in (stored or {}).items()}}


def _snapshot(subscription: Subscription, status: str) -> SubscriptionSnapshot:
    return SubscriptionSnapshot(
        status=status,
        billing_cycle=subscription.billing_cycle,
        current_period_start=as_utc(subscription.current_period_start),
        current_period_end=as_utc(subscription.current_period_end),
        trial_ends_at=as_utc(subscription.trial_ends_at),
        canceled_at=as_utc(subscription.canceled_at),
    )


class PlanResolver:
    """Answers "what may this organization do" for one request"""

    def __init__(self, session: AsyncSession, clock: Optional[Callable[[], datetime]] = None):
        self.session = session
        self.clock = clock or utcnow

    def derive(self, subscription: Optional[Subscription]) -> EffectiveAccess:
        """Pure part of resolve(): subscription row (plan loaded) -> access"""
        if subscription is None or subscription.plan is None:
            return basic_access()

        now = self.clock()
        if is_trial_active(subscription, now):
            ends_at = as_utc(subscription.trial_ends_at)
            return EffectiveAccess(
                plan_name="Pro (Trial)",
                plan_slug=PlanType.PRO.value,
                features=dict(PRO_FEATURES),
                limits=PlanLimits.from_keys(PRO_TRIAL_LIMITS),
                trial=TrialInfo(is_active=True, ends_at=ends_at, days_remaining=days_remaining(ends_at, now)),
                subscription=_snapshot(subscription, subscription.status),
            )

        plan = subscription.plan
        status = subscription.status
        if status == SubscriptionStatus.TRIALING.value:
            status = SubscriptionStatus.ACTIVE.value

        return EffectiveAccess(
            plan_name=plan.name,
            plan_slug=plan.slug,
            features=plan_features(plan.features),
            limits=PlanLimits.from_keys(plan.limits()),
            trial=TrialInfo(is_active=False, ends_at=as_utc(subscription.trial_ends_at), days_remaining=0),
            subscription=_snapshot(subscription, status),
        )

    async def resolve(self, organization_id: str) -> EffectiveAccess:
        """Effective features/limits for an organization. Never raises."""
        try:
            subscription = await SubscriptionRepository(self.session).get_for_organization(organization_id)
            return self.derive(subscription)
        except (SQLAlchemyError, TypeError, ValueError):
            logger.exception(
                "Plan lookup failed, falling back to Basic",
                extra={"organization_id": organization_id},
            )
            return basic_access()

    async def can(self, organization_id: str, feature: str) -> bool:
        access = await self.resolve(organization_id)
        return access.can(feature)

    async def require_feature(self, organization_id: str, feature: str) -> EffectiveAccess:
        access = await self.resolve(organization_id)
        if access.cannot(feature):
            raise FeatureNotAvailableError(feature, access.plan_slug)
        return access

    async def check_usage_limit(
        self,
        organization_id: str,
        resource: str,
        access: Optional[EffectiveAccess] = None,
    ) -> None:
        """
        Raise UsageLimitExceededError when the organization already holds as
        many ``resource`` records as its plan allows.

        Call right before the create. Nothing is locked, so two concurrent
        creates can both pass and overshoot the quota by a little; that is
        accepted.
        """
        if resource not in USAGE_RESOURCES:
            raise ValueError(f"Unknown usage resource: {resource}")

        access = access or await self.resolve(organization_id)
        limit = access.limit_for(resource)
        if limit == -1:
            return

        _, model_name = USAGE_RESOURCES[resource]
        client = create_scoped_client(self.session, organization_id)
        current = await getattr(client, model_name).count()

        if current >= limit:
            logger.info(
                "Usage limit reached for %s (%s/%s)",
                resource,
                current,
                limit,
                extra={"organization_id": organization_id},
            )
            raise UsageLimitExceededError(resource, limit, current)


async def resolve(session: AsyncSession, organization_id: str) -> EffectiveAccess:
    return await PlanResolver(session).resolve(organization_id)


async def check_usage_limit(session: AsyncSession, organization_id: str, resource: str) -> None:
    await PlanResolver(session).check_usage_limit(organization_id, resource)
