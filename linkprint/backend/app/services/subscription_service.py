# backend/app/services/subscription_service.py
import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.constants import (
    BillingCycle,
    DEFAULT_DEPARTMENTS,
    PLAN_CATALOG,
    PlanType,
    SubscriptionStatus,
    UserRole,
)
from app.core.exceptions import PlanNotFoundError, RecordNotFoundError, SlugTakenError
from app.core.logging import get_logger
from app.db.base import as_utc, utcnow
from app.db.models.organization import Organization
from app.db.models.plan import Plan
from app.db.models.subscription import Subscription
from app.db.repositories.organization_repository import OrganizationRepository
from app.db.repositories.plan_repository import PlanRepository
from app.db.repositories.scoped import create_scoped_client
from app.db.repositories.subscription_repository import SubscriptionRepository

logger = get_logger("subscriptions")


@dataclass
class ExpiredTrial:
    subscription_id: str
    organization_id: str
    slug: str
    name: str
    expired_at: datetime


def add_months(value: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping to the last day (Jan 31 + 1 -> Feb 28/29)"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def plan_from_catalog(slug: str) -> Plan:
    entry = PLAN_CATALOG[PlanType(slug)]
    limits = entry["limits"]
    return Plan(
        name=entry["name"],
        slug=slug,
        description=entry["description"],
        monthly_price=entry["monthly_price"],
        yearly_price=entry["yearly_price"],
        features=dict(entry["features"]),
        max_users=limits["maxUsers"],
        max_orders=limits["maxOrders"],
        max_products=limits["maxProducts"],
        max_storage_mb=limits["maxStorageMb"],
        display_order=entry["display_order"],
        is_active=True,
    )


async def get_or_create_default_plan(session: AsyncSession) -> Plan:
    """The signup plan; created from the catalog when the plans table was never seeded"""
    plan_repo = PlanRepository(session, autocommit=False)
    plan = await plan_repo.get_by_slug(settings.DEFAULT_PLAN_SLUG, active_only=False)
    if plan is None:
        plan = plan_from_catalog(settings.DEFAULT_PLAN_SLUG)
        session.add(plan)
        await session.flush()
        logger.info("Created missing default plan %s", settings.DEFAULT_PLAN_SLUG)
    return plan


async def register_organization(
    session: AsyncSession,
    name: str,
    slug: str,
    currency: str = "MYR",
    admin_email: Optional[str] = None,
    admin_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Organization:
    """
    Create an organization on the default plan with a Pro trial running,
    plus its default production departments and, optionally, its first
    admin user. One commit for all of it.
    """
    now = now or utcnow()
    slug = slug.strip().lower()

    if await OrganizationRepository(session).get_by_slug(slug):
        raise SlugTakenError(slug)

    try:
        plan = await get_or_create_default_plan(session)

        organization = Organization(name=name, slug=slug, currency=currency.upper())
        session.add(organization)
        try:
            await session.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same slug
            raise SlugTakenError(slug) from None

        trial_ends_at = now + timedelta(days=settings.TRIAL_DAYS)
        session.add(
            Subscription(
                organization_id=organization.id,
                plan_id=plan.id,
                status=SubscriptionStatus.TRIALING.value,
                billing_cycle=BillingCycle.MONTHLY.value,
                current_period_start=now,
                current_period_end=trial_ends_at,
                trial_ends_at=trial_ends_at,
            )
        )

        client = create_scoped_client(session, organization.id)
        async with client.transaction() as tx:
            for order, (department, color) in enumerate(DEFAULT_DEPARTMENTS):
                await tx.department.create({"name": department, "color": color, "display_order": order})
            if admin_email:
                await tx.user.create({"email": admin_email.lower(), "name": admin_name, "role": UserRole.ADMIN.value})
    except Exception:
        await session.rollback()
        raise

    await session.refresh(organization)
    logger.info(
        "Registered organization %s with %s-day trial",
        slug,
        settings.TRIAL_DAYS,
        extra={"organization_id": organization.id},
    )
    return organization


async def upgrade_subscription(
    session: AsyncSession,
    organization_id: str,
    plan_slug: str,
    billing_cycle: str = BillingCycle.MONTHLY.value,
    now: Optional[datetime] = None,
) -> Subscription:
    """Move an organization onto a paid plan; starts a fresh billing period"""
    now = now or utcnow()
    cycle = BillingCycle(billing_cycle)

    plan = await PlanRepository(session).get_by_slug(plan_slug)
    if plan is None:
        raise PlanNotFoundError(plan_slug)

    period_end = add_months(now, 12 if cycle == BillingCycle.YEARLY else 1)
    values = {
        "plan_id": plan.id,
        "status": SubscriptionStatus.ACTIVE.value,
        "billing_cycle": cycle.value,
        "current_period_start": now,
        "current_period_end": period_end,
        "canceled_at": None,
    }

    subscription_repo = SubscriptionRepository(session)
    subscription = await subscription_repo.get_for_organization(organization_id)
    if subscription is None:
        await subscription_repo.create({"organization_id": organization_id, **values})
    else:
        await subscription_repo.update({"id": subscription.id}, values)

    logger.info(
        "Subscription upgraded to %s (%s)",
        plan.slug,
        cycle.value,
        extra={"organization_id": organization_id},
    )
    return await subscription_repo.get_for_organization(organization_id)


async def cancel_subscription(
    session: AsyncSession,
    organization_id: str,
    now: Optional[datetime] = None,
) -> Subscription:
    now = now or utcnow()
    subscription_repo = SubscriptionRepository(session)
    subscription = await subscription_repo.get_for_organization(organization_id)
    if subscription is None:
        raise RecordNotFoundError("Subscription", "No subscription found")

    await subscription_repo.update(
        {"id": subscription.id},
        {"status": SubscriptionStatus.CANCELED.value, "canceled_at": now},
    )
    logger.info("Subscription canceled", extra={"organization_id": organization_id})
    return await subscription_repo.get_for_organization(organization_id)


async def expire_trials(session: AsyncSession, now: Optional[datetime] = None) -> List[ExpiredTrial]:
    """
    Mark every trialing subscription whose trial has ended as expired.

    Idempotent: the update re-checks the trialing status, so a row a
    concurrent sweep already expired is not written twice.
    """
    now = now or utcnow()
    subscription_repo = SubscriptionRepository(session)

    ended = await subscription_repo.find_ended_trials(now)
    logger.info("Found %s ended trials", len(ended))
    if not ended:
        return []

    updated = await subscription_repo.mark_expired([subscription.id for subscription, _ in ended])
    expired = [
        ExpiredTrial(
            subscription_id=subscription.id,
            organization_id=organization.id,
            slug=organization.slug,
            name=organization.name,
            expired_at=as_utc(subscription.trial_ends_at or subscription.current_period_end),
        )
        for subscription, organization in ended
    ]

    for trial in expired:
        logger.info(
            "Trial expired for %s",
            trial.slug,
            extra={"organization_id": trial.organization_id},
        )
    logger.info("Trial sweep completed | expired=%s", updated)
    return expired
