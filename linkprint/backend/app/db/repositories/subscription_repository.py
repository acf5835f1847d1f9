# backend/app/db/repositories/subscription_repository.py
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import select, update, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.constants import SubscriptionStatus
from app.db.models.organization import Organization
from app.db.models.subscription import Subscription
from app.db.repositories.base import BaseRepository


def trial_ended(now: datetime):
    """
    SQL predicate for "trialing and the trial is over".

    trial_ends_at is authoritative; current_period_end only stands in for
    rows that never recorded a trial end.
    """
    return and_(
        Subscription.status == SubscriptionStatus.TRIALING.value,
        or_(
            Subscription.trial_ends_at < now,
            and_(Subscription.trial_ends_at.is_(None), Subscription.current_period_end < now),
        ),
    )


class SubscriptionRepository(BaseRepository[Subscription]):
    """Repository for Subscription operations"""

    def __init__(self, session: AsyncSession, autocommit: bool = True):
        super().__init__(Subscription, session, autocommit=autocommit)

    async def get_for_organization(self, organization_id: str) -> Optional[Subscription]:
        """Get an organization's subscription with its plan loaded"""
        result = await self.session.execute(
            select(Subscription)
            .options(selectinload(Subscription.plan))
            .where(Subscription.organization_id == organization_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_ended_trials(self, now: datetime) -> List[Tuple[Subscription, Organization]]:
        result = await self.session.execute(
            select(Subscription, Organization)
            .join(Organization, Organization.id == Subscription.organization_id)
            .where(trial_ended(now))
        )
        return [(row[0], row[1]) for row in result.all()]

    async def mark_expired(self, subscription_ids: List[str]) -> int:
        """Bulk-transition trials to expired; re-checks status so concurrent sweeps don't double count"""
        if not subscription_ids:
            return 0
        result = await self.session.execute(
            update(Subscription)
            .where(Subscription.id.in_(subscription_ids))
            .where(Subscription.status == SubscriptionStatus.TRIALING.value)
            .values(status=SubscriptionStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        await self._commit()
        return result.rowcount or 0
