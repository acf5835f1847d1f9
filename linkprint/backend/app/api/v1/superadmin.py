# backend/app/api/v1/superadmin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.api.dependencies import get_data_access, require_super_admin
from app.db.database import get_db
from app.db.repositories.organization_repository import OrganizationRepository
from app.db.repositories.scoped import UnscopedClient
from app.db.repositories.subscription_repository import SubscriptionRepository
from app.schemas.organization import OrganizationSummary

router = APIRouter(dependencies=[Depends(require_super_admin)])


@router.get("/organizations", response_model=List[OrganizationSummary])
async def list_organizations(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    client: UnscopedClient = Depends(get_data_access),
    db: AsyncSession = Depends(get_db),
):
    """Every organization on the platform with its plan and usage"""
    organizations = await client.organization.find_many(order_by="-created_at", skip=skip, take=limit)
    org_repo = OrganizationRepository(db)
    subscription_repo = SubscriptionRepository(db)

    summaries = []
    for organization in organizations:
        subscription = await subscription_repo.get_for_organization(organization.id)
        usage = await org_repo.get_usage_stats(organization.id)
        summaries.append(
            OrganizationSummary(
                id=organization.id,
                name=organization.name,
                slug=organization.slug,
                currency=organization.currency,
                onboarding_complete=organization.onboarding_complete,
                created_at=organization.created_at,
                plan_slug=subscription.plan.slug if subscription and subscription.plan else None,
                subscription_status=subscription.status if subscription else None,
                **usage,
            )
        )
    return summaries
