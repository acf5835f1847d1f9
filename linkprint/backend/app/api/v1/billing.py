# backend/app/api/v1/billing.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.api.dependencies import get_organization_id, require_role
from app.core.constants import UserRole
from app.db.database import get_db
from app.db.repositories.plan_repository import PlanRepository
from app.schemas.plan import PlanOut
from app.schemas.subscription import Subscription, UpgradeRequest
from app.services.subscription_service import cancel_subscription, upgrade_subscription

router = APIRouter()

billing_admin = [Depends(require_role(UserRole.ADMIN.value))]


@router.get("/plans", response_model=List[PlanOut])
async def list_plans(db: AsyncSession = Depends(get_db)):
    """Active plans for the pricing table"""
    return await PlanRepository(db).list_active()


@router.post("/upgrade", response_model=Subscription, dependencies=billing_admin)
async def upgrade(
    payload: UpgradeRequest,
    organization_id: str = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Switch plan and start a new billing period (payment confirmed upstream)"""
    return await upgrade_subscription(db, organization_id, payload.plan_slug, payload.billing_cycle.value)


@router.post("/cancel", response_model=Subscription, dependencies=billing_admin)
async def cancel(
    organization_id: str = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel current subscription"""
    return await cancel_subscription(db, organization_id)
