# backend/app/api/v1/org.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_organization_id, get_plan_access
from app.db.database import get_db
from app.db.repositories.organization_repository import OrganizationRepository
from app.schemas.plan import EffectiveAccess

router = APIRouter()


@router.get("/plan")
async def get_org_plan(access: EffectiveAccess = Depends(get_plan_access)):
    """Current organization's effective plan, features, limits and trial state"""
    return access.model_dump(by_alias=True, exclude_none=True)


@router.get("/usage")
async def get_org_usage(
    organization_id: str = Depends(get_organization_id),
    access: EffectiveAccess = Depends(get_plan_access),
    db: AsyncSession = Depends(get_db),
):
    """Record counts next to the plan limits they count against"""
    usage = await OrganizationRepository(db).get_usage_stats(organization_id)
    return {
        resource: {"current": count, "limit": access.limit_for(resource)}
        for resource, count in usage.items()
    }
