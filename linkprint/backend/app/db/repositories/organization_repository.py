# backend/app/db/repositories/organization_repository.py
from typing import Optional, Dict
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.organization import Organization
from app.db.models.user import User
from app.db.models.order import Order
from app.db.models.catalog import Product
from app.db.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for Organization operations (platform level, unscoped)"""

    def __init__(self, session: AsyncSession, autocommit: bool = True):
        super().__init__(Organization, session, autocommit=autocommit)

    async def get_by_id(self, organization_id: str) -> Optional[Organization]:
        """Get organization by ID"""
        return await self.find_unique({"id": organization_id})

    async def get_by_slug(self, slug: str) -> Optional[Organization]:
        """Get organization by slug"""
        return await self.find_unique({"slug": slug.lower()})

    async def get_usage_stats(self, organization_id: str) -> Dict[str, int]:
        """Record counts per quota-checked resource"""
        stats = {}
        for key, model in (("users", User), ("orders", Order), ("products", Product)):
            result = await self.session.execute(
                select(func.count(model.id)).where(model.organization_id == organization_id)
            )
            stats[key] = result.scalar() or 0
        return stats
