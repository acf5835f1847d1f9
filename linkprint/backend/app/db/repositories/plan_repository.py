# backend/app/db/repositories/plan_repository.py
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.plan import Plan
from app.db.repositories.base import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    """Repository for Plan reference data"""

    def __init__(self, session: AsyncSession, autocommit: bool = True):
        super().__init__(Plan, session, autocommit=autocommit)

    async def get_by_slug(self, slug: str, active_only: bool = True) -> Optional[Plan]:
        where = {"slug": slug}
        if active_only:
            where["is_active"] = True
        return await self.find_first(where)

    async def list_active(self) -> List[Plan]:
        return await self.find_many({"is_active": True}, order_by="display_order")
