import asyncio

from app.core.constants import PLAN_CATALOG
from app.db.database import async_session_local, close_db, init_db
from app.db.repositories.plan_repository import PlanRepository
from app.services.subscription_service import plan_from_catalog


async def seed_plans():
    await init_db()
    async with async_session_local() as session:
        plan_repo = PlanRepository(session)

        for plan_type in PLAN_CATALOG:
            slug = plan_type.value
            catalog_plan = plan_from_catalog(slug)
            existing = await plan_repo.get_by_slug(slug, active_only=False)

            if existing:
                await plan_repo.update(
                    {"id": existing.id},
                    {
                        "name": catalog_plan.name,
                        "description": catalog_plan.description,
                        "monthly_price": catalog_plan.monthly_price,
                        "yearly_price": catalog_plan.yearly_price,
                        "features": catalog_plan.features,
                        "max_users": catalog_plan.max_users,
                        "max_orders": catalog_plan.max_orders,
                        "max_products": catalog_plan.max_products,
                        "max_storage_mb": catalog_plan.max_storage_mb,
                        "display_order": catalog_plan.display_order,
                        "is_active": True,
                    },
                )
                print(f"Updated plan: {catalog_plan.name}")
            else:
                session.add(catalog_plan)
                await session.commit()
                print(f"Created plan: {catalog_plan.name}")

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed_plans())
