from fastapi import APIRouter, Depends

from app.api.dependencies import require_feature, require_route_access
from app.api.v1 import agents, billing, cron, customers, org, orders, products, register, superadmin, users

api_router = APIRouter()

api_router.include_router(register.router, prefix="/register", tags=["register"])
api_router.include_router(org.router, prefix="/org", tags=["org"])
api_router.include_router(
    products.router,
    prefix="/products",
    tags=["products"],
    dependencies=[Depends(require_route_access("/products"))],
)
api_router.include_router(
    customers.router,
    prefix="/customers",
    tags=["customers"],
    dependencies=[Depends(require_route_access("/customers"))],
)
api_router.include_router(
    orders.router,
    prefix="/orders",
    tags=["orders"],
    dependencies=[Depends(require_route_access("/orders"))],
)
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(
    agents.router,
    prefix="/agents",
    tags=["agents"],
    dependencies=[Depends(require_route_access("/agents")), Depends(require_feature("agents"))],
)
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
api_router.include_router(superadmin.router, prefix="/superadmin", tags=["superadmin"])
