# backend/app/api/dependencies.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.logging import logger
from app.core.permissions import can_access_route
from app.core.security import InvalidTokenError, decode_token
from app.core.tenant import Principal, resolve_data_access
from app.db.database import get_db
from app.db.repositories.scoped import DataAccess, ScopedClient
from app.schemas.plan import EffectiveAccess
from app.services.plan_access import PlanResolver

security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Verified caller identity; organization and super-admin flag come from the token only"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )

    try:
        payload = decode_token(credentials.credentials)
        return Principal.from_claims(payload)
    except (InvalidTokenError, ValueError) as e:
        logger.info("Rejected bearer token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )


async def get_organization_id(
    principal: Principal = Depends(get_current_principal),
) -> str:
    """Organization the request acts on; platform admins without one can't use tenant routes"""
    if not principal.organization_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No organization associated with this account"
        )
    return principal.organization_id


async def get_data_access(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> DataAccess:
    return resolve_data_access(principal, db)


async def get_scoped_data_access(
    organization_id: str = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
) -> ScopedClient:
    """Tenant routes always run scoped, super admins included"""
    return ScopedClient(db, organization_id)


async def get_plan_access(
    organization_id: str = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
) -> EffectiveAccess:
    return await PlanResolver(db).resolve(organization_id)


def require_feature(feature: str):
    """Dependency to gate a router on a plan feature"""
    async def feature_checker(
        organization_id: str = Depends(get_organization_id),
        db: AsyncSession = Depends(get_db),
    ) -> EffectiveAccess:
        return await PlanResolver(db).require_feature(organization_id, feature)

    return feature_checker


def require_role(*roles: str):
    """Dependency to check principal role"""
    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.is_super_admin or principal.role in roles:
            return principal
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Requires one of roles: {', '.join(roles)}"
        )

    return role_checker


async def require_super_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required"
        )
    return principal


def require_route_access(path: str):
    """Dependency applying the dashboard route permission table to an API router"""
    async def route_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.is_super_admin or can_access_route(principal.role, path):
            return principal
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Your role cannot access {path}"
        )

    return route_checker
