# backend/app/api/v1/users.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.api.dependencies import (
    get_current_principal,
    get_organization_id,
    get_scoped_data_access,
    require_route_access,
)
from app.core.exceptions import RecordNotFoundError
from app.core.permissions import get_accessible_routes
from app.core.tenant import Principal
from app.db.database import get_db
from app.db.repositories.scoped import ScopedClient
from app.schemas.user import User as UserSchema, UserCreate, UserUpdate
from app.services.plan_access import check_usage_limit

router = APIRouter()

manage_users = [Depends(require_route_access("/users"))]


@router.get("/me/routes", response_model=List[str])
async def get_my_routes(
    principal: Principal = Depends(get_current_principal),
    client: ScopedClient = Depends(get_scoped_data_access),
):
    """Dashboard routes the current user may open (sidebar filtering)"""
    user = await client.user.find_unique({"id": principal.user_id})
    if user and user.custom_routes:
        return list(user.custom_routes)
    return get_accessible_routes(principal.role)


@router.get("", response_model=List[UserSchema], dependencies=manage_users)
async def list_users(client: ScopedClient = Depends(get_scoped_data_access)):
    return await client.user.find_many(order_by="email")


@router.get("/{user_id}", response_model=UserSchema, dependencies=manage_users)
async def get_user(user_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    user = await client.user.find_unique({"id": user_id})
    if not user:
        raise RecordNotFoundError("User")
    return user


@router.post("", response_model=UserSchema, status_code=status.HTTP_201_CREATED, dependencies=manage_users)
async def create_user(
    payload: UserCreate,
    organization_id: str = Depends(get_organization_id),
    client: ScopedClient = Depends(get_scoped_data_access),
    db: AsyncSession = Depends(get_db),
):
    await check_usage_limit(db, organization_id, "users")

    data = payload.model_dump(mode="json")
    data["email"] = data["email"].lower()
    try:
        return await client.user.create(data)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )


@router.patch("/{user_id}", response_model=UserSchema, dependencies=manage_users)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    client: ScopedClient = Depends(get_scoped_data_access),
):
    return await client.user.update({"id": user_id}, payload.model_dump(mode="json", exclude_unset=True))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=manage_users)
async def delete_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    client: ScopedClient = Depends(get_scoped_data_access),
):
    if user_id == principal.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    await client.user.delete({"id": user_id})
