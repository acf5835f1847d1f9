# backend/app/api/v1/products.py
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.api.dependencies import get_organization_id, get_scoped_data_access
from app.core.exceptions import RecordNotFoundError
from app.db.database import get_db
from app.db.repositories.scoped import ScopedClient
from app.schemas.product import Product, ProductCreate, ProductUpdate
from app.services.plan_access import check_usage_limit

router = APIRouter()


@router.get("", response_model=List[Product])
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    client: ScopedClient = Depends(get_scoped_data_access),
):
    where = {}
    if search:
        where["OR"] = [{"name": {"icontains": search}}, {"slug": {"icontains": search}}]
    if category:
        where["category"] = category
    return await client.product.find_many(where, order_by="name", skip=skip, take=limit)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    product = await client.product.find_unique({"id": product_id})
    if not product:
        raise RecordNotFoundError("Product")
    return product


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    organization_id: str = Depends(get_organization_id),
    client: ScopedClient = Depends(get_scoped_data_access),
    db: AsyncSession = Depends(get_db),
):
    await check_usage_limit(db, organization_id, "products")
    return await client.product.create(payload.model_dump())


@router.patch("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    client: ScopedClient = Depends(get_scoped_data_access),
):
    return await client.product.update({"id": product_id}, payload.model_dump(exclude_unset=True))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    await client.product.delete({"id": product_id})
