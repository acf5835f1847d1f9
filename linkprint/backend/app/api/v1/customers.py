# backend/app/api/v1/customers.py
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from app.api.dependencies import get_scoped_data_access
from app.core.exceptions import RecordNotFoundError
from app.db.repositories.scoped import ScopedClient
from app.schemas.customer import Customer, CustomerCreate, CustomerUpdate

router = APIRouter()


@router.get("", response_model=List[Customer])
async def list_customers(
    search: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    client: ScopedClient = Depends(get_scoped_data_access),
):
    where = {}
    if search:
        where["OR"] = [
            {"name": {"icontains": search}},
            {"email": {"icontains": search}},
            {"company": {"icontains": search}},
        ]
    return await client.customer.find_many(where, order_by="-created_at", skip=skip, take=limit)


@router.get("/{customer_id}", response_model=Customer)
async def get_customer(customer_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    customer = await client.customer.find_unique({"id": customer_id})
    if not customer:
        raise RecordNotFoundError("Customer")
    return customer


@router.post("", response_model=Customer, status_code=status.HTTP_201_CREATED)
async def create_customer(payload: CustomerCreate, client: ScopedClient = Depends(get_scoped_data_access)):
    return await client.customer.create(payload.model_dump())


@router.patch("/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    client: ScopedClient = Depends(get_scoped_data_access),
):
    return await client.customer.update({"id": customer_id}, payload.model_dump(exclude_unset=True))


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(customer_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    await client.customer.delete({"id": customer_id})
