# backend/app/api/v1/orders.py
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.api.dependencies import get_current_principal, get_organization_id, get_scoped_data_access
from app.core.constants import InvoiceStatus, OrderStatus
from app.core.exceptions import RecordNotFoundError
from app.core.logging import logger
from app.core.tenant import Principal
from app.db.base import utcnow
from app.db.database import get_db
from app.db.repositories.scoped import ScopedClient
from app.schemas.order import Order, OrderActivity, OrderCreate, OrderStatusUpdate, OrderUpdate
from app.services.plan_access import check_usage_limit

router = APIRouter()


def _order_number() -> str:
    return f"ORD-{utcnow():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


@router.get("", response_model=List[Order])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    customer_id: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    client: ScopedClient = Depends(get_scoped_data_access),
):
    where = {}
    if status_filter:
        where["status"] = status_filter.value
    if customer_id:
        where["customer_id"] = customer_id
    return await client.order.find_many(where, order_by="-created_at", skip=skip, take=limit)


@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    order = await client.order.find_unique({"id": order_id})
    if not order:
        raise RecordNotFoundError("Order")
    return order


@router.get("/{order_id}/activity", response_model=List[OrderActivity])
async def get_order_activity(order_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    return await client.order_activity.find_many({"order_id": order_id}, order_by="created_at")


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    organization_id: str = Depends(get_organization_id),
    client: ScopedClient = Depends(get_scoped_data_access),
    db: AsyncSession = Depends(get_db),
):
    await check_usage_limit(db, organization_id, "orders")

    data = payload.model_dump()
    data["order_number"] = data["order_number"] or _order_number()
    return await client.order.create(data)


@router.patch("/{order_id}", response_model=Order)
async def update_order(
    order_id: str,
    payload: OrderUpdate,
    client: ScopedClient = Depends(get_scoped_data_access),
):
    return await client.order.update({"id": order_id}, payload.model_dump(exclude_unset=True))


@router.patch("/{order_id}/status", response_model=Order)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    client: ScopedClient = Depends(get_scoped_data_access),
):
    """Move an order along the board; history and invoice follow in the same transaction"""
    new_status = payload.status.value

    async with client.transaction() as tx:
        order = await tx.order.find_unique({"id": order_id})
        if not order:
            raise RecordNotFoundError("Order")
        previous = order.status
        actor = await tx.user.find_unique({"id": principal.user_id})

        order = await tx.order.update({"id": order_id}, {"status": new_status})
        await tx.order_activity.create({
            "order_id": order_id,
            "user_id": actor.id if actor else None,
            "action": "status_changed",
            "from_status": previous,
            "to_status": new_status,
        })
        if new_status == OrderStatus.COMPLETED.value:
            paid = await tx.invoice.update_many(
                {"order_id": order_id, "status": InvoiceStatus.UNPAID.value},
                {"status": InvoiceStatus.PAID.value, "paid_at": utcnow()},
            )
            if paid:
                logger.info(
                    "Marked %s invoice(s) paid for order %s",
                    paid,
                    order.order_number,
                    extra={"organization_id": tx.organization_id},
                )

    return order


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: str, client: ScopedClient = Depends(get_scoped_data_access)):
    await client.order.delete({"id": order_id})
