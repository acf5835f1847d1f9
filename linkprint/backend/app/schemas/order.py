# backend/app/schemas/order.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.core.constants import OrderStatus


class OrderBase(BaseModel):
    customer_id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: int = Field(1, ge=1)
    total: float = Field(0, ge=0)
    notes: Optional[str] = None


class OrderCreate(OrderBase):
    order_number: Optional[str] = None


class OrderUpdate(BaseModel):
    customer_id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    total: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class Order(OrderBase):
    id: str
    organization_id: str
    order_number: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class OrderActivity(BaseModel):
    id: str
    order_id: str
    user_id: Optional[str] = None
    action: str
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
