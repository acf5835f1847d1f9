# backend/app/schemas/product.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    base_price: float = Field(0, ge=0)
    department_id: Optional[str] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    department_id: Optional[str] = None
    is_active: Optional[bool] = None


class ProductInDB(ProductBase):
    id: str
    organization_id: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class Product(ProductInDB):
    pass
