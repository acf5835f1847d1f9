# backend/app/db/models/catalog.py
from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Numeric, Text
from app.db.base import BaseModel, TenantOwnedMixin


class Department(TenantOwnedMixin, BaseModel):
    """Production board lane (Design, Production, ...)"""
    __tablename__ = "departments"

    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=True)
    display_order = Column(Integer, default=0, nullable=False)


class Product(TenantOwnedMixin, BaseModel):
    """Catalog item with a base price"""
    __tablename__ = "products"

    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    base_price = Column(Numeric(10, 2), default=0, nullable=False)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
