# backend/app/db/models/crm.py
from sqlalchemy import Column, String, Boolean, Numeric
from app.db.base import BaseModel, TenantOwnedMixin


class Customer(TenantOwnedMixin, BaseModel):
    """End customer of a print shop"""
    __tablename__ = "customers"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)


class Agent(TenantOwnedMixin, BaseModel):
    """Reseller with a prepaid wallet"""
    __tablename__ = "agents"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    wallet_balance = Column(Numeric(12, 2), default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
