# backend/app/db/models/plan.py
from sqlalchemy import Column, String, Integer, Boolean, JSON, Numeric, Text
from app.db.base import BaseModel


class Plan(BaseModel):
    """Feature/limit bundle sold to organizations. Edited by platform operators only."""
    __tablename__ = "plans"

    name = Column(String(100), nullable=False)
    slug = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    monthly_price = Column(Numeric(10, 2), default=0, nullable=False)
    yearly_price = Column(Numeric(10, 2), nullable=True)

    # Feature flags (camelCase keys shared with the UI)
    features = Column(JSON, default=dict, nullable=False)

    # Plan limits (-1 = unlimited)
    max_users = Column(Integer, default=5, nullable=False)
    max_orders = Column(Integer, default=100, nullable=False)
    max_products = Column(Integer, default=50, nullable=False)
    max_storage_mb = Column(Integer, default=1000, nullable=False)

    display_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def limits(self) -> dict:
        return {
            "maxUsers": self.max_users,
            "maxOrders": self.max_orders,
            "maxProducts": self.max_products,
            "maxStorageMb": self.max_storage_mb,
        }
