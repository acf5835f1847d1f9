# backend/app/db/models/__init__.py
from app.db.models.organization import Organization
from app.db.models.plan import Plan
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.db.models.catalog import Department, Product
from app.db.models.crm import Customer, Agent
from app.db.models.order import Order, OrderActivity, Invoice

__all__ = [
    "Organization",
    "Plan",
    "Subscription",
    "User",
    "Department",
    "Product",
    "Customer",
    "Agent",
    "Order",
    "OrderActivity",
    "Invoice",
]
