# backend/app/db/models/order.py
from sqlalchemy import Column, String, ForeignKey, Integer, Numeric, Text, DateTime, CheckConstraint
from app.db.base import BaseModel, TenantOwnedMixin


class Order(TenantOwnedMixin, BaseModel):
    """Print job placed by a customer"""
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in_production', 'ready', 'completed', 'cancelled')",
            name="orders_status_check",
        ),
    )

    order_number = Column(String(50), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String(20), default="pending", nullable=False, index=True)
    notes = Column(Text, nullable=True)


class OrderActivity(TenantOwnedMixin, BaseModel):
    """Append-only status history for an order"""
    __tablename__ = "order_activities"

    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), nullable=False)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=True)


class Invoice(TenantOwnedMixin, BaseModel):
    """Customer invoice, optionally linked to an order"""
    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("status IN ('unpaid', 'paid', 'void')", name="invoices_status_check"),
    )

    invoice_number = Column(String(50), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String(10), default="unpaid", nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
