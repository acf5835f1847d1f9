# backend/app/db/models/subscription.py
from sqlalchemy import Column, String, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Subscription(BaseModel):
    """
    Links one organization to a plan plus billing/trial lifecycle.

    At most one row per organization. Status moves
    trialing -> active (checkout/upgrade), trialing -> expired (sweep),
    any -> canceled (explicit cancellation).
    """
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('trialing', 'active', 'past_due', 'canceled', 'expired')",
            name="subscriptions_status_check",
        ),
        CheckConstraint(
            "billing_cycle IN ('monthly', 'yearly')",
            name="subscriptions_billing_cycle_check",
        ),
    )

    organization_id = Column(
        String(36), ForeignKey("organizations.id", ondelete="CASCADE"), unique=True, nullable=False, index=True
    )
    plan_id = Column(String(36), ForeignKey("plans.id"), nullable=False, index=True)

    status = Column(String(20), default="trialing", nullable=False, index=True)
    billing_cycle = Column(String(10), default="monthly", nullable=False)
    current_period_start = Column(DateTime(timezone=True), nullable=False)
    current_period_end = Column(DateTime(timezone=True), nullable=False)
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)
    canceled_at = Column(DateTime(timezone=True), nullable=True)

    stripe_subscription_id = Column(String(255), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="subscription")
    plan = relationship("Plan")
