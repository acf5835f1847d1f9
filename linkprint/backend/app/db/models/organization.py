# backend/app/db/models/organization.py
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Organization(BaseModel):
    """Tenant root; every tenant-owned record points here"""
    __tablename__ = "organizations"

    slug = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    currency = Column(String(3), default="MYR", nullable=False)

    # Payment processor reference
    stripe_customer_id = Column(String(255), unique=True, nullable=True)

    # Onboarding
    onboarding_complete = Column(Boolean, default=False, nullable=False)

    # Relationships
    subscription = relationship(
        "Subscription", back_populates="organization", uselist=False, cascade="all, delete-orphan"
    )
    users = relationship("User", back_populates="organization", cascade="all, delete-orphan")
