# backend/app/db/models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, TenantOwnedMixin


class User(TenantOwnedMixin, BaseModel):
    """Staff member of an organization"""
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=True)

    role = Column(String(50), default="staff", nullable=False)  # admin, manager, staff, viewer
    # Per-user route overrides; empty means role defaults apply
    custom_routes = Column(JSON, default=list, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="users")
