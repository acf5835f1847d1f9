# backend/app/schemas/organization.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class OrganizationBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class OrganizationCreate(OrganizationBase):
    slug: str = Field(..., min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9-]+$")
    currency: str = Field("MYR", min_length=3, max_length=3)


class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class OrganizationInDB(OrganizationBase):
    id: str
    slug: str
    currency: str
    onboarding_complete: bool
    created_at: datetime

    class Config:
        from_attributes = True


class Organization(OrganizationInDB):
    pass


class OrganizationSummary(Organization):
    """Platform admin listing row"""
    plan_slug: Optional[str] = None
    subscription_status: Optional[str] = None
    users: int = 0
    orders: int = 0
    products: int = 0
