# backend/app/api/v1/register.py
from fastapi import APIRouter, Depends, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.db.database import get_db
from app.schemas.organization import Organization, OrganizationCreate
from app.services.subscription_service import register_organization

router = APIRouter()


class RegisterRequest(OrganizationCreate):
    admin_email: Optional[EmailStr] = None
    admin_name: Optional[str] = None


@router.post("", response_model=Organization, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Create an organization with a trial subscription and default departments"""
    return await register_organization(
        db,
        name=payload.name,
        slug=payload.slug,
        currency=payload.currency,
        admin_email=payload.admin_email,
        admin_name=payload.admin_name,
    )
