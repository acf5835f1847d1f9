# backend/app/schemas/user.py
from pydantic import BaseModel, EmailStr
from typing import List, Optional
from datetime import datetime

from app.core.constants import UserRole


class UserBase(BaseModel):
    email: EmailStr
    name: Optional[str] = None


class UserCreate(UserBase):
    role: UserRole = UserRole.STAFF
    custom_routes: List[str] = []


class UserUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[UserRole] = None
    custom_routes: Optional[List[str]] = None
    is_active: Optional[bool] = None


class UserInDB(UserBase):
    id: str
    organization_id: str
    role: str
    custom_routes: List[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class User(UserInDB):
    pass
