# backend/app/schemas/agent.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class AgentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = None
    phone: Optional[str] = None


class AgentCreate(AgentBase):
    pass


class AgentUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class Agent(AgentBase):
    id: str
    organization_id: str
    wallet_balance: float
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
