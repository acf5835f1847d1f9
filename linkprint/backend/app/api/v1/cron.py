# backend/app/api/v1/cron.py
from dataclasses import asdict
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import hmac

from app.core.config import settings
from app.core.logging import logger
from app.db.database import get_db
from app.schemas.subscription import TrialSweepResult
from app.services.subscription_service import expire_trials

router = APIRouter()


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Bearer CRON_SECRET; open when no secret is configured"""
    if not settings.CRON_SECRET:
        return
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        logger.warning("Rejected cron call with bad secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )


@router.get("/check-trials", response_model=TrialSweepResult, dependencies=[Depends(verify_cron_secret)])
async def check_trials(db: AsyncSession = Depends(get_db)):
    """Expire every trial whose end date has passed"""
    expired = await expire_trials(db)
    return TrialSweepResult(
        expired_count=len(expired),
        organizations=[asdict(trial) for trial in expired],
    )
