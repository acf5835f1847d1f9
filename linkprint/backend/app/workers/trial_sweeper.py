# backend/app/workers/trial_sweeper.py
"""
Expire ended trials outside the request path.

Run hourly from cron or a scheduler:

    python -m app.workers.trial_sweeper
"""
import asyncio
from typing import Any, Dict

from app.core.logging import logger


async def _sweep_async() -> Dict[str, Any]:
    from app.db.database import async_session_local, close_db
    from app.services.subscription_service import expire_trials

    try:
        async with async_session_local() as session:
            expired = await expire_trials(session)
    finally:
        await close_db()

    return {
        "expired_count": len(expired),
        "organizations": [trial.slug for trial in expired],
    }


def run_trial_sweep() -> Dict[str, Any]:
    logger.info("Starting trial sweep job")
    try:
        result = asyncio.run(_sweep_async())
    except Exception:
        logger.exception("Trial sweep job failed")
        raise
    logger.info("Trial sweep job completed | expired=%s", result["expired_count"])
    return result


if __name__ == "__main__":
    run_trial_sweep()
