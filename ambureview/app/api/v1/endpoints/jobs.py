"""
Manual job trigger endpoints.

Runs a pass synchronously and returns its report. A pass that raises is
reported as a 500 with the failure reason.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.exceptions import JobExecutionError
from ambureview.app.core.guards import require_role, STAFF_ROLES
from ambureview.app.db.session import get_db
from ambureview.app.schemas.job import JobTriggerResponse
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.job_runner import JobRunner, get_job_runner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


async def _trigger(name: str, run, current_user: dict, db: AsyncSession) -> JobTriggerResponse:
    logger.info("Manual %s pass triggered by %s", name, current_user.get("sub"))
    try:
        report = await run()
    except Exception as e:
        logger.exception("Manual %s pass failed", name)
        raise JobExecutionError(name, str(e))

    await log_user_action(db, current_user, AuditAction.JOB_TRIGGERED, "job", None, {"job": name})
    return JobTriggerResponse(job=name, status="completed", report=report.model_dump(mode="json"))


@router.post("/daily", response_model=JobTriggerResponse)
async def trigger_daily(
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    runner: JobRunner = Depends(get_job_runner),
    db: AsyncSession = Depends(get_db)
):
    """Mark expired and low items, open deduplicated incidents, notify."""
    return await _trigger("daily", runner.run_daily_pass, current_user, db)


@router.post("/hourly", response_model=JobTriggerResponse)
async def trigger_hourly(
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    runner: JobRunner = Depends(get_job_runner),
    db: AsyncSession = Depends(get_db)
):
    """Re-send expiry warnings for items expiring within 3 days."""
    return await _trigger("hourly", runner.run_hourly_pass, current_user, db)
