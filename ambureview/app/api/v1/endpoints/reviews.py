"""
Review API Endpoints.

Daily vehicle checks, mechanical reviews and cleaning logs. Submitting a
record completes the matching workflow stage.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ambureview.app.core.dependencies import get_current_user
from ambureview.app.core.guards import AmbulanceAccessGuard
from ambureview.app.db.session import get_db
from ambureview.app.schemas.review import (
    DailyCheckCreate, DailyCheckResponse,
    MechanicalReviewCreate, MechanicalReviewResponse,
    CleaningLogCreate, CleaningLogResponse
)
from ambureview.app.services.audit import log_user_action, AuditAction
from ambureview.app.services.review_service import ReviewService

router = APIRouter(prefix="/ambulances/{ambulance_id}", tags=["Reviews"])
ambulance_guard = AmbulanceAccessGuard()


# --- Daily checks ---

@router.post("/daily-checks", response_model=DailyCheckResponse, status_code=status.HTTP_201_CREATED)
async def submit_daily_check(
    ambulance_id: int,
    check: DailyCheckCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    record = await ReviewService.submit_daily_check(db, ambulance_id, check, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.DAILY_CHECK_SUBMITTED, "ambulance", ambulance_id, {"daily_check_id": record.id}
    )
    return DailyCheckResponse.model_validate(record)


@router.get("/daily-checks", response_model=List[DailyCheckResponse])
async def list_daily_checks(
    ambulance_id: int,
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await ReviewService.list_daily_checks(db, ambulance_id, limit)


@router.get("/daily-checks/latest", response_model=DailyCheckResponse)
async def latest_daily_check(
    ambulance_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await ReviewService.latest_daily_check(db, ambulance_id)


# --- Mechanical reviews ---

@router.post("/mechanical-reviews", response_model=MechanicalReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_mechanical_review(
    ambulance_id: int,
    review: MechanicalReviewCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a mechanical review.

    With no items, the configured checklist template is recorded with
    every item marked OK.
    """
    ambulance_guard.enforce(ambulance_id, current_user)
    record = await ReviewService.submit_mechanical_review(db, ambulance_id, review, current_user["user_id"])

    repairs = [item["name"] for item in record.items if item.get("status") == "Repair"]
    await log_user_action(
        db, current_user, AuditAction.MECHANICAL_REVIEW_SUBMITTED, "ambulance", ambulance_id,
        {"mechanical_review_id": record.id, "repairs": repairs}
    )
    return MechanicalReviewResponse.model_validate(record)


@router.get("/mechanical-reviews", response_model=List[MechanicalReviewResponse])
async def list_mechanical_reviews(
    ambulance_id: int,
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await ReviewService.list_mechanical_reviews(db, ambulance_id, limit)


@router.get("/mechanical-reviews/latest", response_model=MechanicalReviewResponse)
async def latest_mechanical_review(
    ambulance_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await ReviewService.latest_mechanical_review(db, ambulance_id)


# --- Cleaning logs ---

@router.post("/cleaning-logs", response_model=CleaningLogResponse, status_code=status.HTTP_201_CREATED)
async def submit_cleaning_log(
    ambulance_id: int,
    log: CleaningLogCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    record = await ReviewService.submit_cleaning_log(db, ambulance_id, log, current_user["user_id"])

    await log_user_action(
        db, current_user, AuditAction.CLEANING_LOGGED, "ambulance", ambulance_id, {"cleaning_log_id": record.id}
    )
    return CleaningLogResponse.model_validate(record)


@router.get("/cleaning-logs", response_model=List[CleaningLogResponse])
async def list_cleaning_logs(
    ambulance_id: int,
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await ReviewService.list_cleaning_logs(db, ambulance_id, limit)


@router.get("/cleaning-logs/latest", response_model=CleaningLogResponse)
async def latest_cleaning_log(
    ambulance_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ambulance_guard.enforce(ambulance_id, current_user)
    return await ReviewService.latest_cleaning_log(db, ambulance_id)
