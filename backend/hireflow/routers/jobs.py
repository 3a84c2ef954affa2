import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import async_session_maker, get_db
from ..dependencies import get_current_owner, get_optional_oracle, get_oracle
from ..errors import ValidationError
from ..models.job import Job, JobCandidateLink, JobStatus
from ..schemas.job import JobCreate, JobResponse, JobUpdate, MatchResult, RefreshMatchesResponse
from ..services.match_engine import (
    DEFAULT_LIMIT,
    DEFAULT_MIN_SCORE,
    auto_attach_top_candidates,
    get_owned_job,
    schedule_auto_attach,
)
from ..services.oracle import GeminiOracle

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


def normalize_job_status(value: Optional[str]) -> JobStatus:
    if not value:
        return JobStatus.OPEN
    try:
        return JobStatus(value.strip().upper())
    except ValueError:
        raise ValidationError("Status must be either OPEN or CLOSED")


def check_salary_range(salary_min: Optional[float], salary_max: Optional[float]) -> None:
    if salary_min is not None and salary_min < 0:
        raise ValidationError("salary_min must not be negative")
    if salary_min is not None and salary_max is not None and salary_max < salary_min:
        raise ValidationError("salary_max must be greater than or equal to salary_min")


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    oracle: Optional[GeminiOracle] = Depends(get_optional_oracle),
):
    """Create a job and start matching the candidate pool against it"""
    job_status = normalize_job_status(payload.status)
    check_salary_range(payload.salary_min, payload.salary_max)

    job = Job(owner_id=owner_id, status=job_status, **payload.model_dump(exclude={"status"}))
    db.add(job)
    await db.commit()
    await db.refresh(job)

    if settings.auto_attach_on_job_create and oracle is not None:
        schedule_auto_attach(async_session_maker, oracle, owner_id, job.id)
    elif oracle is None:
        logger.info(f"Skipping auto-attach for job {job.id}: oracle not configured")

    return job


@router.get("", response_model=list[JobResponse])
async def get_jobs(
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    result = await db.execute(
        select(Job).where(Job.owner_id == owner_id).order_by(Job.created_at.desc(), Job.id.desc())
    )
    return result.scalars().all()


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    return await get_owned_job(db, owner_id, job_id)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    payload: JobUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    job = await get_owned_job(db, owner_id, job_id)
    data = payload.model_dump(exclude_unset=True)

    if "status" in data:
        data["status"] = normalize_job_status(data["status"])
    check_salary_range(data.get("salary_min", job.salary_min), data.get("salary_max", job.salary_max))

    for field, value in data.items():
        setattr(job, field, value)

    await db.commit()
    await db.refresh(job)
    return job


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    job = await get_owned_job(db, owner_id, job_id)
    await db.execute(delete(JobCandidateLink).where(JobCandidateLink.job_id == job.id))
    await db.execute(delete(Job).where(Job.id == job.id))
    await db.commit()


@router.post("/{job_id}/refresh-matches", response_model=RefreshMatchesResponse)
async def refresh_job_matches(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    oracle: GeminiOracle = Depends(get_oracle),
):
    """Re-score the candidate pool against this job and update the pipeline"""
    matches = await auto_attach_top_candidates(
        db, oracle, owner_id, job_id, limit=DEFAULT_LIMIT, min_score=DEFAULT_MIN_SCORE,
    )
    return RefreshMatchesResponse(
        message="AI matches refreshed",
        matches=[MatchResult.model_validate(m) for m in matches],
    )
