from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_db
from ..dependencies import get_current_owner
from ..errors import NotFoundError
from ..models.job import JobCandidateLink, LinkStatus
from ..schemas.job import JobCandidateResponse, JobCandidateWithCandidate, LinkStatusUpdate
from ..services.candidate_service import get_candidate
from ..services.match_engine import get_owned_job

router = APIRouter(prefix="/api/jobs/{job_id}/candidates", tags=["Job Pipeline"])


@router.post(
    "/{candidate_id}/link",
    response_model=JobCandidateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def link_candidate_to_job(
    job_id: int,
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Add a candidate to a job's pipeline by hand"""
    await get_owned_job(db, owner_id, job_id)
    await get_candidate(db, owner_id, candidate_id)

    link = JobCandidateLink(job_id=job_id, candidate_id=candidate_id, status=LinkStatus.SOURCED.value)
    db.add(link)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Candidate is already linked to this job",
        )
    await db.refresh(link)
    return link


@router.get("", response_model=list[JobCandidateWithCandidate])
async def get_job_candidates(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Get the job's pipeline with candidate details, newest first"""
    await get_owned_job(db, owner_id, job_id)

    result = await db.execute(
        select(JobCandidateLink)
        .options(selectinload(JobCandidateLink.candidate))
        .where(JobCandidateLink.job_id == job_id)
        .order_by(JobCandidateLink.created_at.desc(), JobCandidateLink.id.desc())
    )
    return result.scalars().all()


@router.put("/{candidate_id}/status", response_model=JobCandidateResponse)
async def update_job_candidate_status(
    job_id: int,
    candidate_id: int,
    payload: LinkStatusUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    await get_owned_job(db, owner_id, job_id)

    result = await db.execute(
        select(JobCandidateLink)
        .where(JobCandidateLink.job_id == job_id)
        .where(JobCandidateLink.candidate_id == candidate_id)
    )
    link = result.scalar_one_or_none()
    if not link:
        raise NotFoundError("job candidate", f"job={job_id} candidate={candidate_id}")

    link.status = payload.status.strip()
    data = payload.model_dump(exclude_unset=True, exclude={"status"})
    for field, value in data.items():
        setattr(link, field, value)

    await db.commit()
    await db.refresh(link)
    return link
