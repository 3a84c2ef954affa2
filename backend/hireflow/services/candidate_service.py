"""
Candidate persistence and owner-scoped lookups.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError
from ..models.candidate import Candidate, ParseStatus
from ..models.job import JobCandidateLink
from ..schemas.resume import ParsedResume, RawResumeFile

logger = logging.getLogger(__name__)

MAX_PARSE_ERROR_LENGTH = 2000


def _safe_truncate(value: Optional[str], max_len: int) -> Optional[str]:
    """Safely truncate a string to max_len characters."""
    if value is None:
        return None
    return value[:max_len] if len(value) > max_len else value


async def persist_candidate(
    db: AsyncSession,
    owner_id: str,
    file: RawResumeFile,
    raw_text: Optional[str],
    parsed: ParsedResume,
    status: ParseStatus,
    error: Optional[str] = None,
    resume_url: Optional[str] = None,
) -> Candidate:
    """
    Insert one candidate row for an upload attempt.

    Always creates a new row, even when every parsing stage failed.
    """
    record = parsed.to_record()
    candidate = Candidate(
        owner_id=owner_id,
        full_name=_safe_truncate(record["full_name"], 255),
        email=_safe_truncate(record["email"], 255),
        phone=_safe_truncate(record["phone"], 50),
        location=_safe_truncate(record["location"], 255),
        headline=_safe_truncate(record["headline"], 500),
        ats_score=record["ats_score"],
        skills=record["skills"],
        experience=record["experience"],
        education=record["education"],
        years_of_experience=record["years_of_experience"],
        raw_text=raw_text,
        resume_url=_safe_truncate(resume_url, 500),
        resume_filename=_safe_truncate(file.filename, 255),
        parse_status=status,
        parse_error=_safe_truncate(error, MAX_PARSE_ERROR_LENGTH),
    )
    db.add(candidate)
    await db.commit()
    await db.refresh(candidate)

    logger.info(f"Saved candidate {candidate.id} for owner {owner_id} ({status.value})")
    return candidate


async def get_candidate(db: AsyncSession, owner_id: str, candidate_id: int) -> Candidate:
    result = await db.execute(
        select(Candidate)
        .where(Candidate.id == candidate_id)
        .where(Candidate.owner_id == owner_id)
    )
    candidate = result.scalar_one_or_none()
    if not candidate:
        raise NotFoundError("candidate", f"id={candidate_id}")
    return candidate


async def list_candidates(db: AsyncSession, owner_id: str) -> List[Candidate]:
    result = await db.execute(
        select(Candidate)
        .where(Candidate.owner_id == owner_id)
        .order_by(Candidate.created_at.desc(), Candidate.id.desc())
    )
    return list(result.scalars().all())


async def delete_candidate(db: AsyncSession, owner_id: str, candidate_id: int) -> None:
    candidate = await get_candidate(db, owner_id, candidate_id)
    # SQLite does not enforce ON DELETE CASCADE unless foreign keys are enabled
    await db.execute(delete(JobCandidateLink).where(JobCandidateLink.candidate_id == candidate.id))
    await db.execute(delete(Candidate).where(Candidate.id == candidate.id))
    await db.commit()
