"""
Auto-match engine.

Scores an owner's candidate pool against a job with the oracle, keeps the best
matches and attaches them to the job. Scoring runs in fixed-width batches: the
calls inside a batch run concurrently, batches run one after another.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Set

from sqlalchemy import select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError
from ..models.candidate import Candidate
from ..models.job import Job, JobCandidateLink, LinkStatus
from .oracle import GeminiOracle

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_MIN_SCORE = 50
MAX_CANDIDATES_TO_SCORE = 200
SCORING_BATCH_SIZE = 3


@dataclass(frozen=True)
class ScoredCandidate:
    candidate_id: int
    score: int
    explanation: str = ""


def rank_matches(results: Iterable[ScoredCandidate], min_score: int, limit: int) -> List[ScoredCandidate]:
    """Keep scores >= min_score, highest first (ties keep pool order), at most ``limit``."""
    eligible = [r for r in results if r.score >= min_score]
    return sorted(eligible, key=lambda r: r.score, reverse=True)[:max(0, limit)]


async def get_owned_job(db: AsyncSession, owner_id: str, job_id: int) -> Job:
    result = await db.execute(
        select(Job).where(Job.id == job_id).where(Job.owner_id == owner_id)
    )
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError("job", f"id={job_id}")
    return job


async def load_candidate_pool(db: AsyncSession, owner_id: str) -> List[Candidate]:
    """The owner's most recent candidates that have resume text."""
    result = await db.execute(
        select(Candidate)
        .where(Candidate.owner_id == owner_id)
        .where(Candidate.raw_text.is_not(None))
        .order_by(Candidate.created_at.desc(), Candidate.id.desc())
        .limit(MAX_CANDIDATES_TO_SCORE)
    )
    return list(result.scalars().all())


async def score_pool(
    oracle: GeminiOracle,
    job_text: str,
    candidates: List[Candidate],
    batch_size: int = SCORING_BATCH_SIZE,
) -> List[ScoredCandidate]:
    """
    Score every candidate, ``batch_size`` calls at a time.

    All calls of a batch settle before the first failure (if any) is raised,
    which aborts the remaining batches.
    """
    scored: List[ScoredCandidate] = []
    for start in range(0, len(candidates), batch_size):
        batch = candidates[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(oracle.score_match(job_text, c.raw_text) for c in batch),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        for candidate, match in zip(batch, outcomes):
            scored.append(ScoredCandidate(candidate.id, match.score, match.explanation))
        logger.debug(f"Scored {len(scored)}/{len(candidates)} candidates")
    return scored


async def upsert_job_candidate_link(db: AsyncSession, job_id: int, candidate_id: int, match_score: int) -> None:
    """
    Insert the (job, candidate) link or update its score in one statement.

    New links start in SOURCED; an existing link keeps its status and notes.
    """
    now = datetime.now(timezone.utc)
    values = dict(
        job_id=job_id,
        candidate_id=candidate_id,
        status=LinkStatus.SOURCED.value,
        match_score=match_score,
        created_at=now,
        updated_at=now,
    )
    dialect = db.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        insert = sqlite_insert if dialect == "sqlite" else pg_insert
        stmt = insert(JobCandidateLink).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[JobCandidateLink.job_id, JobCandidateLink.candidate_id],
            set_={"match_score": stmt.excluded.match_score, "updated_at": stmt.excluded.updated_at},
        )
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql_insert(JobCandidateLink).values(**values)
        stmt = stmt.on_duplicate_key_update(
            match_score=stmt.inserted.match_score,
            updated_at=stmt.inserted.updated_at,
        )
    else:
        raise NotImplementedError(f"Link upsert is not supported on {dialect}")

    await db.execute(stmt)


async def auto_attach_top_candidates(
    db: AsyncSession,
    oracle: GeminiOracle,
    owner_id: str,
    job_id: int,
    limit: int = DEFAULT_LIMIT,
    min_score: int = DEFAULT_MIN_SCORE,
) -> List[ScoredCandidate]:
    """
    Score the owner's candidates against a job and attach the best ones.

    Raises:
        NotFoundError: the job does not exist or is not owned by ``owner_id``
        OracleError: a scoring call failed; nothing is written
    """
    job = await get_owned_job(db, owner_id, job_id)

    candidates = await load_candidate_pool(db, owner_id)
    if not candidates:
        logger.info(f"No candidates with resume text to match against job {job_id}")
        return []

    logger.info(f"Scoring {len(candidates)} candidates against job {job_id}")
    scored = await score_pool(oracle, job.description, candidates)

    ranked = rank_matches(scored, min_score, limit)
    if not ranked:
        logger.info(f"No candidates reached score {min_score} for job {job_id}")
        return []

    for match in ranked:
        await upsert_job_candidate_link(db, job.id, match.candidate_id, match.score)
    await db.commit()

    logger.info(f"Attached {len(ranked)} candidates to job {job_id}")
    return ranked


# ============================================================================
# Background runs
# ============================================================================

_background_tasks: Set[asyncio.Task] = set()


def schedule_auto_attach(
    session_factory: Callable[[], AsyncSession],
    oracle: GeminiOracle,
    owner_id: str,
    job_id: int,
    limit: int = DEFAULT_LIMIT,
    min_score: int = DEFAULT_MIN_SCORE,
) -> asyncio.Task:
    """Run auto-attach in the background with its own session. Failures are logged."""

    async def _run():
        async with session_factory() as db:
            try:
                await auto_attach_top_candidates(db, oracle, owner_id, job_id, limit, min_score)
            except Exception:
                await db.rollback()
                logger.exception(f"Background auto-attach failed for job {job_id}")

    task = asyncio.create_task(_run())
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
