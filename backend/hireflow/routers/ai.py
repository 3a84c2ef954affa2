from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_owner, get_oracle
from ..schemas.ai import (
    GenerateJobDescriptionRequest,
    GenerateJobDescriptionResponse,
    JobCandidatePair,
    OutreachResponse,
    ScoreCandidateRequest,
    ScoreCandidateResponse,
    SummaryResponse,
)
from ..services import recruiter_ai
from ..services.candidate_service import get_candidate
from ..services.match_engine import get_owned_job
from ..services.oracle import GeminiOracle

router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post("/generate-jd", response_model=GenerateJobDescriptionResponse)
async def generate_job_description(
    payload: GenerateJobDescriptionRequest,
    owner_id: str = Depends(get_current_owner),
    oracle: GeminiOracle = Depends(get_oracle),
):
    """Draft a job description from a short prompt"""
    text = await recruiter_ai.generate_job_description(oracle, payload.prompt)
    return GenerateJobDescriptionResponse(job_description=text)


@router.post("/score-candidate", response_model=ScoreCandidateResponse)
async def score_candidate(
    payload: ScoreCandidateRequest,
    owner_id: str = Depends(get_current_owner),
    oracle: GeminiOracle = Depends(get_oracle),
):
    match = await recruiter_ai.score_candidate(oracle, payload.job_description, payload.candidate_text)
    return ScoreCandidateResponse(score=match.score, explanation=match.explanation)


@router.post("/generate-outreach", response_model=OutreachResponse)
async def generate_outreach(
    payload: JobCandidatePair,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    oracle: GeminiOracle = Depends(get_oracle),
):
    job = await get_owned_job(db, owner_id, payload.job_id)
    candidate = await get_candidate(db, owner_id, payload.candidate_id)
    message = await recruiter_ai.generate_outreach(oracle, job, candidate)
    return OutreachResponse(message=message)


@router.post("/generate-summary", response_model=SummaryResponse)
async def generate_summary(
    payload: JobCandidatePair,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    oracle: GeminiOracle = Depends(get_oracle),
):
    job = await get_owned_job(db, owner_id, payload.job_id)
    candidate = await get_candidate(db, owner_id, payload.candidate_id)
    summary = await recruiter_ai.generate_summary(oracle, job, candidate)
    return SummaryResponse(summary=summary)
