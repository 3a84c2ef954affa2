import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_db
from ..dependencies import get_blob_store, get_current_owner, get_optional_oracle
from ..models.candidate import Candidate
from ..schemas.candidate import (
    CandidateCreate,
    CandidateResponse,
    CandidateUpdate,
    ResumeUploadResponse,
)
from ..schemas.resume import RawResumeFile
from ..services.candidate_service import delete_candidate, get_candidate, list_candidates
from ..services.ingestion import IngestionOutcome, ingest_resume
from ..services.oracle import GeminiOracle

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/candidates", tags=["Candidates"])

UPLOAD_STATUS_CODES = {
    IngestionOutcome.PARSED: status.HTTP_201_CREATED,
    IngestionOutcome.FALLBACK_USED: status.HTTP_201_CREATED,
    IngestionOutcome.LOW_CONFIDENCE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    IngestionOutcome.UNREADABLE: status.HTTP_400_BAD_REQUEST,
    IngestionOutcome.FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.post("/upload", response_model=ResumeUploadResponse)
async def upload_resume(
    resume: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    oracle: Optional[GeminiOracle] = Depends(get_optional_oracle),
    blob_store=Depends(get_blob_store),
):
    """
    Upload a resume and create a candidate from it.

    A candidate row is saved for every attempt; the status code tells the
    caller how far parsing got.
    """
    content = await resume.read()

    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File size must be less than {settings.max_upload_bytes // (1024 * 1024)}MB",
        )

    file = RawResumeFile(
        filename=resume.filename or "resume",
        media_type=resume.content_type,
        content=content,
    )
    result = await ingest_resume(db, oracle, blob_store, owner_id, file)
    logger.info(f"Resume {file.filename} ingested for owner {owner_id}: {result.outcome.value}")

    body = ResumeUploadResponse(
        message=result.message,
        outcome=result.outcome.value,
        candidate=CandidateResponse.model_validate(result.candidate),
    )
    return JSONResponse(
        status_code=UPLOAD_STATUS_CODES[result.outcome],
        content=body.model_dump(mode="json"),
    )


@router.post("", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
async def create_candidate(
    payload: CandidateCreate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Create a candidate by hand"""
    candidate = Candidate(owner_id=owner_id, **payload.model_dump())
    db.add(candidate)
    await db.commit()
    await db.refresh(candidate)
    return candidate


@router.get("", response_model=list[CandidateResponse])
async def get_candidates(
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    """Get the caller's candidates, newest first"""
    return await list_candidates(db, owner_id)


@router.get("/{candidate_id}", response_model=CandidateResponse)
async def get_candidate_by_id(
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    return await get_candidate(db, owner_id, candidate_id)


@router.put("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(
    candidate_id: int,
    payload: CandidateUpdate,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
):
    candidate = await get_candidate(db, owner_id, candidate_id)

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(candidate, field, value)

    await db.commit()
    await db.refresh(candidate)
    return candidate


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_candidate(
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
    blob_store=Depends(get_blob_store),
):
    candidate = await get_candidate(db, owner_id, candidate_id)
    resume_url = candidate.resume_url

    await delete_candidate(db, owner_id, candidate_id)

    if resume_url and blob_store is not None:
        await blob_store.cleanup(resume_url)
