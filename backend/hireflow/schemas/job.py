from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime
from ..models.job import JobStatus
from .candidate import CandidateResponse


class JobBase(BaseModel):
    title: str = Field(..., min_length=1)
    company: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    seniority: str = Field(..., min_length=1)
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    description: str = Field(..., min_length=1)
    required_skills: List[Any] = Field(default_factory=list)
    nice_to_have_skills: List[Any] = Field(default_factory=list)


class JobCreate(JobBase):
    # Checked against OPEN/CLOSED by the router, case-insensitive
    status: Optional[str] = None


class JobUpdate(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    seniority: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    description: Optional[str] = None
    required_skills: Optional[List[Any]] = None
    nice_to_have_skills: Optional[List[Any]] = None
    status: Optional[str] = None


class JobResponse(JobBase):
    id: int
    owner_id: str
    status: JobStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchResult(BaseModel):
    candidate_id: int
    score: int
    explanation: str = ""

    class Config:
        from_attributes = True


class RefreshMatchesResponse(BaseModel):
    message: str
    matches: List[MatchResult]


class LinkStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)
    match_score: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None


class JobCandidateResponse(BaseModel):
    id: int
    job_id: int
    candidate_id: int
    status: str
    match_score: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobCandidateWithCandidate(JobCandidateResponse):
    candidate: CandidateResponse
