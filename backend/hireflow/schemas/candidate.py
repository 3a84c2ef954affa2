from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime
from ..models.candidate import ParseStatus


class CandidateBase(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    headline: Optional[str] = None
    resume_url: Optional[str] = None
    raw_text: Optional[str] = None
    years_of_experience: Optional[int] = Field(default=None, ge=0)
    ats_score: Optional[int] = Field(default=None, ge=0, le=100)


class CandidateCreate(CandidateBase):
    full_name: str = Field(..., min_length=1)
    skills: List[str] = Field(default_factory=list)
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    parse_status: ParseStatus = ParseStatus.PENDING
    parse_error: Optional[str] = None


class CandidateUpdate(CandidateBase):
    """Partial update - only fields present in the request are written."""
    full_name: Optional[str] = None
    skills: Optional[List[str]] = None
    experience: Optional[List[Any]] = None
    education: Optional[List[Any]] = None
    parse_status: Optional[ParseStatus] = None
    parse_error: Optional[str] = None


class CandidateResponse(CandidateBase):
    id: int
    owner_id: str
    full_name: Optional[str] = None
    skills: List[Any] = Field(default_factory=list)
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    resume_filename: Optional[str] = None
    parse_status: ParseStatus
    parse_error: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResumeUploadResponse(BaseModel):
    message: Optional[str] = None
    outcome: str
    candidate: CandidateResponse
