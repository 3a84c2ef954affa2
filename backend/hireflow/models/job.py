from datetime import datetime, timezone
import enum

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Float, JSON, ForeignKey,
    UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship

from ..database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class JobStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class LinkStatus(str, enum.Enum):
    """Common pipeline stages. The column itself is free-form."""
    SOURCED = "SOURCED"
    SCREENING = "SCREENING"
    INTERVIEW = "INTERVIEW"
    OFFER = "OFFER"
    HIRED = "HIRED"
    REJECTED = "REJECTED"


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    seniority = Column(String(100), nullable=False)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    description = Column(Text, nullable=False)
    required_skills = Column(JSON, nullable=False, default=list)
    nice_to_have_skills = Column(JSON, nullable=False, default=list)
    status = Column(SQLEnum(JobStatus), default=JobStatus.OPEN, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    candidate_links = relationship(
        "JobCandidateLink",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class JobCandidateLink(Base):
    """A candidate's place in a job's pipeline. One row per (job, candidate)."""
    __tablename__ = "job_candidates"
    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", name="uq_job_candidate"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(50), default=LinkStatus.SOURCED.value, nullable=False)
    match_score = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    job = relationship("Job", back_populates="candidate_links")
    candidate = relationship("Candidate", back_populates="job_links")
