"""
Candidate model - one row per resume upload attempt.
"""
from datetime import datetime, timezone
import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship

from ..database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ParseStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(String(64), nullable=False, index=True)

    # Parsed resume fields
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    headline = Column(String(500), nullable=True)
    ats_score = Column(Integer, nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    experience = Column(JSON, nullable=False, default=list)
    education = Column(JSON, nullable=False, default=list)
    years_of_experience = Column(Integer, nullable=True)

    # Resume source
    raw_text = Column(Text, nullable=True)
    resume_url = Column(String(500), nullable=True)
    resume_filename = Column(String(255), nullable=True)

    # Parsing outcome
    parse_status = Column(SQLEnum(ParseStatus), default=ParseStatus.PENDING, nullable=False)
    parse_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    job_links = relationship(
        "JobCandidateLink",
        back_populates="candidate",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
