"""
Shared fixtures: an in-memory database per test and a scripted oracle.
"""
import asyncio
import os
import tempfile

# Settings are read once at import time; point them somewhere harmless first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="hireflow-uploads-"))
os.environ["GEMINI_API_KEY"] = ""
os.environ["AUTO_ATTACH_ON_JOB_CREATE"] = "false"

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from hireflow.database import Base
from hireflow import models  # noqa: F401
from hireflow.errors import OracleError
from hireflow.models.candidate import Candidate, ParseStatus
from hireflow.models.job import Job, JobStatus
from hireflow.services.oracle import MatchScore, clamp_score


class FakeOracle:
    """
    Stand-in for GeminiOracle.

    ``structured`` is returned (or raised) by complete_structured. ``scores``
    maps candidate text to a score or an exception for score_match.
    """

    def __init__(self, structured=None, scores=None, text="Generated text", default_score=0):
        self.structured = structured
        self.scores = scores or {}
        self.text = text
        self.default_score = default_score
        self.structured_calls = []
        self.score_calls = []
        self.text_calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete_structured(self, system_prompt, user_prompt, schema=None, temperature=None):
        self.structured_calls.append((system_prompt, user_prompt))
        if isinstance(self.structured, BaseException):
            raise self.structured
        return self.structured

    async def generate_text(self, system_prompt, user_prompt, temperature=0.5):
        self.text_calls.append((system_prompt, user_prompt, temperature))
        return self.text

    async def score_match(self, job_text, candidate_text):
        self.score_calls.append(candidate_text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            value = self.scores.get(candidate_text, self.default_score)
            if isinstance(value, BaseException):
                raise value
            return MatchScore(score=clamp_score(value), explanation=f"score {value}")
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_oracle():
    return FakeOracle()


@pytest.fixture
def oracle_failure():
    return OracleError(OracleError.UPSTREAM_FAILURE, "Gemini call failed after 3 attempts")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_candidate(db):
    async def _make(owner_id="owner-1", raw_text="Experienced engineer", **fields):
        candidate = Candidate(
            owner_id=owner_id,
            raw_text=raw_text,
            full_name=fields.pop("full_name", "Test Candidate"),
            parse_status=fields.pop("parse_status", ParseStatus.SUCCESS),
            **fields,
        )
        db.add(candidate)
        await db.commit()
        await db.refresh(candidate)
        return candidate
    return _make


@pytest.fixture
def make_job(db):
    async def _make(owner_id="owner-1", **fields):
        values = dict(
            title="Backend Engineer",
            company="Acme",
            location="Remote",
            seniority="Senior",
            description="Python, FastAPI and PostgreSQL services",
            required_skills=["Python", "FastAPI"],
            nice_to_have_skills=["Kubernetes"],
            status=JobStatus.OPEN,
        )
        values.update(fields)
        job = Job(owner_id=owner_id, **values)
        db.add(job)
        await db.commit()
        await db.refresh(job)
        return job
    return _make
