"""
Tests for the resume ingestion chain: every path persists exactly one candidate
"""
import json

from sqlalchemy import func, select

from hireflow.errors import OracleError
from hireflow.models.candidate import Candidate, ParseStatus
from hireflow.schemas.resume import RawResumeFile
from hireflow.services.ingestion import (
    BOTH_FAILED_MESSAGE,
    FALLBACK_USED_MESSAGE,
    LOW_CONFIDENCE_MESSAGE,
    IngestionOutcome,
    ingest_resume,
)
from hireflow.services import ingestion
from hireflow.services.storage import LocalDiskStore, StorageError

from conftest import FakeOracle

RESUME_TEXT = "\n".join([
    "Jane Doe",
    "Senior Backend Engineer with a decade of experience shipping APIs",
    "jane.doe@example.com",
    "Skills",
    "Python",
    "python",
    "PostgreSQL",
    "Experience",
    "Acme Corp - Backend Engineer, built resume ingestion pipelines",
    "Education",
    "State University - BSc Computer Science",
])

ORACLE_JSON = json.dumps({
    "full_name": "Jane Doe",
    "email": "jane.doe@example.com",
    "skills": ["Python", "python", "PostgreSQL"],
    "years_of_experience": 10.4,
    "ats_score": 87.5,
})


def text_file(text=RESUME_TEXT, filename="jane.txt"):
    return RawResumeFile(filename=filename, media_type="text/plain", content=text.encode("utf-8"))


async def count_candidates(db):
    return await db.scalar(select(func.count()).select_from(Candidate))


async def test_parsed_outcome(db, tmp_path):
    oracle = FakeOracle(structured=ORACLE_JSON)
    store = LocalDiskStore(str(tmp_path))

    result = await ingest_resume(db, oracle, store, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.PARSED
    assert result.message is None
    candidate = result.candidate
    assert candidate.parse_status == ParseStatus.SUCCESS
    assert candidate.skills == ["Python", "PostgreSQL"]
    assert candidate.years_of_experience == 10
    assert candidate.ats_score == 88
    assert candidate.raw_text == RESUME_TEXT
    assert candidate.resume_url.startswith("/uploads/resumes/")
    assert await count_candidates(db) == 1


async def test_low_confidence_outcome(db):
    oracle = FakeOracle(structured=ORACLE_JSON)

    result = await ingest_resume(db, oracle, None, "owner-1", text_file("Jane Doe\nEngineer"))

    assert result.outcome == IngestionOutcome.LOW_CONFIDENCE
    assert result.message == LOW_CONFIDENCE_MESSAGE
    assert result.candidate.parse_status == ParseStatus.FAILED
    assert result.candidate.parse_error == LOW_CONFIDENCE_MESSAGE
    assert result.candidate.raw_text == "Jane Doe\nEngineer"
    assert oracle.structured_calls == []
    assert await count_candidates(db) == 1


async def test_unreadable_outcome(db):
    file = RawResumeFile(filename="photo.png", media_type="image/png", content=b"\x89PNG")

    result = await ingest_resume(db, FakeOracle(structured=ORACLE_JSON), None, "owner-1", file)

    assert result.outcome == IngestionOutcome.UNREADABLE
    assert result.message.startswith("Could not read resume file: unsupported type")
    assert result.candidate.parse_status == ParseStatus.FAILED
    assert result.candidate.parse_error.startswith("unsupported type")
    assert result.candidate.raw_text is None
    assert result.candidate.resume_filename == "photo.png"
    assert await count_candidates(db) == 1


async def test_fallback_used_when_oracle_missing(db):
    result = await ingest_resume(db, None, None, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.FALLBACK_USED
    assert result.message == FALLBACK_USED_MESSAGE
    candidate = result.candidate
    assert candidate.parse_status == ParseStatus.FAILED
    assert candidate.parse_error.startswith("not configured")
    assert candidate.full_name == "Jane Doe"
    assert candidate.skills == ["Python", "PostgreSQL"]
    assert candidate.education == [{
        "institution": "State University - BSc Computer Science",
        "degree": None,
        "field_of_study": None,
        "start_date": None,
        "end_date": None,
    }]
    assert await count_candidates(db) == 1


async def test_fallback_used_when_oracle_returns_garbage(db):
    result = await ingest_resume(db, FakeOracle(structured="not json"), None, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.FALLBACK_USED
    assert result.candidate.parse_error.startswith("invalid json")


async def test_both_failed_when_file_cannot_be_reread(db, tmp_path, oracle_failure):
    resume_path = tmp_path / "jane.txt"
    resume_path.write_text(RESUME_TEXT, encoding="utf-8")

    class VanishingFileOracle(FakeOracle):
        async def complete_structured(self, *args, **kwargs):
            resume_path.unlink()
            return await super().complete_structured(*args, **kwargs)

    file = RawResumeFile(filename="jane.txt", media_type="text/plain", path=str(resume_path))

    result = await ingest_resume(db, VanishingFileOracle(structured=oracle_failure), None, "owner-1", file)

    assert result.outcome == IngestionOutcome.FAILED
    assert result.message == BOTH_FAILED_MESSAGE
    assert result.candidate.parse_error.startswith(
        "upstream failure: Gemini call failed after 3 attempts; fallback also failed: unreadable source"
    )
    assert result.candidate.raw_text == RESUME_TEXT
    assert await count_candidates(db) == 1


async def test_both_failed_when_heuristics_raise(db, monkeypatch, oracle_failure):
    def broken_heuristics(raw_text):
        raise RuntimeError("heuristics exploded")

    monkeypatch.setattr(ingestion, "parse_heuristically", broken_heuristics)

    result = await ingest_resume(db, FakeOracle(structured=oracle_failure), None, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.FAILED
    assert result.message == BOTH_FAILED_MESSAGE
    assert result.candidate.parse_error == (
        "upstream failure: Gemini call failed after 3 attempts; fallback also failed: heuristics exploded"
    )
    assert result.candidate.raw_text == RESUME_TEXT
    assert await count_candidates(db) == 1


async def test_storage_failure_does_not_block_ingestion(db):
    class BrokenStore:
        async def put(self, data, content_type, filename):
            raise StorageError(StorageError.UPLOAD_FAILED, "disk full")

    result = await ingest_resume(db, FakeOracle(structured=ORACLE_JSON), BrokenStore(), "owner-1", text_file())

    assert result.outcome == IngestionOutcome.PARSED
    assert result.candidate.resume_url is None


async def test_oracle_error_object_is_not_leaked(db):
    oracle = FakeOracle(structured=OracleError(OracleError.EMPTY_RESPONSE, "Received empty response from Gemini"))

    result = await ingest_resume(db, oracle, None, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.FALLBACK_USED
    assert result.candidate.parse_error == "empty response: Received empty response from Gemini"


async def test_oracle_transport_error_falls_back(db):
    oracle = FakeOracle(structured=ConnectionError("connection reset by peer"))

    result = await ingest_resume(db, oracle, None, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.FALLBACK_USED
    assert result.candidate.parse_error == "upstream failure: connection reset by peer"
    assert result.candidate.full_name == "Jane Doe"
    assert await count_candidates(db) == 1


async def test_unusable_upload_dir_does_not_block_ingestion(db, tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("regular file")
    store = LocalDiskStore(str(blocker / "resumes"))

    result = await ingest_resume(db, FakeOracle(structured=ORACLE_JSON), store, "owner-1", text_file())

    assert result.outcome == IngestionOutcome.PARSED
    assert result.candidate.resume_url is None
    assert await count_candidates(db) == 1


async def test_store_raising_os_error_does_not_block_ingestion(db):
    class ReadOnlyStore:
        async def put(self, data, content_type, filename):
            raise PermissionError("read-only file system")

    result = await ingest_resume(db, FakeOracle(structured=ORACLE_JSON), ReadOnlyStore(), "owner-1", text_file())

    assert result.outcome == IngestionOutcome.PARSED
    assert result.candidate.resume_url is None
    assert await count_candidates(db) == 1
