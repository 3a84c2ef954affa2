"""
Resume ingestion: store the file, extract text, parse, normalize and persist.

Each stage returns ``StageSuccess`` or ``StageFailure``. ``ingest_resume``
turns the chain's final state into exactly one persisted candidate, whatever
happened along the way.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, Tuple, TypeVar, Union

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ExtractionError, HireFlowError, OracleError
from ..models.candidate import Candidate, ParseStatus
from ..schemas.resume import ExtractedText, ParsedResume, RawResumeFile, empty_parsed_resume
from .candidate_service import persist_candidate
from .oracle import GeminiOracle
from .resume_normalizer import normalize_parsed_resume
from .resume_parser import clean_text, parse_heuristically, parse_with_oracle
from .text_extractor import extract_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOW_CONFIDENCE_MESSAGE = (
    "Resume appears to be scanned or contains too little text. "
    "Please upload a text-based PDF or DOCX."
)
FALLBACK_USED_MESSAGE = "AI parsing failed; saved fallback extraction instead."
BOTH_FAILED_MESSAGE = "AI parsing and fallback extraction both failed."


class IngestionOutcome(str, enum.Enum):
    PARSED = "parsed"
    LOW_CONFIDENCE = "low_confidence"
    UNREADABLE = "unreadable"
    FALLBACK_USED = "fallback_used"
    FAILED = "failed"


@dataclass(frozen=True)
class StageSuccess(Generic[T]):
    value: T


@dataclass(frozen=True)
class StageFailure:
    reason: str


StageResult = Union[StageSuccess[T], StageFailure]


@dataclass
class IngestionResult:
    candidate: Candidate
    outcome: IngestionOutcome
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is IngestionOutcome.PARSED


# ============================================================================
# Stages
# ============================================================================

async def store_resume_blob(blob_store: Any, file: RawResumeFile) -> Optional[str]:
    """Store the original file. A storage failure never blocks ingestion."""
    if blob_store is None or file.content is None:
        return None
    try:
        return await blob_store.put(file.content, file.media_type, file.filename)
    except Exception as e:
        logger.error(f"Failed to store resume {file.filename}: {e}")
        return None


def extract_stage(file: RawResumeFile) -> StageResult[ExtractedText]:
    try:
        return StageSuccess(extract_text(file))
    except ExtractionError as e:
        return StageFailure(str(e))


async def oracle_stage(raw_text: str, oracle: Optional[GeminiOracle]) -> StageResult[ParsedResume]:
    try:
        parsed = await parse_with_oracle(raw_text, oracle)
        return StageSuccess(normalize_parsed_resume(parsed, raw_text))
    except HireFlowError as e:
        return StageFailure(str(e))
    except Exception as e:
        # Transport errors from the Gemini client land here
        logger.exception("AI resume parsing raised an unexpected error")
        return StageFailure(f"{OracleError.UPSTREAM_FAILURE}: {str(e) or e.__class__.__name__}")


def fallback_stage(file: RawResumeFile) -> StageResult[Tuple[str, ParsedResume]]:
    """Re-read the file and parse it with the heuristics, independent of the first pass."""
    try:
        cleaned = clean_text(extract_text(file).text)
        parsed = parse_heuristically(cleaned)
        return StageSuccess((cleaned, normalize_parsed_resume(parsed, cleaned)))
    except ExtractionError as e:
        logger.warning(f"Fallback could not re-read resume {file.filename}: {e}")
        return StageFailure(str(e))
    except Exception as e:
        # Reported on the candidate row as "fallback also failed"
        logger.exception("Heuristic resume parsing failed")
        return StageFailure(str(e) or e.__class__.__name__)


# ============================================================================
# Orchestration
# ============================================================================

async def ingest_resume(
    db: AsyncSession,
    oracle: Optional[GeminiOracle],
    blob_store: Any,
    owner_id: str,
    file: RawResumeFile,
) -> IngestionResult:
    """
    Run the full ingestion chain for one uploaded resume.

    Returns:
        IngestionResult with the persisted candidate, the outcome and the
        user-visible message (None on a clean parse)
    """
    resume_url = await store_resume_blob(blob_store, file)

    async def save(raw_text, parsed, status, error=None) -> Candidate:
        return await persist_candidate(
            db, owner_id, file, raw_text, parsed, status, error=error, resume_url=resume_url,
        )

    extracted = extract_stage(file)

    if isinstance(extracted, StageFailure):
        logger.warning(f"Could not read resume {file.filename}: {extracted.reason}")
        candidate = await save(None, empty_parsed_resume(), ParseStatus.FAILED, extracted.reason)
        return IngestionResult(
            candidate, IngestionOutcome.UNREADABLE, f"Could not read resume file: {extracted.reason}",
        )

    raw_text = extracted.value.text

    if extracted.value.is_low_confidence:
        logger.info(f"Resume {file.filename} looks scanned or too sparse")
        candidate = await save(raw_text, empty_parsed_resume(), ParseStatus.FAILED, LOW_CONFIDENCE_MESSAGE)
        return IngestionResult(candidate, IngestionOutcome.LOW_CONFIDENCE, LOW_CONFIDENCE_MESSAGE)

    parsed = await oracle_stage(raw_text, oracle)

    if isinstance(parsed, StageSuccess):
        candidate = await save(raw_text, parsed.value, ParseStatus.SUCCESS)
        return IngestionResult(candidate, IngestionOutcome.PARSED)

    logger.warning(f"AI parsing failed for {file.filename}: {parsed.reason}")
    fallback = fallback_stage(file)

    if isinstance(fallback, StageSuccess):
        cleaned, heuristic = fallback.value
        candidate = await save(cleaned, heuristic, ParseStatus.FAILED, parsed.reason)
        return IngestionResult(candidate, IngestionOutcome.FALLBACK_USED, FALLBACK_USED_MESSAGE)

    candidate = await save(
        raw_text,
        empty_parsed_resume(),
        ParseStatus.FAILED,
        f"{parsed.reason}; fallback also failed: {fallback.reason}",
    )
    return IngestionResult(candidate, IngestionOutcome.FAILED, BOTH_FAILED_MESSAGE)
