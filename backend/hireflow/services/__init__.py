from .text_extractor import (
    DocumentKind,
    detect_document_kind,
    extract_text,
    is_low_confidence
)
from .oracle import (
    GeminiOracle,
    MatchScore,
    build_oracle
)
from .resume_parser import (
    Section,
    parse_with_oracle,
    parse_heuristically
)
from .resume_normalizer import normalize_parsed_resume
from .candidate_service import (
    persist_candidate,
    get_candidate,
    list_candidates,
    delete_candidate
)
from .storage import (
    LocalDiskStore,
    CloudinaryStore,
    StorageError,
    build_blob_store
)
from .ingestion import (
    IngestionOutcome,
    IngestionResult,
    ingest_resume
)
from .match_engine import (
    ScoredCandidate,
    rank_matches,
    upsert_job_candidate_link,
    auto_attach_top_candidates,
    schedule_auto_attach
)

__all__ = [
    # Extraction
    "DocumentKind",
    "detect_document_kind",
    "extract_text",
    "is_low_confidence",
    # Oracle
    "GeminiOracle",
    "MatchScore",
    "build_oracle",
    # Parsing
    "Section",
    "parse_with_oracle",
    "parse_heuristically",
    "normalize_parsed_resume",
    # Candidates
    "persist_candidate",
    "get_candidate",
    "list_candidates",
    "delete_candidate",
    # Storage
    "LocalDiskStore",
    "CloudinaryStore",
    "StorageError",
    "build_blob_store",
    # Ingestion
    "IngestionOutcome",
    "IngestionResult",
    "ingest_resume",
    # Matching
    "ScoredCandidate",
    "rank_matches",
    "upsert_job_candidate_link",
    "auto_attach_top_candidates",
    "schedule_auto_attach"
]
