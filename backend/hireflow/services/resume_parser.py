"""
Resume parsing: Gemini structured extraction plus a heuristic fallback.

``parse_with_oracle`` asks the oracle for a ParsedResume-shaped JSON document
and validates it. ``parse_heuristically`` never raises; it pulls a name and the
skills / experience / education sections out of the raw text line by line.
"""
import enum
import json
import logging
import re
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import OracleError
from ..schemas.resume import EducationEntry, ExperienceEntry, ParsedResume
from .oracle import GeminiOracle, strip_code_fences

logger = logging.getLogger(__name__)

UNKNOWN_CANDIDATE = "Unknown Candidate"


# ============================================================================
# Oracle Prompt
# ============================================================================

RESUME_PARSER_SYSTEM_PROMPT = """
You are an expert resume parser. Extract structured data from the resume text provided.

══════════════════════════════════════════════════════════════════════════════
RULES
══════════════════════════════════════════════════════════════════════════════
- Return ONLY valid JSON. No markdown, no commentary.
- If data is missing, use null for fields or empty arrays as appropriate.
- "skills" is a flat list of skill names.
- "ats_score" is a number between 0 and 100 representing how ATS-friendly or
  complete the resume appears based on standard parsing signals.
- "years_of_experience" is the total professional experience in years.
- Dates stay in the form they appear in the resume.
""".strip()


def build_resume_user_prompt(raw_text: str) -> str:
    return "\n".join([
        "Resume text is enclosed between <resume> tags.",
        "<resume>",
        raw_text,
        "</resume>",
    ])


async def parse_with_oracle(raw_text: str, oracle: Optional[GeminiOracle]) -> ParsedResume:
    """
    Parse resume text into a ParsedResume using the oracle.

    Raises:
        OracleError: not configured, invalid json, empty response or upstream failure
    """
    if oracle is None:
        raise OracleError(OracleError.NOT_CONFIGURED, "GEMINI_API_KEY is not set")

    response_text = await oracle.complete_structured(
        RESUME_PARSER_SYSTEM_PROMPT,
        build_resume_user_prompt(raw_text),
        schema=ParsedResume,
    )
    cleaned = strip_code_fences(response_text)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON response: {e}. Raw response: {cleaned[:500]}")
        raise OracleError(OracleError.INVALID_JSON, str(e)) from e

    if not isinstance(data, dict):
        raise OracleError(OracleError.INVALID_JSON, f"expected a JSON object, got {type(data).__name__}")

    try:
        return ParsedResume.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"Resume JSON failed validation: {e}")
        raise OracleError(OracleError.INVALID_JSON, f"{e.error_count()} validation error(s)") from e


# ============================================================================
# Heuristic Fallback
# ============================================================================

class Section(str, enum.Enum):
    NONE = "none"
    SKILLS = "skills"
    EXPERIENCE = "experience"
    EDUCATION = "education"


# Checked in order against the lower-cased line; the first match wins.
SECTION_HEADERS = [
    (re.compile(r"\bskills?\b"), Section.SKILLS),
    (re.compile(r"(experience|employment|work history)"), Section.EXPERIENCE),
    (re.compile(r"(education|academics|qualifications)"), Section.EDUCATION),
]

_TITLE_LINE = re.compile(r"^(resume|curriculum vitae|cv)$", re.IGNORECASE)


def clean_text(text: str) -> str:
    """Trim every line and collapse runs of blank lines into one."""
    lines = [line.strip() for line in text.replace("\r", "").split("\n")]
    kept = []
    for line in lines:
        if line or (kept and kept[-1] != ""):
            kept.append(line)
    return "\n".join(kept).strip()


def extract_full_name(raw_text: str) -> str:
    for line in raw_text.split("\n"):
        line = line.strip()
        if line and len(line) > 2 and not _TITLE_LINE.match(line):
            return line
    return UNKNOWN_CANDIDATE


def section_for_header(line: str) -> Optional[Section]:
    lower = line.lower()
    for pattern, section in SECTION_HEADERS:
        if pattern.search(lower):
            return section
    return None


def split_sections(raw_text: str) -> Dict[Section, List[str]]:
    buckets: Dict[Section, List[str]] = {
        Section.SKILLS: [],
        Section.EXPERIENCE: [],
        Section.EDUCATION: [],
    }
    current = Section.NONE
    for line in raw_text.split("\n"):
        header = section_for_header(line)
        if header is not None:
            current = header
            continue
        cleaned = line.strip()
        if current is not Section.NONE and cleaned:
            buckets[current].append(cleaned)
    return buckets


def parse_heuristically(raw_text: str) -> ParsedResume:
    """Best-effort extraction without the oracle. Never raises on string input."""
    text = clean_text(raw_text or "")
    sections = split_sections(text)
    return ParsedResume(
        full_name=extract_full_name(text),
        skills=sections[Section.SKILLS],
        experience=[ExperienceEntry(description=line) for line in sections[Section.EXPERIENCE]],
        education=[EducationEntry(institution=line) for line in sections[Section.EDUCATION]],
    )
