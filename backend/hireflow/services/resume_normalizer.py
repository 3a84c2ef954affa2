"""
Field normalization for parsed resumes, whichever parser produced them.
"""
import math
import re
from typing import Any, List, Optional

from ..schemas.resume import ParsedResume

MAX_DERIVED_NAME_LENGTH = 80


def skill_key(skill: str) -> str:
    """Comparison key for skills: whitespace collapsed, case folded."""
    return " ".join(skill.split()).casefold()


def dedupe_skills(skills: List[str]) -> List[str]:
    """Drop blanks and duplicates, keeping the first spelling seen."""
    seen = set()
    result = []
    for skill in skills:
        if not isinstance(skill, str):
            continue
        skill = skill.strip()
        if not skill:
            continue
        key = skill_key(skill)
        if key in seen:
            continue
        seen.add(key)
        result.append(skill)
    return result


def _to_finite_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def coerce_years_of_experience(value: Any) -> Optional[int]:
    number = _to_finite_float(value)
    if number is None:
        return None
    return max(0, math.floor(number))


def coerce_ats_score(value: Any) -> Optional[int]:
    number = _to_finite_float(value)
    if number is None:
        return None
    # round half up, not banker's rounding
    return max(0, min(100, math.floor(number + 0.5)))


def derive_name_from_raw_text(raw_text: str) -> Optional[str]:
    for line in re.split(r"\r?\n", raw_text or ""):
        line = line.strip()
        if line:
            return line[:MAX_DERIVED_NAME_LENGTH]
    return None


def normalize_parsed_resume(parsed: ParsedResume, raw_text: str) -> ParsedResume:
    """
    Return a normalized copy of ``parsed``.

    Pure and idempotent: normalizing an already-normalized resume against the
    same raw text yields an equal resume.
    """
    full_name = parsed.full_name or derive_name_from_raw_text(raw_text)

    return parsed.model_copy(update={
        "full_name": full_name,
        "email": parsed.email or None,
        "phone": parsed.phone or None,
        "location": parsed.location or None,
        "headline": parsed.headline or None,
        "skills": dedupe_skills(parsed.skills or []),
        "experience": list(parsed.experience or []),
        "education": list(parsed.education or []),
        "years_of_experience": coerce_years_of_experience(parsed.years_of_experience),
        "ats_score": coerce_ats_score(parsed.ats_score),
    })
