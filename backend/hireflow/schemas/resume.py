"""
Resume schemas shared by extraction, parsing and normalization.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator


# ============================================================================
# Pipeline input / intermediate values
# ============================================================================

@dataclass(frozen=True)
class RawResumeFile:
    """An uploaded resume. Either ``content`` or ``path`` must be readable."""
    filename: str
    media_type: Optional[str] = None
    content: Optional[bytes] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class ExtractedText:
    text: str
    is_low_confidence: bool


# ============================================================================
# Pydantic Schemas for Validated Output
# ============================================================================

def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class ExperienceEntry(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    company: Optional[str] = None
    title: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, value):
        return _blank_to_none(value)


class EducationEntry(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    institution: Optional[str] = None
    degree: Optional[str] = None
    field_of_study: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def strip_strings(cls, value):
        return _blank_to_none(value)


class ParsedResume(BaseModel):
    """Canonical structured resume"""
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    headline: Optional[str] = None
    ats_score: Optional[Union[int, float]] = None
    skills: List[str] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    years_of_experience: Optional[Union[int, float]] = None

    @field_validator("full_name", "phone", "location", "headline", mode="before")
    @classmethod
    def strip_strings(cls, value):
        return _blank_to_none(value)

    @field_validator("email", mode="wrap")
    @classmethod
    def drop_malformed_email(cls, value, handler):
        # A bad address loses the field, not the whole parse
        try:
            return handler(_blank_to_none(value))
        except ValidationError:
            return None

    @field_validator("skills", "experience", "education", mode="before")
    @classmethod
    def null_list(cls, value):
        return [] if value is None else value

    @field_validator("skills", mode="before")
    @classmethod
    def flatten_skills(cls, value):
        # Models sometimes answer with [{"name": "Python", "category": ...}]
        if isinstance(value, list):
            flattened = []
            for skill in value:
                if isinstance(skill, dict):
                    skill = skill.get("name") or ""
                flattened.append(skill)
            return flattened
        return value

    def to_record(self) -> dict:
        """Plain-JSON form used for the candidate row."""
        return self.model_dump(mode="json")


def empty_parsed_resume() -> ParsedResume:
    return ParsedResume()
