"""
Recruiter-facing AI helpers: job descriptions, outreach notes, fit summaries
and one-off candidate scoring.
"""
import json
from typing import Any

from .oracle import GeminiOracle, MatchScore

JOB_DESCRIPTION_TEMPERATURE = 0.7
OUTREACH_TEMPERATURE = 0.6
SUMMARY_TEMPERATURE = 0.5


def format_skills(skills: Any) -> str:
    if isinstance(skills, list):
        return ", ".join(
            s if isinstance(s, str) else json.dumps(s, ensure_ascii=False) for s in skills
        )
    if isinstance(skills, str):
        return skills
    if skills:
        return json.dumps(skills, ensure_ascii=False, default=str)
    return "Not specified"


def _or(value: Any, default: str) -> Any:
    return default if value is None else value


def build_job_prompt(job) -> str:
    return "\n".join([
        f"Job Title: {job.title}",
        f"Company: {job.company}",
        f"Location: {job.location}",
        f"Seniority: {job.seniority}",
        f"Salary Range: {_or(job.salary_min, 'N/A')} - {_or(job.salary_max, 'N/A')}",
        f"Description: {job.description}",
        f"Required Skills: {format_skills(job.required_skills)}",
        f"Nice To Have Skills: {format_skills(job.nice_to_have_skills)}",
    ])


def build_candidate_prompt(candidate) -> str:
    return "\n".join([
        f"Name: {candidate.full_name}",
        f"Location: {_or(candidate.location, 'Not specified')}",
        f"Headline: {_or(candidate.headline, 'Not provided')}",
        f"Skills: {format_skills(candidate.skills)}",
        f"Experience: {format_skills(candidate.experience)}",
        f"Education: {format_skills(candidate.education)}",
        f"Email: {_or(candidate.email, 'Not provided')}",
        f"Phone: {_or(candidate.phone, 'Not provided')}",
        f"Years of Experience: {_or(candidate.years_of_experience, 'Not provided')}",
    ])


async def generate_job_description(oracle: GeminiOracle, prompt: str) -> str:
    return await oracle.generate_text(
        "You are an expert recruiter. Write clear, inclusive job descriptions.",
        f"Create a detailed job description based on this prompt:\n{prompt}",
        temperature=JOB_DESCRIPTION_TEMPERATURE,
    )


async def generate_outreach(oracle: GeminiOracle, job, candidate) -> str:
    return await oracle.generate_text(
        "You are a helpful recruiter crafting concise outreach messages. Be professional, "
        "friendly, and personalize the note based on the candidate profile.",
        f"Job Details:\n{build_job_prompt(job)}\n\n"
        f"Candidate Details:\n{build_candidate_prompt(candidate)}\n\n"
        "Write a short outreach message inviting the candidate to discuss the role.",
        temperature=OUTREACH_TEMPERATURE,
    )


async def generate_summary(oracle: GeminiOracle, job, candidate) -> str:
    return await oracle.generate_text(
        "You summarize candidate fit concisely for recruiters. Provide a short paragraph "
        "highlighting alignment between the candidate and the role.",
        f"Job Details:\n{build_job_prompt(job)}\n\n"
        f"Candidate Details:\n{build_candidate_prompt(candidate)}\n\n"
        "Provide a concise summary of the candidate fit for this job.",
        temperature=SUMMARY_TEMPERATURE,
    )


async def score_candidate(oracle: GeminiOracle, job_description: str, candidate_text: str) -> MatchScore:
    """Same scoring path as the auto-match engine, for a single pasted profile."""
    return await oracle.score_match(job_description, candidate_text)
