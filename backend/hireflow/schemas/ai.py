from pydantic import BaseModel, Field


class GenerateJobDescriptionRequest(BaseModel):
    prompt: str = Field(..., min_length=1)


class GenerateJobDescriptionResponse(BaseModel):
    job_description: str


class ScoreCandidateRequest(BaseModel):
    job_description: str = Field(..., min_length=1)
    candidate_text: str = Field(..., min_length=1)


class ScoreCandidateResponse(BaseModel):
    score: int
    explanation: str


class JobCandidatePair(BaseModel):
    job_id: int
    candidate_id: int


class OutreachResponse(BaseModel):
    message: str


class SummaryResponse(BaseModel):
    summary: str
