from .candidates import router as candidates_router
from .jobs import router as jobs_router
from .job_candidates import router as job_candidates_router
from .ai import router as ai_router

__all__ = [
    "candidates_router", "jobs_router", "job_candidates_router", "ai_router"
]
