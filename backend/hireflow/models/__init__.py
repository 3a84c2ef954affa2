from .candidate import Candidate, ParseStatus
from .job import Job, JobCandidateLink, JobStatus, LinkStatus

__all__ = [
    "Candidate", "ParseStatus",
    "Job", "JobCandidateLink", "JobStatus", "LinkStatus",
]
