# JobBoard Models
from jobboard.models.base import BaseModel
from jobboard.models.job_posting import JobPosting
from jobboard.models.user import ROLE_JOB_SEEKER, ROLE_RECRUITER, ROLES, User

__all__ = [
    "BaseModel",
    "JobPosting",
    "ROLES",
    "ROLE_JOB_SEEKER",
    "ROLE_RECRUITER",
    "User",
]
