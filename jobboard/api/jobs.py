"""Job posting endpoints.

Listing open postings is public; creating and listing one's own postings
is restricted to recruiters.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.api.dependencies import require_role
from jobboard.core import get_db
from jobboard.middleware.auth_gate import Identity
from jobboard.models import ROLE_RECRUITER, JobPosting
from jobboard.schemas.job import JobCreate, JobListResponse, JobResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=JobListResponse)
async def list_open_jobs(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> JobListResponse:
    """List open postings, newest first."""
    total = await db.scalar(
        select(func.count(JobPosting.id)).where(JobPosting.status == "open")
    )
    result = await db.execute(
        select(JobPosting)
        .where(JobPosting.status == "open")
        .order_by(JobPosting.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    items = [JobResponse.model_validate(job) for job in result.scalars().all()]
    return JobListResponse(items=items, total=total or 0)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    request: JobCreate,
    identity: Identity = Depends(require_role(ROLE_RECRUITER)),
    db: AsyncSession = Depends(get_db),
) -> JobResponse:
    """Create a posting owned by the calling recruiter."""
    job = JobPosting(
        recruiter_id=UUID(identity.subject),
        title=request.title,
        description=request.description,
        location=request.location,
    )
    db.add(job)
    await db.commit()
    logger.info(f"Job posting {job.id} created by {identity.subject}")
    return JobResponse.model_validate(job)


@router.get("/mine", response_model=JobListResponse)
async def list_my_jobs(
    identity: Identity = Depends(require_role(ROLE_RECRUITER)),
    db: AsyncSession = Depends(get_db),
) -> JobListResponse:
    """List the calling recruiter's postings."""
    result = await db.execute(
        select(JobPosting)
        .where(JobPosting.recruiter_id == UUID(identity.subject))
        .order_by(JobPosting.created_at.desc())
    )
    items = [JobResponse.model_validate(job) for job in result.scalars().all()]
    return JobListResponse(items=items, total=len(items))
