"""JobBoard API Router - aggregates the /api routes."""

from fastapi import APIRouter

from jobboard.api import jobs

# Main API router - all routes will be prefixed with /api
api_router = APIRouter(prefix="/api")

api_router.include_router(jobs.router)
