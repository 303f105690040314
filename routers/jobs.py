# routers/jobs.py
"""
Job API routes.

Role-based access:
- Property Manager: all jobs on managed properties; creates and updates
- Technician: jobs assigned to them; updates status
- Owner: read-only, jobs on owned properties
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_role
from models import User, UserRole, JobStatus
from schemas.common import ErrorResponse
from schemas.job import JobCreate, JobStatusUpdate, JobResponse, JobListResponse
from services import job_service

router = APIRouter(prefix="/api/jobs", tags=["jobs"])

ERROR_RESPONSES = {
     400: {"model": ErrorResponse},
     403: {"model": ErrorResponse},
     404: {"model": ErrorResponse},
}


@router.get("", response_model=JobListResponse, summary="List jobs")
def list_jobs(
     status_filter: Optional[JobStatus] = Query(None, alias="status"),
     property_id: Optional[str] = Query(None),
     limit: int = Query(50),
     offset: int = Query(0),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     items, total, limit, offset = job_service.list_jobs(
          db, user, status=status_filter, property_id=property_id, limit=limit, offset=offset
     )
     return JobListResponse(
          items=[JobResponse.model_validate(j) for j in items],
          total=total,
          page=offset // limit + 1,
          has_more=offset + len(items) < total,
     )


@router.get("/{job_id}", response_model=JobResponse, responses=ERROR_RESPONSES, summary="Get a job")
def get_job(
     job_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return job_service.get_job(db, user, job_id)


@router.post(
     "",
     response_model=JobResponse,
     status_code=status.HTTP_201_CREATED,
     responses=ERROR_RESPONSES,
     summary="Create a job"
)
def create_job(
     data: JobCreate,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     return job_service.create_job(db, user, data)


@router.patch(
     "/{job_id}/status",
     response_model=JobResponse,
     responses=ERROR_RESPONSES,
     summary="Change a job's status"
)
def update_job_status(
     job_id: str,
     data: JobStatusUpdate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     Move a job along OPEN -> ASSIGNED -> IN_PROGRESS -> COMPLETED.
     Any non-final status may be CANCELLED.

     - **Property Manager** of the property, or the **assigned technician**
     - COMPLETED stamps `completed_date`
     """
     return job_service.update_job_status(db, user, job_id, data)
