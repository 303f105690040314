# routers/maintenance_plans.py
"""
Maintenance Plan API routes (property managers only).
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import require_role
from models import User, UserRole
from schemas.common import ErrorResponse
from schemas.maintenance_plan import (
     MaintenancePlanCreate,
     MaintenancePlanUpdate,
     MaintenancePlanResponse,
     MaintenancePlanListResponse,
)
from services import maintenance_plan_service

router = APIRouter(prefix="/api/plans", tags=["maintenance-plans"])

manager_only = require_role(UserRole.PROPERTY_MANAGER)

ERROR_RESPONSES = {
     403: {"model": ErrorResponse},
     404: {"model": ErrorResponse},
}


@router.get("", response_model=MaintenancePlanListResponse, summary="List maintenance plans")
def list_plans(
     property_id: Optional[str] = Query(None),
     include_archived: bool = Query(False),
     db: Session = Depends(get_session),
     user: User = Depends(manager_only)
):
     plans = maintenance_plan_service.list_plans(db, user, property_id, include_archived)
     return MaintenancePlanListResponse(
          items=[MaintenancePlanResponse.model_validate(p) for p in plans],
          total=len(plans),
     )


@router.get("/{plan_id}", response_model=MaintenancePlanResponse, responses=ERROR_RESPONSES)
def get_plan(
     plan_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(manager_only)
):
     return maintenance_plan_service.get_plan(db, user, plan_id)


@router.post(
     "",
     response_model=MaintenancePlanResponse,
     status_code=status.HTTP_201_CREATED,
     responses=ERROR_RESPONSES,
     summary="Create a maintenance plan"
)
def create_plan(
     data: MaintenancePlanCreate,
     db: Session = Depends(get_session),
     user: User = Depends(manager_only)
):
     """
     Create a recurring maintenance plan.

     - **next_due_date** defaults to now
     - **auto_create_jobs** must be true for the scheduler to generate jobs
     """
     return maintenance_plan_service.create_plan(db, user, data)


@router.patch("/{plan_id}", response_model=MaintenancePlanResponse, responses=ERROR_RESPONSES)
def update_plan(
     plan_id: str,
     data: MaintenancePlanUpdate,
     db: Session = Depends(get_session),
     user: User = Depends(manager_only)
):
     return maintenance_plan_service.update_plan(db, user, plan_id, data)


@router.delete("/{plan_id}", response_model=MaintenancePlanResponse, responses=ERROR_RESPONSES)
def archive_plan(
     plan_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(manager_only)
):
     """Archive the plan; jobs it already generated are kept."""
     return maintenance_plan_service.archive_plan(db, user, plan_id)
