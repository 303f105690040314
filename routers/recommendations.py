# routers/recommendations.py
"""
Recommendation API routes.

Role-based access:
- Property Manager: creates, responds to rejections, converts to jobs
- Owner: approves or rejects
- Technician: read-only, for properties/reports of inspections assigned to them
- Tenant: no access
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_role
from models import User, UserRole, RecommendationStatus, Priority
from schemas.common import ErrorResponse
from schemas.job import JobResponse
from schemas.recommendation import (
     RecommendationCreate,
     RecommendationReject,
     RecommendationRespond,
     RecommendationConvert,
     RecommendationResponse,
     RecommendationListResponse,
)
from services import recommendation_service

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])

ERROR_RESPONSES = {
     400: {"model": ErrorResponse},
     403: {"model": ErrorResponse},
     404: {"model": ErrorResponse},
}


@router.get(
     "",
     response_model=RecommendationListResponse,
     summary="List recommendations"
)
def list_recommendations(
     report_id: Optional[str] = Query(None),
     status_filter: Optional[RecommendationStatus] = Query(None, alias="status"),
     priority: Optional[Priority] = Query(None),
     search: Optional[str] = Query(None),
     include_archived: bool = Query(False),
     limit: int = Query(50),
     offset: int = Query(0),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     items, total, limit, offset = recommendation_service.list_recommendations(
          db,
          user,
          report_id=report_id,
          status=status_filter,
          priority=priority,
          search=search,
          include_archived=include_archived,
          limit=limit,
          offset=offset,
     )
     return RecommendationListResponse(
          items=[RecommendationResponse.model_validate(r) for r in items],
          total=total,
          page=offset // limit + 1,
          has_more=offset + len(items) < total,
     )


@router.get(
     "/{recommendation_id}",
     response_model=RecommendationResponse,
     responses=ERROR_RESPONSES,
     summary="Get a recommendation"
)
def get_recommendation(
     recommendation_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return recommendation_service.get_recommendation(db, user, recommendation_id)


@router.post(
     "",
     response_model=RecommendationResponse,
     status_code=status.HTTP_201_CREATED,
     responses=ERROR_RESPONSES,
     summary="Create a recommendation"
)
def create_recommendation(
     data: RecommendationCreate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     Create a recommendation for a managed property.

     - **report_id** is optional; without it the latest report of the
       property is linked when one exists
     - Active owners of the property are notified
     """
     return recommendation_service.create_recommendation(db, user, data)


@router.post(
     "/{recommendation_id}/approve",
     response_model=RecommendationResponse,
     responses=ERROR_RESPONSES,
     summary="Approve a recommendation"
)
def approve_recommendation(
     recommendation_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     **Role-based access:**
     - Owner: active owner of the property
     - Property Manager: only when the property has no active owners
     """
     return recommendation_service.approve_recommendation(db, user, recommendation_id)


@router.post(
     "/{recommendation_id}/reject",
     response_model=RecommendationResponse,
     responses=ERROR_RESPONSES,
     summary="Reject a recommendation"
)
def reject_recommendation(
     recommendation_id: str,
     data: RecommendationReject,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return recommendation_service.reject_recommendation(db, user, recommendation_id, data.reason)


@router.post(
     "/{recommendation_id}/respond",
     response_model=RecommendationResponse,
     responses=ERROR_RESPONSES,
     summary="Respond to a rejection"
)
def respond_to_rejection(
     recommendation_id: str,
     data: RecommendationRespond,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     return recommendation_service.respond_to_rejection(db, user, recommendation_id, data.response)


@router.post(
     "/{recommendation_id}/convert",
     responses=ERROR_RESPONSES,
     summary="Convert an approved recommendation into a job"
)
def convert_recommendation(
     recommendation_id: str,
     data: Optional[RecommendationConvert] = None,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     job, recommendation = recommendation_service.convert_to_job(
          db, user, recommendation_id, data or RecommendationConvert()
     )
     return {
          "success": True,
          "job": JobResponse.model_validate(job),
          "recommendation": RecommendationResponse.model_validate(recommendation),
     }
