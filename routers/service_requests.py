# routers/service_requests.py
"""
Service Request API routes.

Role-based access:
- Tenant: submits requests, edits own requests while SUBMITTED
- Owner: submits requests, approves or rejects cost estimates
- Property Manager: reviews, estimates, rejects, converts to jobs
- Technician: no access
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from database import get_session
from dependencies import get_current_user, require_role
from models import User, UserRole, ServiceRequestStatus, ServiceRequestCategory
from schemas.common import ErrorResponse
from schemas.service_request import (
     ServiceRequestCreate,
     ServiceRequestUpdate,
     ServiceRequestResponse,
     ServiceRequestEnvelope,
     ServiceRequestDetail,
     ServiceRequestListResponse,
     EstimateRequest,
     OwnerApproveRequest,
     RejectRequest,
     ConvertToJobRequest,
     ConvertToJobResponse,
)
from schemas.job import JobResponse
from services.service_request_service import ServiceRequestService

router = APIRouter(prefix="/api/service-requests", tags=["service-requests"])

ERROR_RESPONSES = {
     400: {"model": ErrorResponse},
     403: {"model": ErrorResponse},
     404: {"model": ErrorResponse},
}


# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------

def _build_list_response(items, total: int, limit: int, offset: int) -> ServiceRequestListResponse:
     return ServiceRequestListResponse(
          items=[ServiceRequestResponse.model_validate(r) for r in items],
          total=total,
          page=offset // limit + 1,
          has_more=offset + len(items) < total,
     )


def _envelope(request) -> ServiceRequestEnvelope:
     return ServiceRequestEnvelope(request=ServiceRequestDetail.model_validate(request))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@router.get(
     "",
     response_model=ServiceRequestListResponse,
     summary="List service requests"
)
def list_service_requests(
     status_filter: Optional[ServiceRequestStatus] = Query(None, alias="status"),
     property_id: Optional[str] = Query(None),
     category: Optional[ServiceRequestCategory] = Query(None),
     search: Optional[str] = Query(None, description="Case-insensitive match on title or description"),
     include_archived: bool = Query(False),
     limit: int = Query(50),
     offset: int = Query(0),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     List service requests visible to the caller.

     **Role-based access:**
     - Property Manager: requests on properties they manage
     - Owner: requests on properties they own
     - Tenant: requests they submitted

     ARCHIVED requests are excluded unless `status=ARCHIVED` or
     `include_archived=true`. `limit` is clamped to 1..100.
     """
     items, total, limit, offset = ServiceRequestService.list_requests(
          db,
          user,
          status=status_filter,
          property_id=property_id,
          category=category,
          search=search,
          include_archived=include_archived,
          limit=limit,
          offset=offset,
     )
     return _build_list_response(items, total, limit, offset)


@router.get(
     "/archived",
     response_model=ServiceRequestListResponse,
     summary="List archived service requests"
)
def list_archived_service_requests(
     limit: int = Query(50),
     offset: int = Query(0),
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     items, total, limit, offset = ServiceRequestService.list_archived(db, user, limit=limit, offset=offset)
     return _build_list_response(items, total, limit, offset)


@router.get(
     "/{request_id}",
     response_model=ServiceRequestEnvelope,
     responses=ERROR_RESPONSES,
     summary="Get a service request"
)
def get_service_request(
     request_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     return _envelope(ServiceRequestService.get_request(db, user, request_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

@router.post(
     "",
     response_model=ServiceRequestEnvelope,
     status_code=status.HTTP_201_CREATED,
     responses=ERROR_RESPONSES,
     summary="Submit a service request"
)
def create_service_request(
     data: ServiceRequestCreate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     Submit a new service request.

     **Role-based access:**
     - Tenant: must hold an active tenancy for the unit, or for the property
       when no unit is given
     - Owner: must own the property; supplying `owner_estimated_budget`
       sends the request straight to PENDING_MANAGER_REVIEW
     """
     return _envelope(ServiceRequestService.create_request(db, user, data))


@router.patch(
     "/{request_id}",
     response_model=ServiceRequestEnvelope,
     responses=ERROR_RESPONSES,
     summary="Update a service request"
)
def update_service_request(
     request_id: str,
     data: ServiceRequestUpdate,
     db: Session = Depends(get_session),
     user: User = Depends(get_current_user)
):
     """
     Update fields and/or move the status along the allowed transitions.

     **Role-based access:**
     - Property Manager: status, priority, title, description, review_notes
     - Owner: status, priority, review_notes
     - Tenant (requester, only while SUBMITTED): title, description, priority, photos
     """
     return _envelope(ServiceRequestService.update_request(db, user, request_id, data))


@router.post(
     "/{request_id}/estimate",
     response_model=ServiceRequestEnvelope,
     responses=ERROR_RESPONSES,
     summary="Submit a cost estimate for owner approval"
)
def submit_estimate(
     request_id: str,
     data: EstimateRequest,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     request = ServiceRequestService.submit_estimate(
          db, user, request_id, data.manager_estimated_cost, data.cost_breakdown_notes
     )
     return _envelope(request)


@router.post(
     "/{request_id}/approve",
     response_model=ServiceRequestEnvelope,
     responses=ERROR_RESPONSES,
     summary="Owner approves the cost estimate"
)
def owner_approve(
     request_id: str,
     data: Optional[OwnerApproveRequest] = None,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.OWNER))
):
     budget = data.approved_budget if data else None
     return _envelope(ServiceRequestService.owner_approve(db, user, request_id, budget))


@router.post(
     "/{request_id}/reject",
     response_model=ServiceRequestEnvelope,
     responses=ERROR_RESPONSES,
     summary="Owner rejects the cost estimate"
)
def owner_reject(
     request_id: str,
     data: RejectRequest,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.OWNER))
):
     return _envelope(ServiceRequestService.owner_reject(db, user, request_id, data.reason))


@router.post(
     "/{request_id}/manager-approve",
     responses=ERROR_RESPONSES,
     summary="Direct manager approval (disabled)"
)
def manager_approve(
     request_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     ServiceRequestService.manager_approve(db, user, request_id)


@router.post(
     "/{request_id}/manager-reject",
     response_model=ServiceRequestEnvelope,
     responses=ERROR_RESPONSES,
     summary="Manager rejects a service request"
)
def manager_reject(
     request_id: str,
     data: RejectRequest,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     return _envelope(ServiceRequestService.manager_reject(db, user, request_id, data.reason))


@router.post(
     "/{request_id}/convert-to-job",
     response_model=ConvertToJobResponse,
     responses=ERROR_RESPONSES,
     summary="Convert an owner-approved request into a job"
)
def convert_to_job(
     request_id: str,
     data: Optional[ConvertToJobRequest] = None,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     """
     Create a job from a request in APPROVED_BY_OWNER.

     The job is ASSIGNED when `assigned_to_id` is given, otherwise OPEN.
     """
     job, request = ServiceRequestService.convert_to_job(db, user, request_id, data or ConvertToJobRequest())
     return ConvertToJobResponse(
          job=JobResponse.model_validate(job),
          service_request=ServiceRequestResponse.model_validate(request),
     )


@router.delete(
     "/{request_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     responses=ERROR_RESPONSES,
     summary="Delete a service request"
)
def delete_service_request(
     request_id: str,
     db: Session = Depends(get_session),
     user: User = Depends(require_role(UserRole.PROPERTY_MANAGER))
):
     ServiceRequestService.delete_request(db, user, request_id)
     return Response(status_code=status.HTTP_204_NO_CONTENT)
