# services/service_request_service.py
"""
Service Request Service - business logic for the service request workflow.

Every mutating operation re-loads the request and checks, in order: the
request exists, it is not ARCHIVED, the actor has authority over the
property, the property manager's subscription is active, and the current
status allows the requested move. State changes are committed before any
notification is attempted.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import (
     ServiceRequest,
     ServiceRequestStatus,
     ServiceRequestCategory,
     Property,
     PropertyOwner,
     Unit,
     UnitTenant,
     PropertyTenant,
     Job,
     JobStatus,
     User,
     UserRole,
)
from schemas.service_request import ServiceRequestCreate, ServiceRequestUpdate, ConvertToJobRequest
from services import notification_service as notify
from services.access_policy import (
     AccessPolicy,
     MANAGER_RESTRICTED_STATUSES,
     is_active_owner,
     is_property_manager,
     load_property,
     require_manager_subscription,
)
from services.audit_service import log_audit
from services.status_transitions import (
     is_valid_service_request_transition,
     get_allowed_service_request_transitions,
     transition_error_message,
)
from utils.clock import utc_now
from utils.errors import ErrorCodes, bad_request, forbidden, not_found

logger = logging.getLogger(__name__)

SR = ServiceRequestStatus

ESTIMATE_FROM = frozenset({SR.SUBMITTED, SR.UNDER_REVIEW, SR.PENDING_MANAGER_REVIEW})
MANAGER_REJECT_FROM = frozenset({
     SR.SUBMITTED,
     SR.PENDING_MANAGER_REVIEW,
     SR.UNDER_REVIEW,
     SR.PENDING_OWNER_APPROVAL,
     SR.APPROVED_BY_OWNER,
     SR.APPROVED,
})
REJECTED_STATUSES = frozenset({SR.REJECTED, SR.REJECTED_BY_OWNER})
APPROVED_STATUSES = frozenset({SR.APPROVED, SR.APPROVED_BY_OWNER})

STATUS_TEXT = {
     SR.UNDER_REVIEW: "placed under review",
     SR.PENDING_MANAGER_REVIEW: "returned to the property manager",
     SR.PENDING_OWNER_APPROVAL: "sent to the owner for approval",
     SR.APPROVED: "approved",
     SR.APPROVED_BY_OWNER: "approved by the owner",
     SR.REJECTED: "rejected",
     SR.REJECTED_BY_OWNER: "rejected by the owner",
     SR.CONVERTED_TO_JOB: "converted to a job",
     SR.COMPLETED: "completed",
}

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50


def clamp_pagination(limit: Optional[int], offset: Optional[int]) -> Tuple[int, int]:
     """Clamp limit to 1..100 (default 50) and offset to >= 0."""
     limit = DEFAULT_PAGE_SIZE if limit is None else max(1, min(limit, MAX_PAGE_SIZE))
     offset = max(0, offset or 0)
     return limit, offset


def _active_owner_property_ids(db: Session, user: User):
     now = utc_now()
     return (
          db.query(PropertyOwner.property_id)
          .filter(
               PropertyOwner.owner_id == user.id,
               or_(PropertyOwner.end_date.is_(None), PropertyOwner.end_date > now),
          )
     )


class ServiceRequestService:
     """Service class for service request business logic."""

     # -----------------------------------------------------------------------
     # Loading and scoping
     # -----------------------------------------------------------------------

     @staticmethod
     def get_or_404(db: Session, request_id: str) -> ServiceRequest:
          request = db.query(ServiceRequest).filter(ServiceRequest.id == request_id).first()
          if not request:
               raise not_found("Service request not found", ErrorCodes.RES_SERVICE_REQUEST_NOT_FOUND)
          return request

     @staticmethod
     def ensure_not_archived(request: ServiceRequest) -> None:
          if request.is_archived:
               raise forbidden(
                    "Archived service requests cannot be modified",
                    ErrorCodes.BIZ_OPERATION_NOT_ALLOWED,
               )

     @staticmethod
     def scoped_query(db: Session, user: User):
          """Base query limited to the requests `user` may see."""
          query = db.query(ServiceRequest)
          if user.role == UserRole.PROPERTY_MANAGER:
               return query.join(Property, ServiceRequest.property_id == Property.id).filter(
                    Property.manager_id == user.id
               )
          if user.role == UserRole.OWNER:
               return query.filter(ServiceRequest.property_id.in_(_active_owner_property_ids(db, user)))
          if user.role == UserRole.TENANT:
               return query.filter(ServiceRequest.requested_by_id == user.id)
          raise forbidden("Your role cannot access service requests", ErrorCodes.ACC_ROLE_REQUIRED)

     @staticmethod
     def list_requests(
          db: Session,
          user: User,
          status: Optional[ServiceRequestStatus] = None,
          property_id: Optional[str] = None,
          category: Optional[ServiceRequestCategory] = None,
          search: Optional[str] = None,
          include_archived: bool = False,
          limit: Optional[int] = None,
          offset: Optional[int] = None,
     ) -> Tuple[List[ServiceRequest], int, int, int]:
          """
          List requests visible to `user`.

          ARCHIVED rows are hidden unless asked for explicitly, either with
          status=ARCHIVED or include_archived.

          Returns:
               (items, total, limit, offset)
          """
          limit, offset = clamp_pagination(limit, offset)
          query = ServiceRequestService.scoped_query(db, user)

          if status is not None:
               query = query.filter(ServiceRequest.status == status)
          elif not include_archived:
               query = query.filter(ServiceRequest.status != SR.ARCHIVED)
          if property_id:
               query = query.filter(ServiceRequest.property_id == property_id)
          if category is not None:
               query = query.filter(ServiceRequest.category == category)
          if search and search.strip():
               pattern = f"%{search.strip()}%"
               query = query.filter(or_(
                    ServiceRequest.title.ilike(pattern),
                    ServiceRequest.description.ilike(pattern),
               ))

          total = query.count()
          items = (
               query.order_by(ServiceRequest.created_at.desc())
               .offset(offset)
               .limit(limit)
               .all()
          )
          return items, total, limit, offset

     @staticmethod
     def list_archived(
          db: Session,
          user: User,
          limit: Optional[int] = None,
          offset: Optional[int] = None,
     ) -> Tuple[List[ServiceRequest], int, int, int]:
          limit, offset = clamp_pagination(limit, offset)
          query = ServiceRequestService.scoped_query(db, user).filter(ServiceRequest.status == SR.ARCHIVED)
          total = query.count()
          items = (
               query.order_by(ServiceRequest.archived_at.desc())
               .offset(offset)
               .limit(limit)
               .all()
          )
          return items, total, limit, offset

     @staticmethod
     def get_request(db: Session, user: User, request_id: str) -> ServiceRequest:
          request = ServiceRequestService.get_or_404(db, request_id)
          AccessPolicy.for_service_request(user, request).ensure()
          return request

     # -----------------------------------------------------------------------
     # Create
     # -----------------------------------------------------------------------

     @staticmethod
     def _tenant_has_access(db: Session, user: User, prop: Property, unit_id: Optional[str]) -> bool:
          if unit_id:
               return db.query(UnitTenant).filter(
                    UnitTenant.unit_id == unit_id,
                    UnitTenant.tenant_id == user.id,
                    UnitTenant.is_active.is_(True),
               ).first() is not None

          unit_tenancy = (
               db.query(UnitTenant)
               .join(Unit, UnitTenant.unit_id == Unit.id)
               .filter(
                    Unit.property_id == prop.id,
                    UnitTenant.tenant_id == user.id,
                    UnitTenant.is_active.is_(True),
               )
               .first()
          )
          if unit_tenancy:
               return True
          return db.query(PropertyTenant).filter(
               PropertyTenant.property_id == prop.id,
               PropertyTenant.tenant_id == user.id,
               PropertyTenant.is_active.is_(True),
          ).first() is not None

     @staticmethod
     def create_request(db: Session, user: User, data: ServiceRequestCreate) -> ServiceRequest:
          """
          Submit a new service request.

          Only tenants and owners submit requests. An owner who supplies a
          budget skips straight to PENDING_MANAGER_REVIEW.

          Raises:
               DomainError: 403 for the wrong role or no access to the property,
                    404 for an unknown property, 400 for a unit outside it
          """
          if user.role not in (UserRole.TENANT, UserRole.OWNER):
               raise forbidden("Only tenants and owners can submit service requests", ErrorCodes.ACC_ROLE_REQUIRED)

          prop = load_property(db, data.property_id)

          if data.unit_id:
               unit = db.query(Unit).filter(Unit.id == data.unit_id, Unit.property_id == prop.id).first()
               if not unit:
                    raise bad_request("Unit not found in this property", ErrorCodes.RES_UNIT_NOT_FOUND)

          if user.role == UserRole.OWNER:
               has_access = is_active_owner(prop, user)
          else:
               has_access = ServiceRequestService._tenant_has_access(db, user, prop, data.unit_id)
          if not has_access:
               raise forbidden("You do not have access to this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)

          require_manager_subscription(prop, user)

          budget = data.owner_estimated_budget if user.role == UserRole.OWNER else None
          request = ServiceRequest(
               property_id=prop.id,
               unit_id=data.unit_id,
               requested_by_id=user.id,
               title=data.title.strip(),
               description=data.description.strip(),
               category=data.category,
               priority=data.priority,
               photos=list(data.photos),
               owner_estimated_budget=budget,
               status=SR.PENDING_MANAGER_REVIEW if budget else SR.SUBMITTED,
          )
          db.add(request)
          db.flush()
          log_audit(db, "serviceRequest", request.id, "CREATED", user.id, {
               "status": request.status,
               "category": request.category,
          })
          db.commit()

          notify.notify_safely(db, notify.notify_new_service_request, prop.manager_id, request)
          return request

     # -----------------------------------------------------------------------
     # Update
     # -----------------------------------------------------------------------

     @staticmethod
     def update_request(db: Session, user: User, request_id: str, data: ServiceRequestUpdate) -> ServiceRequest:
          """
          Role-scoped PATCH.

          Status changes must follow the transition table (400 otherwise); a
          manager may not jump to the approval statuses directly (403), and
          setting the current status again leaves it untouched.
          """
          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          decision = AccessPolicy.for_service_request(user, request).ensure()

          changes = data.model_dump(exclude_unset=True, exclude_none=True)
          if decision.editable_statuses is not None and request.status not in decision.editable_statuses:
               raise forbidden(
                    "You can only edit a service request while it is SUBMITTED",
                    ErrorCodes.BIZ_OPERATION_NOT_ALLOWED,
               )
          disallowed = decision.disallowed_fields(changes)
          if disallowed:
               raise forbidden(
                    f"You are not allowed to update: {', '.join(sorted(disallowed))}",
                    ErrorCodes.ACC_ACCESS_DENIED,
               )

          require_manager_subscription(request.property, user)

          now = utc_now()
          previous_status = request.status
          new_status = changes.pop("status", None)
          if new_status == previous_status:
               new_status = None

          if new_status is not None:
               if not is_valid_service_request_transition(previous_status, new_status):
                    raise bad_request(
                         transition_error_message(
                              previous_status,
                              new_status,
                              get_allowed_service_request_transitions(previous_status),
                         ),
                         ErrorCodes.BIZ_INVALID_STATUS_TRANSITION,
                    )
               if decision.is_manager and new_status in MANAGER_RESTRICTED_STATUSES:
                    raise forbidden(
                         "Property managers cannot approve service requests directly. "
                         "Submit a cost estimate for owner approval instead.",
                         ErrorCodes.BIZ_OPERATION_NOT_ALLOWED,
                    )
               request.status = new_status
               if new_status in APPROVED_STATUSES:
                    request.approved_at = now
                    request.approved_by_id = user.id
               elif new_status in REJECTED_STATUSES:
                    request.rejected_at = now
                    request.rejected_by_id = user.id

          for field, value in changes.items():
               setattr(request, field, value)
          if "review_notes" in changes:
               request.reviewed_at = now
               request.last_reviewed_at = now
               request.last_reviewed_by_id = user.id

          if new_status is not None:
               changes["status"] = new_status
          if changes:
               log_audit(db, "serviceRequest", request.id, "UPDATED", user.id, changes)
          db.commit()

          if new_status is not None:
               ServiceRequestService._notify_status_change(db, user, request, previous_status)
          return request

     @staticmethod
     def _notify_status_change(db: Session, actor: User, request: ServiceRequest, previous_status) -> None:
          requester = request.requested_by
          if requester and requester.role == UserRole.TENANT and requester.id != actor.id:
               status_text = STATUS_TEXT.get(request.status, request.status.value.lower().replace("_", " "))
               notify.notify_safely(db, notify.notify_service_request_update, requester.id, request, status_text)
          manager_id = request.property.manager_id
          if (
               previous_status == SR.SUBMITTED
               and request.status == SR.UNDER_REVIEW
               and manager_id != actor.id
          ):
               notify.notify_safely(db, notify.notify_service_request_update, manager_id, request, STATUS_TEXT[SR.UNDER_REVIEW])

     # -----------------------------------------------------------------------
     # Estimate and approvals
     # -----------------------------------------------------------------------

     @staticmethod
     def _require_manager(request: ServiceRequest, user: User) -> None:
          if not is_property_manager(request.property, user):
               raise forbidden("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)

     @staticmethod
     def _require_owner(request: ServiceRequest, user: User) -> None:
          if user.role != UserRole.OWNER or not is_active_owner(request.property, user):
               raise forbidden("Only an owner of this property can do this", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)

     @staticmethod
     def _require_status(request: ServiceRequest, allowed, action: str) -> None:
          if request.status not in allowed:
               expected = ", ".join(sorted(s.value for s in allowed))
               raise bad_request(
                    f"Cannot {action} a service request in status {request.status.value}. Expected: {expected}",
                    ErrorCodes.BIZ_INVALID_STATUS_TRANSITION,
               )

     @staticmethod
     def _require_reason(reason: Optional[str], what: str = "Rejection reason") -> str:
          if not reason or not reason.strip():
               raise bad_request(f"{what} is required", ErrorCodes.VAL_MISSING_FIELD)
          return reason.strip()

     @staticmethod
     def submit_estimate(
          db: Session,
          user: User,
          request_id: str,
          manager_estimated_cost: Decimal,
          cost_breakdown_notes: Optional[str] = None,
     ) -> ServiceRequest:
          """Manager prices the work and hands it to the owners for approval."""
          if manager_estimated_cost is None or manager_estimated_cost <= 0:
               raise bad_request("Estimated cost must be greater than zero", ErrorCodes.VAL_VALIDATION_ERROR)

          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          ServiceRequestService._require_manager(request, user)
          require_manager_subscription(request.property, user)
          ServiceRequestService._require_status(request, ESTIMATE_FROM, "estimate")

          now = utc_now()
          request.manager_estimated_cost = manager_estimated_cost
          request.cost_breakdown_notes = cost_breakdown_notes
          request.status = SR.PENDING_OWNER_APPROVAL
          request.last_reviewed_at = now
          request.last_reviewed_by_id = user.id
          log_audit(db, "serviceRequest", request.id, "ESTIMATED", user.id, {
               "manager_estimated_cost": manager_estimated_cost,
               "status": request.status,
          })
          db.commit()

          for ownership in request.property.active_owners(now):
               notify.notify_safely(db, notify.notify_owner_cost_estimate_ready, ownership.owner_id, request)
          return request

     @staticmethod
     def owner_approve(
          db: Session,
          user: User,
          request_id: str,
          approved_budget: Optional[Decimal] = None,
     ) -> ServiceRequest:
          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          ServiceRequestService._require_owner(request, user)
          require_manager_subscription(request.property, user)
          ServiceRequestService._require_status(request, {SR.PENDING_OWNER_APPROVAL}, "approve")

          now = utc_now()
          request.status = SR.APPROVED_BY_OWNER
          request.approved_budget = approved_budget if approved_budget is not None else request.manager_estimated_cost
          request.approved_by_id = user.id
          request.approved_at = now
          request.last_reviewed_at = now
          request.last_reviewed_by_id = user.id
          log_audit(db, "serviceRequest", request.id, "OWNER_APPROVED", user.id, {
               "approved_budget": request.approved_budget,
          })
          db.commit()

          notify.notify_safely(db, notify.notify_manager_owner_approved, request.property.manager_id, request)
          return request

     @staticmethod
     def owner_reject(db: Session, user: User, request_id: str, reason: Optional[str]) -> ServiceRequest:
          reason = ServiceRequestService._require_reason(reason)
          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          ServiceRequestService._require_owner(request, user)
          require_manager_subscription(request.property, user)
          ServiceRequestService._require_status(request, {SR.PENDING_OWNER_APPROVAL}, "reject")

          now = utc_now()
          request.status = SR.REJECTED_BY_OWNER
          request.rejection_reason = reason
          request.rejected_by_id = user.id
          request.rejected_at = now
          request.last_reviewed_at = now
          request.last_reviewed_by_id = user.id
          log_audit(db, "serviceRequest", request.id, "OWNER_REJECTED", user.id, {"reason": reason})
          db.commit()

          notify.notify_safely(db, notify.notify_manager_owner_rejected, request.property.manager_id, request)
          return request

     @staticmethod
     def manager_approve(db: Session, user: User, request_id: str) -> None:
          raise forbidden(
               "Direct manager approval is disabled. Submit a cost estimate for owner approval instead.",
               ErrorCodes.BIZ_OPERATION_NOT_ALLOWED,
          )

     @staticmethod
     def manager_reject(db: Session, user: User, request_id: str, reason: Optional[str]) -> ServiceRequest:
          reason = ServiceRequestService._require_reason(reason)
          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          ServiceRequestService._require_manager(request, user)
          require_manager_subscription(request.property, user)
          ServiceRequestService._require_status(request, MANAGER_REJECT_FROM, "reject")

          now = utc_now()
          request.status = SR.REJECTED
          request.rejection_reason = reason
          request.rejected_by_id = user.id
          request.rejected_at = now
          request.last_reviewed_at = now
          request.last_reviewed_by_id = user.id
          log_audit(db, "serviceRequest", request.id, "MANAGER_REJECTED", user.id, {"reason": reason})
          db.commit()

          notify.notify_safely(db, notify.notify_service_request_update, request.requested_by_id, request, STATUS_TEXT[SR.REJECTED])
          return request

     # -----------------------------------------------------------------------
     # Convert / delete
     # -----------------------------------------------------------------------

     @staticmethod
     def convert_to_job(
          db: Session,
          user: User,
          request_id: str,
          data: ConvertToJobRequest,
     ) -> Tuple[Job, ServiceRequest]:
          """
          Turn an owner-approved request into a job.

          The job insert and the CONVERTED_TO_JOB status change are committed
          together.

          Raises:
               DomainError: 400 unless the status is exactly APPROVED_BY_OWNER
          """
          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          ServiceRequestService._require_manager(request, user)
          require_manager_subscription(request.property, user)

          assignee = None
          if data.assigned_to_id:
               assignee = db.query(User).filter(User.id == data.assigned_to_id, User.is_active.is_(True)).first()
               if not assignee:
                    raise not_found("Assigned user not found", ErrorCodes.RES_USER_NOT_FOUND)

          ServiceRequestService._require_status(request, {SR.APPROVED_BY_OWNER}, "convert")

          estimated_cost = request.approved_budget or data.estimated_cost or request.manager_estimated_cost
          job = Job(
               title=request.title,
               description=request.description,
               priority=data.priority or request.priority,
               status=JobStatus.ASSIGNED if assignee else JobStatus.OPEN,
               property_id=request.property_id,
               unit_id=request.unit_id,
               assigned_to_id=assignee.id if assignee else None,
               created_by_id=user.id,
               service_request_id=request.id,
               scheduled_date=data.scheduled_date,
               estimated_cost=estimated_cost,
               notes=data.notes or f"Converted from service request #{request.id}",
          )
          db.add(job)
          db.flush()

          now = utc_now()
          request.status = SR.CONVERTED_TO_JOB
          request.last_reviewed_at = now
          request.last_reviewed_by_id = user.id
          log_audit(db, "serviceRequest", request.id, "CONVERTED_TO_JOB", user.id, {"job_id": job.id})
          db.commit()
          logger.info("Service request %s converted to job %s", request.id, job.id)

          requester = request.requested_by
          if requester and requester.role == UserRole.OWNER:
               notify.notify_safely(db, notify.notify_owner_job_created, requester.id, request, job)
          elif requester:
               notify.notify_safely(db, notify.notify_service_request_update, requester.id, request, STATUS_TEXT[SR.CONVERTED_TO_JOB])
          if assignee:
               notify.notify_safely(db, notify.notify_job_assigned, assignee.id, job)
          return job, request

     @staticmethod
     def delete_request(db: Session, user: User, request_id: str) -> None:
          request = ServiceRequestService.get_or_404(db, request_id)
          ServiceRequestService.ensure_not_archived(request)
          ServiceRequestService._require_manager(request, user)
          if request.status == SR.CONVERTED_TO_JOB or request.jobs:
               raise bad_request(
                    "Cannot delete a service request that has been converted to a job",
                    ErrorCodes.ERR_BAD_REQUEST,
               )
          log_audit(db, "serviceRequest", request.id, "DELETED", user.id)
          db.delete(request)
          db.commit()
