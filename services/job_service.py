# services/job_service.py
"""
Job Service - listing, direct creation and the job status machine.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import (
     Job,
     JobStatus,
     Property,
     PropertyOwner,
     ServiceRequestStatus,
     Unit,
     User,
     UserRole,
)
from schemas.job import JobCreate, JobStatusUpdate
from services import notification_service as notify
from services.access_policy import AccessPolicy, is_property_manager, load_property, require_manager_subscription
from services.audit_service import log_audit
from services.service_request_service import clamp_pagination
from services.status_transitions import (
     is_valid_job_transition,
     is_valid_service_request_transition,
     get_allowed_job_transitions,
     transition_error_message,
)
from utils.clock import utc_now
from utils.errors import ErrorCodes, bad_request, forbidden, not_found

logger = logging.getLogger(__name__)


def get_job_or_404(db: Session, job_id: str) -> Job:
     job = db.query(Job).filter(Job.id == job_id).first()
     if not job:
          raise not_found("Job not found", ErrorCodes.RES_JOB_NOT_FOUND)
     return job


def _find_assignee(db: Session, user_id: str) -> User:
     assignee = db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
     if not assignee:
          raise not_found("Assigned user not found", ErrorCodes.RES_USER_NOT_FOUND)
     return assignee


def list_jobs(
     db: Session,
     user: User,
     status: Optional[JobStatus] = None,
     property_id: Optional[str] = None,
     limit: Optional[int] = None,
     offset: Optional[int] = None,
) -> Tuple[List[Job], int, int, int]:
     limit, offset = clamp_pagination(limit, offset)
     query = db.query(Job)
     if user.role == UserRole.PROPERTY_MANAGER:
          query = query.join(Property, Job.property_id == Property.id).filter(Property.manager_id == user.id)
     elif user.role == UserRole.TECHNICIAN:
          query = query.filter(Job.assigned_to_id == user.id)
     elif user.role == UserRole.OWNER:
          now = utc_now()
          owned = db.query(PropertyOwner.property_id).filter(
               PropertyOwner.owner_id == user.id,
               or_(PropertyOwner.end_date.is_(None), PropertyOwner.end_date > now),
          )
          query = query.filter(Job.property_id.in_(owned))
     else:
          raise forbidden("Your role cannot access jobs", ErrorCodes.ACC_ROLE_REQUIRED)

     if status is not None:
          query = query.filter(Job.status == status)
     if property_id:
          query = query.filter(Job.property_id == property_id)

     total = query.count()
     items = query.order_by(Job.created_at.desc()).offset(offset).limit(limit).all()
     return items, total, limit, offset


def get_job(db: Session, user: User, job_id: str) -> Job:
     job = get_job_or_404(db, job_id)
     AccessPolicy.for_job(user, job).ensure()
     return job


def create_job(db: Session, user: User, data: JobCreate) -> Job:
     prop = load_property(db, data.property_id)
     if not is_property_manager(prop, user):
          raise forbidden("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)
     require_manager_subscription(prop, user)

     if data.unit_id:
          unit = db.query(Unit).filter(Unit.id == data.unit_id, Unit.property_id == prop.id).first()
          if not unit:
               raise bad_request("Unit not found in this property", ErrorCodes.RES_UNIT_NOT_FOUND)
     assignee = _find_assignee(db, data.assigned_to_id) if data.assigned_to_id else None

     job = Job(
          title=data.title.strip(),
          description=data.description,
          priority=data.priority,
          status=JobStatus.ASSIGNED if assignee else JobStatus.OPEN,
          property_id=prop.id,
          unit_id=data.unit_id,
          assigned_to_id=assignee.id if assignee else None,
          created_by_id=user.id,
          scheduled_date=data.scheduled_date,
          estimated_cost=data.estimated_cost,
          notes=data.notes,
     )
     db.add(job)
     db.flush()
     log_audit(db, "job", job.id, "CREATED", user.id)
     db.commit()

     if assignee:
          notify.notify_safely(db, notify.notify_job_assigned, assignee.id, job)
     return job


def update_job_status(db: Session, user: User, job_id: str, data: JobStatusUpdate) -> Job:
     """
     Move a job along OPEN -> ASSIGNED -> IN_PROGRESS -> COMPLETED (or CANCELLED).

     Setting the current status again returns the job unchanged. Completing a
     job that came from a service request completes that request as well.
     """
     job = get_job_or_404(db, job_id)
     decision = AccessPolicy.for_job(user, job).ensure()
     if "status" not in decision.fields:
          raise forbidden("You cannot change the status of this job", ErrorCodes.ACC_ACCESS_DENIED)

     if data.status == job.status:
          return job

     if not is_valid_job_transition(job.status, data.status):
          raise bad_request(
               transition_error_message(job.status, data.status, get_allowed_job_transitions(job.status)),
               ErrorCodes.BIZ_INVALID_STATUS_TRANSITION,
          )

     newly_assigned = None
     if data.status == JobStatus.ASSIGNED:
          if data.assigned_to_id:
               if not decision.is_manager:
                    raise forbidden("Only the property manager can assign jobs", ErrorCodes.ACC_ROLE_REQUIRED)
               newly_assigned = _find_assignee(db, data.assigned_to_id)
               job.assigned_to_id = newly_assigned.id
          elif not job.assigned_to_id:
               raise bad_request("Assign a technician before marking the job ASSIGNED", ErrorCodes.VAL_MISSING_FIELD)
          else:
               newly_assigned = job.assigned_to

     now = utc_now()
     previous = job.status
     job.status = data.status
     if data.status == JobStatus.COMPLETED:
          job.completed_date = now
          if data.actual_cost is not None:
               job.actual_cost = data.actual_cost
          request = job.service_request
          if request is not None and is_valid_service_request_transition(request.status, ServiceRequestStatus.COMPLETED):
               request.status = ServiceRequestStatus.COMPLETED
     if data.notes:
          job.notes = data.notes

     log_audit(db, "job", job.id, "STATUS_CHANGED", user.id, {"from": previous, "to": job.status})
     db.commit()
     logger.info("Job %s moved from %s to %s by %s", job.id, previous.value, job.status.value, user.id)

     manager_id = job.property.manager_id
     if job.status == JobStatus.ASSIGNED and newly_assigned is not None:
          notify.notify_safely(db, notify.notify_job_assigned, newly_assigned.id, job)
     elif job.status == JobStatus.IN_PROGRESS and manager_id != user.id:
          notify.notify_safely(db, notify.notify_job_started, manager_id, job)
     elif job.status == JobStatus.COMPLETED and manager_id != user.id:
          notify.notify_safely(db, notify.notify_job_completed, manager_id, job)
     return job
