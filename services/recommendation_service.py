# services/recommendation_service.py
"""
Recommendation workflow - manager suggestions that owners approve or reject.

Flow: SUBMITTED -> APPROVED -> IMPLEMENTED (converted to a job), or
SUBMITTED -> REJECTED -> (manager response) -> SUBMITTED again.
When a property has no active owners, its manager may approve instead.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import (
     Recommendation,
     RecommendationStatus,
     Priority,
     Property,
     PropertyOwner,
     Inspection,
     Report,
     Job,
     JobStatus,
     User,
     UserRole,
)
from schemas.recommendation import RecommendationCreate, RecommendationConvert
from services import notification_service as notify
from services.access_policy import (
     is_active_owner,
     is_property_manager,
     load_property,
     require_manager_subscription,
)
from services.audit_service import log_audit
from services.service_request_service import clamp_pagination
from services.status_transitions import (
     is_valid_recommendation_transition,
     get_allowed_recommendation_transitions,
     transition_error_message,
)
from utils.clock import utc_now
from utils.errors import ErrorCodes, bad_request, forbidden, not_found

logger = logging.getLogger(__name__)

RS = RecommendationStatus


def _get_or_404(db: Session, recommendation_id: str) -> Recommendation:
     recommendation = db.query(Recommendation).filter(Recommendation.id == recommendation_id).first()
     if not recommendation:
          raise not_found("Recommendation not found", ErrorCodes.RES_RECOMMENDATION_NOT_FOUND)
     return recommendation


def _ensure_not_archived(recommendation: Recommendation) -> None:
     if recommendation.status == RS.ARCHIVED:
          raise forbidden("Archived recommendations cannot be modified", ErrorCodes.BIZ_OPERATION_NOT_ALLOWED)


def _ensure_transition(recommendation: Recommendation, new_status: RS) -> None:
     if not is_valid_recommendation_transition(recommendation.status, new_status):
          raise bad_request(
               transition_error_message(
                    recommendation.status,
                    new_status,
                    get_allowed_recommendation_transitions(recommendation.status),
               ),
               ErrorCodes.BIZ_INVALID_STATUS_TRANSITION,
          )


def _require_manager(recommendation: Recommendation, user: User) -> None:
     if not is_property_manager(recommendation.property, user):
          raise forbidden("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)


def _require_text(value: Optional[str], what: str) -> str:
     if not value or not value.strip():
          raise bad_request(f"{what} is required", ErrorCodes.VAL_MISSING_FIELD)
     return value.strip()


def _scoped_query(db: Session, user: User):
     query = db.query(Recommendation)
     if user.role == UserRole.PROPERTY_MANAGER:
          return query.join(Property, Recommendation.property_id == Property.id).filter(
               Property.manager_id == user.id
          )
     if user.role == UserRole.OWNER:
          now = utc_now()
          owned = db.query(PropertyOwner.property_id).filter(
               PropertyOwner.owner_id == user.id,
               or_(PropertyOwner.end_date.is_(None), PropertyOwner.end_date > now),
          )
          return query.filter(Recommendation.property_id.in_(owned))
     if user.role == UserRole.TECHNICIAN:
          assigned_reports = (
               db.query(Report.id)
               .join(Inspection, Report.inspection_id == Inspection.id)
               .filter(Inspection.assigned_to_id == user.id)
          )
          assigned_properties = db.query(Inspection.property_id).filter(Inspection.assigned_to_id == user.id)
          return query.filter(or_(
               Recommendation.report_id.in_(assigned_reports),
               Recommendation.property_id.in_(assigned_properties),
          ))
     raise forbidden("Your role cannot access recommendations", ErrorCodes.ACC_ROLE_REQUIRED)


def list_recommendations(
     db: Session,
     user: User,
     report_id: Optional[str] = None,
     status: Optional[RecommendationStatus] = None,
     priority: Optional[Priority] = None,
     search: Optional[str] = None,
     include_archived: bool = False,
     limit: Optional[int] = None,
     offset: Optional[int] = None,
) -> Tuple[List[Recommendation], int, int, int]:
     limit, offset = clamp_pagination(limit, offset)
     query = _scoped_query(db, user)
     if report_id:
          query = query.filter(Recommendation.report_id == report_id)
     if status is not None:
          query = query.filter(Recommendation.status == status)
     elif not include_archived:
          query = query.filter(Recommendation.status != RS.ARCHIVED)
     if priority is not None:
          query = query.filter(Recommendation.priority == priority)
     if search and search.strip():
          pattern = f"%{search.strip()}%"
          query = query.filter(or_(
               Recommendation.title.ilike(pattern),
               Recommendation.description.ilike(pattern),
          ))
     total = query.count()
     items = query.order_by(Recommendation.created_at.desc()).offset(offset).limit(limit).all()
     return items, total, limit, offset


def get_recommendation(db: Session, user: User, recommendation_id: str) -> Recommendation:
     recommendation = _scoped_query(db, user).filter(Recommendation.id == recommendation_id).first()
     if recommendation:
          return recommendation
     _get_or_404(db, recommendation_id)
     raise forbidden("You do not have access to this recommendation", ErrorCodes.ACC_ACCESS_DENIED)


def create_recommendation(db: Session, user: User, data: RecommendationCreate) -> Recommendation:
     """
     Raise a recommendation for a property the caller manages.

     The inspection report is optional. Without one, the most recent report
     for the property is attached if there is any.
     """
     if user.role != UserRole.PROPERTY_MANAGER:
          raise forbidden("Only property managers can create recommendations", ErrorCodes.ACC_ROLE_REQUIRED)
     title = _require_text(data.title, "Title")
     description = _require_text(data.description, "Description")

     prop = load_property(db, data.property_id)
     if not is_property_manager(prop, user):
          raise forbidden("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)
     require_manager_subscription(prop, user)

     report_query = (
          db.query(Report)
          .join(Inspection, Report.inspection_id == Inspection.id)
          .filter(Inspection.property_id == prop.id)
     )
     if data.report_id:
          report = report_query.filter(Report.id == data.report_id).first()
          if not report:
               raise not_found("Report not found for this property", ErrorCodes.RES_NOT_FOUND)
     else:
          report = report_query.order_by(Report.created_at.desc()).first()

     recommendation = Recommendation(
          property_id=prop.id,
          report_id=report.id if report else None,
          title=title,
          description=description,
          estimated_cost=data.estimated_cost,
          priority=data.priority,
          status=RS.SUBMITTED,
          created_by_id=user.id,
     )
     db.add(recommendation)
     db.flush()
     log_audit(db, "recommendation", recommendation.id, "CREATED", user.id, {"report_id": recommendation.report_id})
     db.commit()

     for ownership in prop.active_owners(utc_now()):
          notify.notify_safely(db, notify.notify_recommendation_created, ownership.owner_id, recommendation)
     return recommendation


def approve_recommendation(db: Session, user: User, recommendation_id: str) -> Recommendation:
     """
     Owner approval. Falls back to the property manager only when the
     property has no active owners at all.
     """
     recommendation = _get_or_404(db, recommendation_id)
     _ensure_not_archived(recommendation)

     now = utc_now()
     prop = recommendation.property
     active_owners = prop.active_owners(now)
     if user.role == UserRole.OWNER and any(o.owner_id == user.id for o in active_owners):
          pass
     elif not active_owners and is_property_manager(prop, user):
          logger.info("Recommendation %s approved by manager: property %s has no active owners", recommendation.id, prop.id)
     else:
          raise forbidden(
               "Only an owner of this property can approve recommendations",
               ErrorCodes.ACC_PROPERTY_ACCESS_DENIED,
          )

     require_manager_subscription(prop, user)
     _ensure_transition(recommendation, RS.APPROVED)

     recommendation.status = RS.APPROVED
     recommendation.approved_by_id = user.id
     recommendation.approved_at = now
     recommendation.rejected_at = None
     recommendation.rejection_reason = None
     log_audit(db, "recommendation", recommendation.id, "APPROVED", user.id)
     db.commit()

     if prop.manager_id != user.id:
          notify.notify_safely(db, notify.notify_recommendation_decision, prop.manager_id, recommendation)
     return recommendation


def reject_recommendation(db: Session, user: User, recommendation_id: str, reason: Optional[str]) -> Recommendation:
     reason = _require_text(reason, "Rejection reason")
     recommendation = _get_or_404(db, recommendation_id)
     _ensure_not_archived(recommendation)

     prop = recommendation.property
     if not (is_property_manager(prop, user) or (user.role == UserRole.OWNER and is_active_owner(prop, user))):
          raise forbidden("You cannot reject this recommendation", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED)
     require_manager_subscription(prop, user)
     _ensure_transition(recommendation, RS.REJECTED)

     recommendation.status = RS.REJECTED
     recommendation.rejection_reason = reason
     recommendation.rejected_at = utc_now()
     log_audit(db, "recommendation", recommendation.id, "REJECTED", user.id, {"reason": reason})
     db.commit()

     if prop.manager_id != user.id:
          notify.notify_safely(db, notify.notify_recommendation_decision, prop.manager_id, recommendation)
     return recommendation


def respond_to_rejection(db: Session, user: User, recommendation_id: str, response: Optional[str]) -> Recommendation:
     """Manager answers a rejection; the recommendation goes back to the owners."""
     response = _require_text(response, "Response")
     recommendation = _get_or_404(db, recommendation_id)
     _ensure_not_archived(recommendation)
     _require_manager(recommendation, user)
     if recommendation.status != RS.REJECTED:
          raise bad_request("You can only respond to rejected recommendations", ErrorCodes.BIZ_INVALID_STATUS_TRANSITION)
     require_manager_subscription(recommendation.property, user)

     now = utc_now()
     recommendation.manager_response = response
     recommendation.manager_response_at = now
     recommendation.status = RS.SUBMITTED
     recommendation.rejected_at = None
     log_audit(db, "recommendation", recommendation.id, "MANAGER_RESPONDED", user.id)
     db.commit()

     for ownership in recommendation.property.active_owners(now):
          notify.notify_safely(db, notify.notify_recommendation_response, ownership.owner_id, recommendation)
     return recommendation


def convert_to_job(
     db: Session,
     user: User,
     recommendation_id: str,
     data: RecommendationConvert,
) -> Tuple[Job, Recommendation]:
     """Create a job from an approved recommendation and mark it IMPLEMENTED."""
     recommendation = _get_or_404(db, recommendation_id)
     _ensure_not_archived(recommendation)
     _require_manager(recommendation, user)
     require_manager_subscription(recommendation.property, user)
     if recommendation.status != RS.APPROVED:
          raise bad_request(
               "Only approved recommendations can be converted to jobs",
               ErrorCodes.BIZ_INVALID_STATUS_TRANSITION,
          )

     assignee = None
     if data.assigned_to_id:
          assignee = db.query(User).filter(User.id == data.assigned_to_id, User.is_active.is_(True)).first()
          if not assignee:
               raise not_found("Assigned user not found", ErrorCodes.RES_USER_NOT_FOUND)

     job = Job(
          title=recommendation.title,
          description=recommendation.description,
          priority=data.priority or recommendation.priority,
          status=JobStatus.ASSIGNED if assignee else JobStatus.OPEN,
          property_id=recommendation.property_id,
          unit_id=None,
          assigned_to_id=assignee.id if assignee else None,
          created_by_id=user.id,
          scheduled_date=data.scheduled_date,
          estimated_cost=data.estimated_cost or recommendation.estimated_cost,
          notes=data.notes or f"Created from recommendation #{recommendation.id}",
     )
     db.add(job)
     db.flush()

     recommendation.status = RS.IMPLEMENTED
     recommendation.implemented_at = utc_now()
     log_audit(db, "recommendation", recommendation.id, "CONVERTED_TO_JOB", user.id, {"job_id": job.id})
     db.commit()

     if assignee:
          notify.notify_safely(db, notify.notify_job_assigned, assignee.id, job)
     return job, recommendation
