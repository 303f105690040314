# services/notification_service.py
"""
Notification Service - in-app notifications with optional email delivery.

Workflow services commit their state change first and then call the helpers
below through `notify_safely`, so a failing notification never undoes the
change that triggered it.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from models import Notification, NotificationType, User, ServiceRequest, Recommendation, Job
from utils import email as email_utils

logger = logging.getLogger(__name__)


def send_notification(
     db: Session,
     user_id: str,
     type: NotificationType,
     title: str,
     message: str,
     entity_type: Optional[str] = None,
     entity_id: Optional[str] = None,
     send_email: bool = True,
     link_path: Optional[str] = None,
) -> Notification:
     """
     Create an in-app notification and, when email is configured, mail it.
     
     Args:
          db: SQLAlchemy database session
          user_id: Recipient
          type: Notification category
          title: Short headline
          message: Body text
          entity_type: Kind of entity the notification refers to
          entity_id: ID of that entity
          send_email: Also deliver by email
          link_path: Frontend path included in the email
     
     Returns:
          The flushed Notification row
     """
     notification = Notification(
          user_id=user_id,
          type=type,
          title=title,
          message=message,
          entity_type=entity_type,
          entity_id=entity_id,
     )
     db.add(notification)
     db.flush()

     if send_email and email_utils.email_enabled():
          user = db.query(User).filter(User.id == user_id).first()
          if user and user.email:
               try:
                    email_utils.send_email(
                         user.email,
                         title,
                         email_utils.render_notification_email(title, message, link_path),
                    )
               except Exception:
                    logger.exception("Failed to email notification %s to user %s", notification.id, user_id)

     return notification


def notify_safely(db: Session, fn: Callable, *args, **kwargs) -> bool:
     """
     Run a notification helper in its own commit; log and discard failures.
     
     Returns:
          True if the notification was stored, False otherwise
     """
     try:
          fn(db, *args, **kwargs)
          db.commit()
          return True
     except Exception:
          db.rollback()
          logger.exception("Notification %s failed", getattr(fn, "__name__", repr(fn)))
          return False


# ---------------------------------------------------------------------------
# Service request notifications
# ---------------------------------------------------------------------------

def _request_link(request: ServiceRequest) -> str:
     return f"/service-requests?id={request.id}"


def notify_new_service_request(db: Session, manager_id: str, request: ServiceRequest) -> Notification:
     return send_notification(
          db,
          manager_id,
          NotificationType.SERVICE_REQUEST_UPDATE,
          "New Service Request",
          f'A new service request "{request.title}" has been submitted for {request.property.name}.',
          entity_type="serviceRequest",
          entity_id=request.id,
          link_path=_request_link(request),
     )


def notify_service_request_update(db: Session, user_id: str, request: ServiceRequest, status_text: str) -> Notification:
     return send_notification(
          db,
          user_id,
          NotificationType.SERVICE_REQUEST_UPDATE,
          "Service Request Update",
          f'Your service request "{request.title}" has been {status_text}.',
          entity_type="serviceRequest",
          entity_id=request.id,
          link_path=_request_link(request),
     )


def notify_owner_cost_estimate_ready(db: Session, owner_id: str, request: ServiceRequest) -> Notification:
     return send_notification(
          db,
          owner_id,
          NotificationType.SERVICE_REQUEST_UPDATE,
          "Cost Estimate Ready for Approval",
          f'The property manager estimated {request.manager_estimated_cost} for "{request.title}". '
          f"Please review and approve or reject the estimate.",
          entity_type="serviceRequest",
          entity_id=request.id,
          link_path=_request_link(request),
     )


def notify_manager_owner_approved(db: Session, manager_id: str, request: ServiceRequest) -> Notification:
     return send_notification(
          db,
          manager_id,
          NotificationType.SERVICE_REQUEST_UPDATE,
          "Service Request Approved by Owner",
          f'The owner approved "{request.title}" with a budget of {request.approved_budget}.',
          entity_type="serviceRequest",
          entity_id=request.id,
          link_path=_request_link(request),
     )


def notify_manager_owner_rejected(db: Session, manager_id: str, request: ServiceRequest) -> Notification:
     return send_notification(
          db,
          manager_id,
          NotificationType.SERVICE_REQUEST_UPDATE,
          "Service Request Rejected by Owner",
          f'The owner rejected "{request.title}". Reason: {request.rejection_reason}',
          entity_type="serviceRequest",
          entity_id=request.id,
          link_path=_request_link(request),
     )


def notify_owner_job_created(db: Session, owner_id: str, request: ServiceRequest, job: Job) -> Notification:
     return send_notification(
          db,
          owner_id,
          NotificationType.SERVICE_REQUEST_UPDATE,
          "Service Request Converted to Job",
          f'Your service request "{request.title}" has been converted to job "{job.title}".',
          entity_type="job",
          entity_id=job.id,
          link_path=f"/jobs?id={job.id}",
     )


# ---------------------------------------------------------------------------
# Job notifications
# ---------------------------------------------------------------------------

def notify_job_assigned(db: Session, technician_id: str, job: Job) -> Notification:
     return send_notification(
          db,
          technician_id,
          NotificationType.JOB_ASSIGNED,
          "New Job Assigned",
          f'You have been assigned to "{job.title}".',
          entity_type="job",
          entity_id=job.id,
          link_path=f"/jobs?id={job.id}",
     )


def notify_job_started(db: Session, manager_id: str, job: Job) -> Notification:
     return send_notification(
          db,
          manager_id,
          NotificationType.SYSTEM,
          "Job Started",
          f'Work has started on "{job.title}".',
          entity_type="job",
          entity_id=job.id,
          send_email=False,
     )


def notify_job_completed(db: Session, manager_id: str, job: Job) -> Notification:
     return send_notification(
          db,
          manager_id,
          NotificationType.JOB_COMPLETED,
          "Job Completed",
          f'"{job.title}" has been marked as completed.',
          entity_type="job",
          entity_id=job.id,
          link_path=f"/jobs?id={job.id}",
     )


# ---------------------------------------------------------------------------
# Recommendation notifications
# ---------------------------------------------------------------------------

def notify_recommendation_created(db: Session, owner_id: str, recommendation: Recommendation) -> Notification:
     return send_notification(
          db,
          owner_id,
          NotificationType.SYSTEM,
          "New Recommendation",
          f'A new recommendation "{recommendation.title}" needs your review.',
          entity_type="recommendation",
          entity_id=recommendation.id,
          link_path="/recommendations",
     )


def notify_recommendation_decision(db: Session, manager_id: str, recommendation: Recommendation) -> Notification:
     approved = recommendation.rejected_at is None
     title = "Recommendation Approved" if approved else "Recommendation Rejected"
     message = f'"{recommendation.title}" was {"approved" if approved else "rejected"} by the owner.'
     if not approved and recommendation.rejection_reason:
          message += f" Reason: {recommendation.rejection_reason}"
     return send_notification(
          db,
          manager_id,
          NotificationType.SYSTEM,
          title,
          message,
          entity_type="recommendation",
          entity_id=recommendation.id,
          link_path="/recommendations",
     )


def notify_recommendation_response(db: Session, owner_id: str, recommendation: Recommendation) -> Notification:
     return send_notification(
          db,
          owner_id,
          NotificationType.SYSTEM,
          "Manager Responded to Rejection",
          f'The property manager responded to your rejection of "{recommendation.title}": '
          f"{recommendation.manager_response}",
          entity_type="recommendation",
          entity_id=recommendation.id,
          link_path="/recommendations",
     )
