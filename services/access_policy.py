# services/access_policy.py
"""
Role and ownership policy for the maintenance workflow.

A `Decision` is computed once per request from (actor, resource) and answers
both "may this actor touch the resource at all" and "which fields may they
change". Route handlers and services call `ensure()` on it instead of
branching on roles themselves.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional

from sqlalchemy.orm import Session

from models import (
     Property,
     ServiceRequest,
     Recommendation,
     Job,
     User,
     UserRole,
     SubscriptionStatus,
     ServiceRequestStatus,
)
from utils.clock import utc_now
from utils.errors import DomainError, ErrorCodes, forbidden, not_found


MANAGER_REQUEST_FIELDS = frozenset({"status", "priority", "title", "description", "review_notes"})
OWNER_REQUEST_FIELDS = frozenset({"status", "priority", "review_notes"})
TENANT_REQUEST_FIELDS = frozenset({"title", "description", "priority", "photos"})

# Statuses a manager may not set through a plain PATCH; they are reached via
# the estimate / owner approval endpoints instead.
MANAGER_RESTRICTED_STATUSES = frozenset({
     ServiceRequestStatus.PENDING_OWNER_APPROVAL,
     ServiceRequestStatus.APPROVED,
     ServiceRequestStatus.APPROVED_BY_OWNER,
})


@dataclass(frozen=True)
class Decision:
     """Outcome of a policy evaluation."""
     allowed: bool
     role: Optional[UserRole] = None
     fields: FrozenSet[str] = field(default_factory=frozenset)
     editable_statuses: Optional[FrozenSet[ServiceRequestStatus]] = None
     code: str = ErrorCodes.ACC_ACCESS_DENIED
     message: str = "Access denied"

     @property
     def is_manager(self) -> bool:
          return self.allowed and self.role == UserRole.PROPERTY_MANAGER

     @property
     def is_owner(self) -> bool:
          return self.allowed and self.role == UserRole.OWNER

     @property
     def is_tenant(self) -> bool:
          return self.allowed and self.role == UserRole.TENANT

     def ensure(self) -> "Decision":
          if not self.allowed:
               raise forbidden(self.message, self.code)
          return self

     def disallowed_fields(self, requested) -> set:
          return set(requested) - set(self.fields)


def _deny(message: str, code: str = ErrorCodes.ACC_ACCESS_DENIED, role=None) -> Decision:
     return Decision(allowed=False, role=role, message=message, code=code)


# ---------------------------------------------------------------------------
# Property relationships
# ---------------------------------------------------------------------------

def is_property_manager(prop: Property, user: User) -> bool:
     return prop is not None and prop.manager_id == user.id


def is_active_owner(prop: Property, user: User, now: Optional[datetime] = None) -> bool:
     now = now or utc_now()
     return any(o.owner_id == user.id for o in prop.active_owners(now))


def load_property(db: Session, property_id: str) -> Property:
     prop = db.query(Property).filter(Property.id == property_id).first()
     if not prop:
          raise not_found("Property not found", ErrorCodes.RES_PROPERTY_NOT_FOUND)
     return prop


# ---------------------------------------------------------------------------
# Subscription
# ---------------------------------------------------------------------------

def is_subscription_active(user: Optional[User], now: Optional[datetime] = None) -> bool:
     """ACTIVE, or TRIAL with a trial end date still in the future."""
     if user is None:
          return False
     if user.subscription_status == SubscriptionStatus.ACTIVE:
          return True
     if user.subscription_status == SubscriptionStatus.TRIAL and user.trial_end_date:
          return user.trial_end_date > (now or utc_now())
     return False


def require_manager_subscription(prop: Property, actor: User, now: Optional[datetime] = None) -> None:
     """Block workflow actions on a property whose manager is not subscribed."""
     if is_subscription_active(prop.manager, now):
          return
     if prop.manager_id == actor.id:
          message = "Your trial period has expired. Please upgrade your plan to continue."
     else:
          message = "This property's manager subscription is inactive. Please contact your property manager."
     raise DomainError(403, message, ErrorCodes.SUB_MANAGER_SUBSCRIPTION_REQUIRED)


# ---------------------------------------------------------------------------
# Resource policies
# ---------------------------------------------------------------------------

class AccessPolicy:
     """Evaluates (role, resource) pairs into Decisions."""

     @staticmethod
     def for_service_request(user: User, request: ServiceRequest, now: Optional[datetime] = None) -> Decision:
          prop = request.property
          role = user.role
          if role == UserRole.PROPERTY_MANAGER:
               if is_property_manager(prop, user):
                    return Decision(True, role, MANAGER_REQUEST_FIELDS)
               return _deny("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED, role)
          if role == UserRole.OWNER:
               if is_active_owner(prop, user, now):
                    return Decision(True, role, OWNER_REQUEST_FIELDS)
               return _deny("You do not own this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED, role)
          if role == UserRole.TENANT:
               if request.requested_by_id == user.id:
                    return Decision(
                         True,
                         role,
                         TENANT_REQUEST_FIELDS,
                         editable_statuses=frozenset({ServiceRequestStatus.SUBMITTED}),
                    )
               return _deny("You can only access your own service requests", ErrorCodes.ACC_ACCESS_DENIED, role)
          return _deny("Your role cannot access service requests", ErrorCodes.ACC_ROLE_REQUIRED, role)

     @staticmethod
     def for_recommendation(user: User, recommendation: Recommendation, now: Optional[datetime] = None) -> Decision:
          prop = recommendation.property
          role = user.role
          if role == UserRole.PROPERTY_MANAGER:
               if is_property_manager(prop, user):
                    return Decision(True, role)
               return _deny("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED, role)
          if role == UserRole.OWNER:
               if is_active_owner(prop, user, now):
                    return Decision(True, role)
               return _deny("You do not own this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED, role)
          return _deny("Your role cannot act on recommendations", ErrorCodes.ACC_ROLE_REQUIRED, role)

     @staticmethod
     def for_job(user: User, job: Job, now: Optional[datetime] = None) -> Decision:
          """Managers and the assigned technician may change status; owners read."""
          role = user.role
          if role == UserRole.PROPERTY_MANAGER:
               if is_property_manager(job.property, user):
                    return Decision(True, role, frozenset({"status"}))
               return _deny("You do not manage this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED, role)
          if role == UserRole.TECHNICIAN:
               if job.assigned_to_id == user.id:
                    return Decision(True, role, frozenset({"status"}))
               return _deny("This job is not assigned to you", ErrorCodes.ACC_ACCESS_DENIED, role)
          if role == UserRole.OWNER:
               if is_active_owner(job.property, user, now):
                    return Decision(True, role)
               return _deny("You do not own this property", ErrorCodes.ACC_PROPERTY_ACCESS_DENIED, role)
          return _deny("Your role cannot access jobs", ErrorCodes.ACC_ROLE_REQUIRED, role)
