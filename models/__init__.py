# models/__init__.py
from .base import Base
from .enums import (
     UserRole,
     SubscriptionStatus,
     Priority,
     ServiceRequestStatus,
     ServiceRequestCategory,
     RecommendationStatus,
     JobStatus,
     MaintenanceFrequency,
     NotificationType,
)
from .user import User
from .property import Property
from .property_owner import PropertyOwner
from .unit import Unit
from .tenancy import UnitTenant, PropertyTenant
from .inspection import Inspection, Report
from .job import Job
from .maintenance_plan import MaintenancePlan
from .service_request import ServiceRequest
from .recommendation import Recommendation
from .notification import Notification
from .audit_log import AuditLog

__all__ = [
     "Base",
     "UserRole",
     "SubscriptionStatus",
     "Priority",
     "ServiceRequestStatus",
     "ServiceRequestCategory",
     "RecommendationStatus",
     "JobStatus",
     "MaintenanceFrequency",
     "NotificationType",
     "User",
     "Property",
     "PropertyOwner",
     "Unit",
     "UnitTenant",
     "PropertyTenant",
     "Inspection",
     "Report",
     "Job",
     "MaintenancePlan",
     "ServiceRequest",
     "Recommendation",
     "Notification",
     "AuditLog",
]
