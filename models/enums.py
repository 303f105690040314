# models/enums.py
"""Enumerations shared by several models and schemas."""
import enum


class UserRole(str, enum.Enum):
     PROPERTY_MANAGER = "PROPERTY_MANAGER"
     OWNER = "OWNER"
     TENANT = "TENANT"
     TECHNICIAN = "TECHNICIAN"
     ADMIN = "ADMIN"


class SubscriptionStatus(str, enum.Enum):
     TRIAL = "TRIAL"
     ACTIVE = "ACTIVE"
     PENDING = "PENDING"
     SUSPENDED = "SUSPENDED"
     CANCELLED = "CANCELLED"


class Priority(str, enum.Enum):
     LOW = "LOW"
     MEDIUM = "MEDIUM"
     HIGH = "HIGH"
     URGENT = "URGENT"


class ServiceRequestStatus(str, enum.Enum):
     SUBMITTED = "SUBMITTED"
     UNDER_REVIEW = "UNDER_REVIEW"
     PENDING_MANAGER_REVIEW = "PENDING_MANAGER_REVIEW"
     PENDING_OWNER_APPROVAL = "PENDING_OWNER_APPROVAL"
     APPROVED = "APPROVED"
     APPROVED_BY_OWNER = "APPROVED_BY_OWNER"
     REJECTED = "REJECTED"
     REJECTED_BY_OWNER = "REJECTED_BY_OWNER"
     CONVERTED_TO_JOB = "CONVERTED_TO_JOB"
     COMPLETED = "COMPLETED"
     ARCHIVED = "ARCHIVED"


class ServiceRequestCategory(str, enum.Enum):
     PLUMBING = "PLUMBING"
     ELECTRICAL = "ELECTRICAL"
     HVAC = "HVAC"
     APPLIANCE = "APPLIANCE"
     STRUCTURAL = "STRUCTURAL"
     PEST_CONTROL = "PEST_CONTROL"
     LANDSCAPING = "LANDSCAPING"
     GENERAL = "GENERAL"
     OTHER = "OTHER"


class RecommendationStatus(str, enum.Enum):
     DRAFT = "DRAFT"
     SUBMITTED = "SUBMITTED"
     UNDER_REVIEW = "UNDER_REVIEW"
     APPROVED = "APPROVED"
     REJECTED = "REJECTED"
     IMPLEMENTED = "IMPLEMENTED"
     ARCHIVED = "ARCHIVED"


class JobStatus(str, enum.Enum):
     OPEN = "OPEN"
     ASSIGNED = "ASSIGNED"
     IN_PROGRESS = "IN_PROGRESS"
     COMPLETED = "COMPLETED"
     CANCELLED = "CANCELLED"


class MaintenanceFrequency(str, enum.Enum):
     DAILY = "DAILY"
     WEEKLY = "WEEKLY"
     BIWEEKLY = "BIWEEKLY"
     MONTHLY = "MONTHLY"
     QUARTERLY = "QUARTERLY"
     SEMIANNUALLY = "SEMIANNUALLY"
     ANNUALLY = "ANNUALLY"


class NotificationType(str, enum.Enum):
     INSPECTION_SCHEDULED = "INSPECTION_SCHEDULED"
     INSPECTION_REMINDER = "INSPECTION_REMINDER"
     JOB_ASSIGNED = "JOB_ASSIGNED"
     JOB_COMPLETED = "JOB_COMPLETED"
     SERVICE_REQUEST_UPDATE = "SERVICE_REQUEST_UPDATE"
     SUBSCRIPTION_EXPIRING = "SUBSCRIPTION_EXPIRING"
     PAYMENT_DUE = "PAYMENT_DUE"
     SYSTEM = "SYSTEM"
