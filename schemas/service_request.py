# schemas/service_request.py
"""
Pydantic schemas for Service Request API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from utils.clock import to_naive_utc
from models.enums import ServiceRequestStatus, ServiceRequestCategory, Priority
from schemas.job import JobResponse


class ServiceRequestCreate(BaseModel):
     """Schema for creating a service request (tenants and owners)."""
     property_id: str = Field(..., description="Property the request is for")
     unit_id: Optional[str] = Field(None, description="Unit inside the property, if any")
     title: str = Field(..., min_length=1, max_length=255)
     description: str = Field(..., min_length=1)
     category: ServiceRequestCategory
     priority: Priority = Priority.MEDIUM
     photos: List[str] = Field(default_factory=list, description="Photo URLs")
     owner_estimated_budget: Optional[Decimal] = Field(
          None, gt=0, max_digits=12, decimal_places=2, description="Owner's budget, owners only"
     )

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": "6c1d4a4e-5b55-4f7e-8a35-3e0c51b0c8a1",
                    "unit_id": "2a4f5f0c-93d6-4c39-bf58-0d86b3fd9b54",
                    "title": "Leaking kitchen tap",
                    "description": "Tap drips constantly even when fully closed.",
                    "category": "PLUMBING",
                    "priority": "MEDIUM",
                    "photos": []
               }
          }
     )


class ServiceRequestUpdate(BaseModel):
     """Schema for PATCH; which fields a caller may send depends on their role."""
     status: Optional[ServiceRequestStatus] = None
     priority: Optional[Priority] = None
     title: Optional[str] = Field(None, min_length=1, max_length=255)
     description: Optional[str] = Field(None, min_length=1)
     review_notes: Optional[str] = None
     photos: Optional[List[str]] = None

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "status": "UNDER_REVIEW",
                    "review_notes": "Plumber visit needed"
               }
          }
     )


class EstimateRequest(BaseModel):
     manager_estimated_cost: Decimal = Field(..., max_digits=12, decimal_places=2)
     cost_breakdown_notes: Optional[str] = None


class OwnerApproveRequest(BaseModel):
     approved_budget: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)


class RejectRequest(BaseModel):
     reason: Optional[str] = None


class ConvertToJobRequest(BaseModel):
     assigned_to_id: Optional[str] = None
     scheduled_date: Optional[datetime] = None
     estimated_cost: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     priority: Optional[Priority] = None
     notes: Optional[str] = None

     @field_validator("scheduled_date")
     @classmethod
     def normalize_scheduled_date(cls, v: Optional[datetime]) -> Optional[datetime]:
          return to_naive_utc(v)


class ServiceRequestResponse(BaseModel):
     """Schema for service request response."""
     id: str
     title: str
     description: str
     category: ServiceRequestCategory
     priority: Priority
     status: ServiceRequestStatus
     photos: List[str] = []
     property_id: str
     unit_id: Optional[str] = None
     requested_by_id: str
     owner_estimated_budget: Optional[Decimal] = None
     manager_estimated_cost: Optional[Decimal] = None
     approved_budget: Optional[Decimal] = None
     cost_breakdown_notes: Optional[str] = None
     review_notes: Optional[str] = None
     rejection_reason: Optional[str] = None
     approved_by_id: Optional[str] = None
     rejected_by_id: Optional[str] = None
     last_reviewed_by_id: Optional[str] = None
     reviewed_at: Optional[datetime] = None
     last_reviewed_at: Optional[datetime] = None
     approved_at: Optional[datetime] = None
     rejected_at: Optional[datetime] = None
     archived_at: Optional[datetime] = None
     created_at: datetime
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)


class ServiceRequestDetail(ServiceRequestResponse):
     jobs: List[JobResponse] = []


class ServiceRequestEnvelope(BaseModel):
     success: bool = True
     request: ServiceRequestDetail


class ServiceRequestListResponse(BaseModel):
     """Paginated list of service requests."""
     items: List[ServiceRequestResponse]
     total: int
     page: int
     has_more: bool


class ConvertToJobResponse(BaseModel):
     success: bool = True
     job: JobResponse
     service_request: ServiceRequestResponse
