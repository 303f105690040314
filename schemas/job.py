# schemas/job.py
"""
Pydantic schemas for Job API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from utils.clock import to_naive_utc
from models.enums import JobStatus, Priority


class JobCreate(BaseModel):
     """Schema for creating a job directly (property managers)."""
     property_id: str
     unit_id: Optional[str] = None
     title: str = Field(..., min_length=1, max_length=255)
     description: Optional[str] = None
     priority: Priority = Priority.MEDIUM
     assigned_to_id: Optional[str] = None
     scheduled_date: Optional[datetime] = None
     estimated_cost: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None

     @field_validator("scheduled_date")
     @classmethod
     def normalize_scheduled_date(cls, v: Optional[datetime]) -> Optional[datetime]:
          return to_naive_utc(v)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": "6c1d4a4e-5b55-4f7e-8a35-3e0c51b0c8a1",
                    "title": "Replace lobby lights",
                    "priority": "LOW",
                    "scheduled_date": "2026-11-02T09:00:00"
               }
          }
     )


class JobStatusUpdate(BaseModel):
     status: JobStatus
     assigned_to_id: Optional[str] = Field(None, description="Technician to assign when moving to ASSIGNED")
     actual_cost: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None


class JobResponse(BaseModel):
     """Schema for job response."""
     id: str
     title: str
     description: Optional[str] = None
     priority: Priority
     status: JobStatus
     property_id: str
     unit_id: Optional[str] = None
     assigned_to_id: Optional[str] = None
     created_by_id: Optional[str] = None
     service_request_id: Optional[str] = None
     maintenance_plan_id: Optional[str] = None
     scheduled_date: Optional[datetime] = None
     completed_date: Optional[datetime] = None
     estimated_cost: Optional[Decimal] = None
     actual_cost: Optional[Decimal] = None
     notes: Optional[str] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class JobListResponse(BaseModel):
     items: List[JobResponse]
     total: int
     page: int
     has_more: bool
