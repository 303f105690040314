# schemas/maintenance_plan.py
"""
Pydantic schemas for Maintenance Plan API request/response validation.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from utils.clock import to_naive_utc
from models.enums import MaintenanceFrequency


class MaintenancePlanCreate(BaseModel):
     """Schema for creating a maintenance plan."""
     property_id: str
     name: str = Field(..., min_length=1, max_length=255)
     description: Optional[str] = None
     frequency: MaintenanceFrequency
     next_due_date: Optional[datetime] = Field(None, description="Defaults to now")
     auto_create_jobs: bool = False
     is_active: bool = True

     @field_validator("next_due_date")
     @classmethod
     def normalize_next_due_date(cls, v: Optional[datetime]) -> Optional[datetime]:
          return to_naive_utc(v)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": "6c1d4a4e-5b55-4f7e-8a35-3e0c51b0c8a1",
                    "name": "HVAC filter change",
                    "frequency": "QUARTERLY",
                    "next_due_date": "2026-12-01T00:00:00",
                    "auto_create_jobs": True
               }
          }
     )


class MaintenancePlanUpdate(BaseModel):
     name: Optional[str] = Field(None, min_length=1, max_length=255)
     description: Optional[str] = None
     frequency: Optional[MaintenanceFrequency] = None
     next_due_date: Optional[datetime] = None
     auto_create_jobs: Optional[bool] = None
     is_active: Optional[bool] = None

     @field_validator("next_due_date")
     @classmethod
     def normalize_next_due_date(cls, v: Optional[datetime]) -> Optional[datetime]:
          return to_naive_utc(v)


class MaintenancePlanResponse(BaseModel):
     id: str
     name: str
     description: Optional[str] = None
     property_id: str
     frequency: str
     next_due_date: Optional[datetime] = None
     last_completed_date: Optional[datetime] = None
     auto_create_jobs: bool
     is_active: bool
     archived_at: Optional[datetime] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class MaintenancePlanListResponse(BaseModel):
     items: List[MaintenancePlanResponse]
     total: int
