# schemas/recommendation.py
"""
Pydantic schemas for Recommendation API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from utils.clock import to_naive_utc
from models.enums import RecommendationStatus, Priority


class RecommendationCreate(BaseModel):
     """Schema for creating a recommendation (property managers)."""
     property_id: str
     title: Optional[str] = Field(None, max_length=255)
     description: Optional[str] = None
     report_id: Optional[str] = Field(None, description="Inspection report this recommendation came from")
     estimated_cost: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     priority: Priority = Priority.MEDIUM

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "property_id": "6c1d4a4e-5b55-4f7e-8a35-3e0c51b0c8a1",
                    "title": "Replace roof membrane",
                    "description": "Membrane is cracked over the north stairwell.",
                    "estimated_cost": 12500.00,
                    "priority": "HIGH"
               }
          }
     )


class RecommendationReject(BaseModel):
     reason: Optional[str] = None


class RecommendationRespond(BaseModel):
     response: Optional[str] = None


class RecommendationConvert(BaseModel):
     assigned_to_id: Optional[str] = None
     scheduled_date: Optional[datetime] = None
     estimated_cost: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     priority: Optional[Priority] = None
     notes: Optional[str] = None

     @field_validator("scheduled_date")
     @classmethod
     def normalize_scheduled_date(cls, v: Optional[datetime]) -> Optional[datetime]:
          return to_naive_utc(v)


class RecommendationResponse(BaseModel):
     """Schema for recommendation response."""
     id: str
     title: str
     description: str
     priority: Priority
     status: RecommendationStatus
     estimated_cost: Optional[Decimal] = None
     property_id: str
     report_id: Optional[str] = None
     created_by_id: str
     approved_by_id: Optional[str] = None
     approved_at: Optional[datetime] = None
     rejected_at: Optional[datetime] = None
     rejection_reason: Optional[str] = None
     manager_response: Optional[str] = None
     manager_response_at: Optional[datetime] = None
     implemented_at: Optional[datetime] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class RecommendationListResponse(BaseModel):
     items: List[RecommendationResponse]
     total: int
     page: int
     has_more: bool
