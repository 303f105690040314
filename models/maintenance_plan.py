# models/maintenance_plan.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from utils.clock import utc_now
from .base import Base, generate_uuid


class MaintenancePlan(Base):
     """
     MaintenancePlan model - recurring maintenance schedule for a property.

     `frequency` is stored as free text (DAILY, WEEKLY, ...) so unknown values
     written by older clients are still readable; the generator falls back to a
     monthly cadence for them.
     """
     __tablename__ = "maintenance_plans"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     name = Column(String(255), nullable=False)
     description = Column(Text, nullable=True)
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     frequency = Column(String(30), nullable=False)
     next_due_date = Column(DateTime, nullable=True, index=True)
     last_completed_date = Column(DateTime, nullable=True)
     auto_create_jobs = Column(Boolean, default=False, nullable=False)
     is_active = Column(Boolean, default=True, nullable=False)
     archived_at = Column(DateTime, nullable=True)

     # Timestamps
     created_at = Column(DateTime, default=utc_now, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=utc_now, nullable=True)

     # Relationships
     property = relationship("Property")
     jobs = relationship("Job", back_populates="maintenance_plan")

     def __repr__(self):
          return f"<MaintenancePlan(id={self.id}, name='{self.name}', frequency='{self.frequency}')>"
