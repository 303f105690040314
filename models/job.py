# models/job.py
from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship

from utils.clock import utc_now
from .base import Base, generate_uuid
from .enums import JobStatus, Priority


class Job(Base):
     """
     Job model - a work order.

     Jobs are created directly by managers, by converting an approved service
     request or recommendation, or by the maintenance plan generator.
     (maintenance_plan_id, scheduled_date) identifies a generated job.
     """
     __tablename__ = "jobs"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     title = Column(String(255), nullable=False)
     description = Column(Text, nullable=True)
     priority = Column(
          Enum(Priority, name="job_priority", create_constraint=True),
          default=Priority.MEDIUM,
          nullable=False
     )
     status = Column(
          Enum(JobStatus, name="job_status", create_constraint=True),
          default=JobStatus.OPEN,
          nullable=False,
          index=True
     )

     # Foreign keys
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     unit_id = Column(String(36), ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
     assigned_to_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
     created_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
     service_request_id = Column(String(36), ForeignKey("service_requests.id", ondelete="SET NULL"), nullable=True, index=True)
     maintenance_plan_id = Column(String(36), ForeignKey("maintenance_plans.id", ondelete="SET NULL"), nullable=True, index=True)

     # Scheduling and cost
     scheduled_date = Column(DateTime, nullable=True)
     completed_date = Column(DateTime, nullable=True)
     estimated_cost = Column(Numeric(12, 2), nullable=True)
     actual_cost = Column(Numeric(12, 2), nullable=True)
     notes = Column(Text, nullable=True)

     # Timestamps
     created_at = Column(DateTime, default=utc_now, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=utc_now, nullable=True)

     # Relationships
     property = relationship("Property")
     assigned_to = relationship("User", foreign_keys=[assigned_to_id])
     created_by = relationship("User", foreign_keys=[created_by_id])
     service_request = relationship("ServiceRequest", back_populates="jobs")
     maintenance_plan = relationship("MaintenancePlan", back_populates="jobs")

     def __repr__(self):
          return f"<Job(id={self.id}, title='{self.title}', status='{self.status.value}')>"
