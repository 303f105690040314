# models/service_request.py
from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey, Enum, JSON, func
from sqlalchemy.orm import relationship

from utils.clock import utc_now
from .base import Base, generate_uuid
from .enums import ServiceRequestStatus, ServiceRequestCategory, Priority


class ServiceRequest(Base):
     """
     ServiceRequest model - maintenance ask raised by a tenant or an owner.

     Moves through the status graph in services/status_transitions.py until it
     becomes a job, is rejected, or is archived. ARCHIVED rows are read-only.
     """
     __tablename__ = "service_requests"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     title = Column(String(255), nullable=False)
     description = Column(Text, nullable=False)
     category = Column(
          Enum(ServiceRequestCategory, name="service_request_category", create_constraint=True),
          nullable=False
     )
     priority = Column(
          Enum(Priority, name="service_request_priority", create_constraint=True),
          default=Priority.MEDIUM,
          nullable=False
     )
     status = Column(
          Enum(ServiceRequestStatus, name="service_request_status", create_constraint=True),
          default=ServiceRequestStatus.SUBMITTED,
          nullable=False,
          index=True
     )
     photos = Column(JSON, default=list, nullable=False)

     # Foreign keys
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     unit_id = Column(String(36), ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
     requested_by_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
     approved_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
     rejected_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
     last_reviewed_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)

     # Money
     owner_estimated_budget = Column(Numeric(12, 2), nullable=True)
     manager_estimated_cost = Column(Numeric(12, 2), nullable=True)
     approved_budget = Column(Numeric(12, 2), nullable=True)
     cost_breakdown_notes = Column(Text, nullable=True)

     # Review trail
     review_notes = Column(Text, nullable=True)
     rejection_reason = Column(Text, nullable=True)
     reviewed_at = Column(DateTime, nullable=True)
     last_reviewed_at = Column(DateTime, nullable=True)
     approved_at = Column(DateTime, nullable=True)
     rejected_at = Column(DateTime, nullable=True)
     archived_at = Column(DateTime, nullable=True)

     # Timestamps
     created_at = Column(DateTime, default=utc_now, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=utc_now, nullable=True)

     @property
     def is_archived(self) -> bool:
          return self.status == ServiceRequestStatus.ARCHIVED

     # Relationships; `property` shadows the builtin for the rest of the class body
     property = relationship("Property")
     unit = relationship("Unit")
     requested_by = relationship("User", foreign_keys=[requested_by_id])
     jobs = relationship("Job", back_populates="service_request")

     def __repr__(self):
          return f"<ServiceRequest(id={self.id}, title='{self.title}', status='{self.status.value}')>"
