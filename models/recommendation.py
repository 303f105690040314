# models/recommendation.py
from sqlalchemy import Column, String, Text, Numeric, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship

from utils.clock import utc_now
from .base import Base, generate_uuid
from .enums import RecommendationStatus, Priority


class Recommendation(Base):
     """
     Recommendation model - manager-authored improvement suggestion that needs
     owner approval before it can be turned into a job.

     `report_id` is optional: a recommendation may be raised without any prior
     inspection report.
     """
     __tablename__ = "recommendations"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     title = Column(String(255), nullable=False)
     description = Column(Text, nullable=False)
     priority = Column(
          Enum(Priority, name="recommendation_priority", create_constraint=True),
          default=Priority.MEDIUM,
          nullable=False
     )
     status = Column(
          Enum(RecommendationStatus, name="recommendation_status", create_constraint=True),
          default=RecommendationStatus.SUBMITTED,
          nullable=False,
          index=True
     )
     estimated_cost = Column(Numeric(12, 2), nullable=True)

     # Foreign keys
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     report_id = Column(String(36), ForeignKey("reports.id", ondelete="SET NULL"), nullable=True, index=True)
     created_by_id = Column(String(36), ForeignKey("users.id"), nullable=False)
     approved_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)

     # Review trail
     approved_at = Column(DateTime, nullable=True)
     rejected_at = Column(DateTime, nullable=True)
     rejection_reason = Column(Text, nullable=True)
     manager_response = Column(Text, nullable=True)
     manager_response_at = Column(DateTime, nullable=True)
     implemented_at = Column(DateTime, nullable=True)

     # Timestamps
     created_at = Column(DateTime, default=utc_now, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=utc_now, nullable=True)

     # Relationships
     property = relationship("Property")
     report = relationship("Report")
     created_by = relationship("User", foreign_keys=[created_by_id])

     def __repr__(self):
          return f"<Recommendation(id={self.id}, title='{self.title}', status='{self.status.value}')>"
