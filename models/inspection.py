# models/inspection.py
"""
Inspection and Report models.

Only the columns the recommendation workflow reads are mapped: a
recommendation may point at the report of an inspection, and technicians see
recommendations for inspections assigned to them.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid


class Inspection(Base):
     __tablename__ = "inspections"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     title = Column(String(255), nullable=False)
     type = Column(String(50), default="ROUTINE", nullable=False)
     status = Column(String(50), default="SCHEDULED", nullable=False)
     scheduled_date = Column(DateTime, nullable=True)
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     unit_id = Column(String(36), ForeignKey("units.id", ondelete="SET NULL"), nullable=True)
     assigned_to_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     property = relationship("Property")
     reports = relationship("Report", back_populates="inspection", cascade="all, delete-orphan")

     def __repr__(self):
          return f"<Inspection(id={self.id}, title='{self.title}')>"


class Report(Base):
     __tablename__ = "reports"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     title = Column(String(255), nullable=False)
     summary = Column(Text, nullable=True)
     inspection_id = Column(String(36), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     inspection = relationship("Inspection", back_populates="reports")

     def __repr__(self):
          return f"<Report(id={self.id}, title='{self.title}')>"
